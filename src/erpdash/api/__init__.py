"""API layer: task-level helpers on top of the resource services.

Key rules:

1. No direct ``requests`` use - go through ApiClient / ResourceService
2. Return Pydantic models or plain records only
3. Failures propagate as ApiError unless a helper documents otherwise
"""
