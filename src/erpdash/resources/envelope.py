"""Response envelope parsing.

Every API response is wrapped as ``{success, data}``. List endpoints nest the
page inside ``data`` as ``{data: [...], total, totalPages}``.
"""

import math
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator, ValidationError
from pydantic import BaseModel, Field

from erpdash.transport.errors import ApiResponseError, EnvelopeError

LIST_ENVELOPE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["data"],
    "properties": {
        "success": {"type": "boolean"},
        "data": {
            "type": "object",
            "required": ["data"],
            "properties": {
                "data": {"type": "array", "items": {"type": "object"}},
                "total": {"type": "integer", "minimum": 0},
                "totalPages": {"type": "integer", "minimum": 0},
            },
        },
    },
}

ENTITY_ENVELOPE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["data"],
    "properties": {
        "success": {"type": "boolean"},
        "data": {"type": ["object", "array", "null"]},
    },
}

_list_validator = Draft202012Validator(LIST_ENVELOPE_SCHEMA)
_entity_validator = Draft202012Validator(ENTITY_ENVELOPE_SCHEMA)


class ResultSet(BaseModel):
    """One page of records plus pagination metadata."""

    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    total_pages: int = 0


def _format_error_path(error: ValidationError) -> str:
    if not error.absolute_path:
        return "$"
    return ".".join(("$", *map(str, error.absolute_path)))


def _check_success(body: Any) -> None:
    """A 2xx body with ``success: false`` is a server-reported failure."""
    if isinstance(body, dict) and body.get("success") is False:
        message = body.get("message")
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message if m)
        raise ApiResponseError(
            "Server reported success=false",
            server_message=str(message) if message else None,
            details=body,
        )


def _validate(validator: Draft202012Validator, body: Any, kind: str) -> None:
    error = next(iter(validator.iter_errors(body)), None)
    if error is not None:
        raise EnvelopeError(
            f"Unexpected {kind} envelope at {_format_error_path(error)}: {error.message}",
            details=body,
        )


def parse_list_envelope(body: Any, items_per_page: Optional[int] = None) -> ResultSet:
    """
    Parse a list envelope into a ResultSet.

    Args:
        body: Decoded JSON body
        items_per_page: Page size, used to derive totalPages when it is absent

    Returns:
        ResultSet with the server items and pagination metadata

    Raises:
        ApiResponseError: If the body reports ``success: false``
        EnvelopeError: If the body does not have the list envelope shape
    """
    _check_success(body)
    _validate(_list_validator, body, "list")

    page = body["data"]
    items = list(page["data"])
    total = page.get("total", len(items))
    total_pages = page.get("totalPages")
    if total_pages is None:
        if items_per_page:
            total_pages = math.ceil(total / items_per_page)
        else:
            total_pages = 1 if total else 0
    return ResultSet(items=items, total=total, total_pages=total_pages)


def unwrap_entity(body: Any) -> Any:
    """
    Return ``data`` from a single-entity envelope.

    Raises:
        ApiResponseError: If the body reports ``success: false``
        EnvelopeError: If the body is not an envelope
    """
    _check_success(body)
    _validate(_entity_validator, body, "entity")
    return body["data"]
