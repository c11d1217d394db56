"""DTOs for the API layer."""

from typing import Any, Optional

from pydantic import BaseModel


class SelectOption(BaseModel):
    """One entry of a select/dropdown list."""
    value: Any
    label: str
    code: Optional[str] = None


class LoginResult(BaseModel):
    """Outcome of a successful login."""
    access_token: str
    api_key: Optional[str] = None
    api_key_expiration: Optional[str] = None
    user: Optional[dict] = None
