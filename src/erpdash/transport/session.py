"""Explicit session / request context for API calls."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from erpdash.utils.logging import get_logger

logger = get_logger(__name__)


class ApiSession(BaseModel):
    """Credentials and selection state sent with every request."""

    model_config = ConfigDict(validate_assignment=True)

    base_url: str
    access_token: Optional[str] = None
    api_key: Optional[str] = None
    api_key_expiration: Optional[datetime] = None
    default_api_key: Optional[str] = None  # used when the user has no valid key
    language: str = "es"
    company_id: Optional[int] = None  # selected company
    user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def api_key_expired(self, now: Optional[datetime] = None) -> bool:
        """True when the user API key has an expiration in the past."""
        if self.api_key_expiration is None:
            return False
        expiration = self.api_key_expiration
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return now > expiration

    def build_headers(self, now: Optional[datetime] = None) -> Dict[str, str]:
        """
        Build auth and language headers for one request.

        An expired user API key is dropped from the session before the
        headers are built.

        Args:
            now: Override for the current time (tests)

        Returns:
            Header dict
        """
        headers = {"language": self.language}
        if not self.access_token:
            return headers

        headers["Authorization"] = f"Bearer {self.access_token}"

        if self.api_key and self.api_key_expired(now):
            logger.warning("User API key expired, discarding it")
            self.api_key = None
            self.api_key_expiration = None

        if self.api_key:
            headers["x-api-key"] = self.api_key
        elif self.default_api_key:
            headers["x-api-key"] = self.default_api_key
        return headers

    def clear_credentials(self) -> None:
        self.access_token = None
        self.api_key = None
        self.api_key_expiration = None
        self.user = None

    def credentials(self) -> Dict[str, Any]:
        """Persistable subset of the session (for the session file)."""
        return {
            "access_token": self.access_token,
            "api_key": self.api_key,
            "api_key_expiration": self.api_key_expiration.isoformat() if self.api_key_expiration else None,
            "company_id": self.company_id,
            "language": self.language,
            "user": self.user,
        }
