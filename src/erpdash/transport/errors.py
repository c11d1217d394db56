"""Error taxonomy for calls against the ERP API."""

from typing import Any, Optional


class ApiError(Exception):
    """Base class for every failure surfaced by the API client."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        server_message: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message
        self.details = details

    def user_message(self, fallback: str) -> str:
        """Message to show a user: the server's own message, else ``fallback``."""
        return self.server_message or fallback


class TransportError(ApiError):
    """Network or transport failure (no HTTP response)."""


class ApiResponseError(ApiError):
    """Non-2xx response, or a 2xx body reporting ``success: false``."""


class SessionExpiredError(ApiResponseError):
    """401 outside the login endpoints. Session credentials have been cleared."""


class EnvelopeError(ApiError):
    """Response body does not match the expected ``{success, data}`` envelope."""
