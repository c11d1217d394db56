"""HTTP client for the ERP REST API."""

from typing import Any, Dict, Mapping, Optional

import requests

from erpdash.transport.errors import (
    ApiResponseError,
    EnvelopeError,
    SessionExpiredError,
    TransportError,
)
from erpdash.transport.session import ApiSession
from erpdash.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20
DEFAULT_USER_AGENT = "erpdash/0.3"

# 401 on these paths is a bad login, not an expired session
LOGIN_PATHS = ("/auth/login", "/login")


def _server_message(body: Any) -> Optional[str]:
    """Extract the server-provided message from an error body."""
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, list):
        message = "; ".join(str(m) for m in message if m)
    if not message and isinstance(body.get("data"), dict):
        message = body["data"].get("message")
    return str(message) if message else None


class ApiClient:
    """Thin wrapper over ``requests`` that applies session headers and maps errors."""

    def __init__(
        self,
        session: ApiSession,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        http: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            session: Session carrying base URL and credentials
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            http: Optional requests.Session (or compatible object) to issue requests with
        """
        self.session = session
        self.timeout = timeout
        self.user_agent = user_agent
        self._http = http if http is not None else requests.Session()

    @classmethod
    def from_settings(
        cls,
        api_settings: Mapping[str, Any],
        session: Optional[ApiSession] = None,
        http: Optional[requests.Session] = None,
    ) -> "ApiClient":
        """Build a client from the ``api`` section returned by ``get_api_settings``."""
        if session is None:
            session = ApiSession(
                base_url=api_settings["base_url"],
                language=api_settings.get("language") or "es",
            )
        session.default_api_key = api_settings.get("default_api_key")
        return cls(
            session,
            timeout=api_settings.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            user_agent=api_settings.get("user_agent", DEFAULT_USER_AGENT),
            http=http,
        )

    def _url(self, path: str) -> str:
        return f"{self.session.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }
        headers.update(self.session.build_headers())
        return headers

    @staticmethod
    def _is_login_path(path: str) -> bool:
        return any(login_path in path for login_path in LOGIN_PATHS)

    @staticmethod
    def _safe_json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json_body: Any = None,
    ) -> Any:
        """
        Issue one request and return the decoded JSON body.

        Args:
            method: HTTP verb
            path: Path relative to the session base URL
            params: Query parameters (sent in insertion order)
            json_body: JSON payload for POST/PATCH/PUT

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            TransportError: Network failure
            SessionExpiredError: 401 outside the login endpoints
            ApiResponseError: Any other non-2xx response
            EnvelopeError: 2xx response whose body is not JSON
        """
        url = self._url(path)
        logger.debug(f"{method} {url} params={dict(params or {})}")
        try:
            response = self._http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        status_code = response.status_code
        if status_code >= 400:
            body = self._safe_json(response)
            server_message = _server_message(body)

            if status_code == 401 and not self._is_login_path(path):
                logger.warning(f"Session expired on {method} {path}, clearing credentials")
                self.session.clear_credentials()
                raise SessionExpiredError(
                    f"{method} {path} returned 401",
                    status_code=status_code,
                    server_message=server_message,
                    details=body,
                )

            raise ApiResponseError(
                f"{method} {path} returned {status_code}",
                status_code=status_code,
                server_message=server_message,
                details=body,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise EnvelopeError(
                f"{method} {path} returned a non-JSON body",
                status_code=status_code,
            ) from e

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json_body: Any = None) -> Any:
        return self.request("POST", path, json_body=json_body)

    def patch(self, path: str, json_body: Any = None) -> Any:
        return self.request("PATCH", path, json_body=json_body)

    def put(self, path: str, json_body: Any = None) -> Any:
        return self.request("PUT", path, json_body=json_body)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
