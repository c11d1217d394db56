"""Auth API: login, logout and profile calls."""

from typing import Any, Dict, Mapping, Optional

from ..resources.envelope import unwrap_entity
from ..transport.client import ApiClient
from ..transport.errors import EnvelopeError
from ..utils.logging import get_logger
from .models import LoginResult

logger = get_logger(__name__)

AUTH_LOGIN_PATH = "/auth/login"
CHANGE_PASSWORD_PATH = "/auth/change-password"
PROFILE_PATH = "/user/logged"


def login(
    client: ApiClient,
    email: str,
    password: str,
    legal_tax_id: Optional[str] = None,
) -> LoginResult:
    """
    Log in and store the returned credentials on the client session.

    Args:
        client: API client whose session receives the credentials
        email: User email
        password: User password
        legal_tax_id: Company tax id, for multi-company users

    Returns:
        LoginResult

    Raises:
        ApiResponseError: Rejected credentials
        EnvelopeError: Response without an access token
    """
    payload: Dict[str, Any] = {"email": email, "password": password}
    if legal_tax_id:
        payload["legal_tax_id"] = legal_tax_id

    data = unwrap_entity(client.post(AUTH_LOGIN_PATH, json_body=payload))
    if not isinstance(data, dict) or not data.get("access_token"):
        raise EnvelopeError("Login response did not include an access token", details=data)

    result = LoginResult(
        access_token=data["access_token"],
        api_key=data.get("api_key"),
        api_key_expiration=data.get("api_key_expiration"),
        user=data.get("user"),
    )

    session = client.session
    session.access_token = result.access_token
    session.api_key = result.api_key
    session.api_key_expiration = result.api_key_expiration
    session.user = result.user
    if result.user and session.company_id is None:
        company = result.user.get("company") or {}
        session.company_id = result.user.get("companyId") or company.get("id")

    logger.info(f"Logged in as {email}")
    return result


def logout(client: ApiClient) -> None:
    client.session.clear_credentials()
    logger.info("Logged out")


def get_profile(client: ApiClient) -> Dict[str, Any]:
    """Profile of the logged-in user."""
    return unwrap_entity(client.get(PROFILE_PATH))


def change_password(client: ApiClient, payload: Mapping[str, Any]) -> Any:
    return client.put(CHANGE_PASSWORD_PATH, json_body=dict(payload))
