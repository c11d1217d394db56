"""Tests for the HTTP client: headers, error mapping and session expiry."""

from datetime import datetime, timedelta, timezone

import pytest
import requests

from erpdash.transport.client import ApiClient
from erpdash.transport.errors import (
    ApiResponseError,
    EnvelopeError,
    SessionExpiredError,
    TransportError,
)
from erpdash.transport.session import ApiSession
from fakes import FakeResponse, ok


def test_request_builds_url_and_sends_auth_headers(client, http):
    http.queue(ok({"success": True, "data": []}))

    client.get("/zones", params={"page": "1"})

    call = http.last
    assert call.method == "GET"
    assert call.url == "https://api.test/v1/zones"
    assert call.params == {"page": "1"}
    assert call.timeout == 5
    assert call.headers["Authorization"] == "Bearer jwt-token"
    assert call.headers["x-api-key"] == "user-key"
    assert call.headers["language"] == "es"
    assert call.headers["Accept"] == "application/json"


def test_anonymous_request_only_sends_language(http):
    client = ApiClient(ApiSession(base_url="https://api.test", language="en"), http=http)
    http.queue(ok({"success": True, "data": {}}))

    client.post("/auth/login", json_body={"email": "a@b.c"})

    headers = http.last.headers
    assert headers["language"] == "en"
    assert "Authorization" not in headers
    assert "x-api-key" not in headers
    assert http.last.json == {"email": "a@b.c"}


def test_expired_user_api_key_falls_back_to_default_key(client, http, api_session):
    api_session.api_key_expiration = datetime.now(timezone.utc) - timedelta(minutes=1)
    http.queue(ok({"success": True, "data": {}}))

    client.get("/user/logged")

    assert http.last.headers["x-api-key"] == "fallback-key"
    assert api_session.api_key is None
    assert api_session.api_key_expiration is None


def test_unexpired_user_api_key_is_kept(api_session):
    api_session.api_key_expiration = datetime.now(timezone.utc) + timedelta(days=1)

    headers = api_session.build_headers()

    assert headers["x-api-key"] == "user-key"


def test_error_response_carries_server_message(client, http):
    http.queue(FakeResponse(400, {"message": ["name must not be empty", "code too long"], "statusCode": 400}))

    with pytest.raises(ApiResponseError) as exc_info:
        client.post("/zones", json_body={})

    error = exc_info.value
    assert error.status_code == 400
    assert error.server_message == "name must not be empty; code too long"
    assert error.user_message("fallback") == "name must not be empty; code too long"


def test_error_response_without_message_uses_fallback(client, http):
    http.queue(FakeResponse(500, text="<html>Internal Server Error</html>"))

    with pytest.raises(ApiResponseError) as exc_info:
        client.get("/zones")

    assert exc_info.value.server_message is None
    assert exc_info.value.user_message("Failed to load zones") == "Failed to load zones"


def test_401_clears_credentials(client, http, api_session):
    http.queue(FakeResponse(401, {"message": "Unauthorized"}))

    with pytest.raises(SessionExpiredError):
        client.get("/zones")

    assert api_session.access_token is None
    assert api_session.api_key is None
    assert not api_session.is_authenticated


def test_401_on_login_is_a_plain_failure(http):
    session = ApiSession(base_url="https://api.test", access_token="old")
    client = ApiClient(session, http=http)
    http.queue(FakeResponse(401, {"message": "Invalid credentials"}))

    with pytest.raises(ApiResponseError) as exc_info:
        client.post("/auth/login", json_body={})

    assert not isinstance(exc_info.value, SessionExpiredError)
    assert session.access_token == "old"


def test_transport_failure_is_wrapped(client, http):
    http.queue(requests.ConnectionError("connection refused"))

    with pytest.raises(TransportError, match="connection refused") as exc_info:
        client.get("/zones")

    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)
    assert exc_info.value.user_message("Failed to load zones") == "Failed to load zones"


def test_empty_body_returns_none(client, http):
    http.queue(FakeResponse(204))

    assert client.delete("/zones/3") is None
    assert http.last.method == "DELETE"
    assert http.last.url == "https://api.test/v1/zones/3"


def test_non_json_success_body_raises_envelope_error(client, http):
    http.queue(FakeResponse(200, text="OK"))

    with pytest.raises(EnvelopeError):
        client.get("/zones")


def test_from_settings_applies_api_section(http):
    client = ApiClient.from_settings(
        {
            "base_url": "https://erp.example.com",
            "timeout_seconds": 7,
            "user_agent": "test-agent",
            "language": "en",
            "default_api_key": "k",
        },
        http=http,
    )

    assert client.timeout == 7
    assert client.user_agent == "test-agent"
    assert client.session.language == "en"
    assert client.session.default_api_key == "k"
