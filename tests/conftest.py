"""Pytest configuration and fixtures."""

import pytest

from erpdash.transport.client import ApiClient
from erpdash.transport.session import ApiSession
from fakes import FakeHttp


@pytest.fixture
def http():
    """Fake HTTP session recording every request."""
    return FakeHttp()


@pytest.fixture
def api_session():
    """Logged-in session against a test base URL."""
    return ApiSession(
        base_url="https://api.test/v1/",
        access_token="jwt-token",
        api_key="user-key",
        default_api_key="fallback-key",
        language="es",
    )


@pytest.fixture
def client(http, api_session):
    return ApiClient(api_session, http=http, timeout=5)
