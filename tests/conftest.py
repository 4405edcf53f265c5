"""
Test configuration and fixtures.
"""
import json
import os
from typing import AsyncGenerator
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from plaid.api import plaid_api
from plaid.exceptions import ApiException

# Settings refuse to load without credentials.
os.environ.setdefault("PLAID_CLIENT_ID", "test-client-id")
os.environ.setdefault("PLAID_SECRET", "test-secret")

from quickstart.main import create_app
from quickstart.settings import Settings


class FakePlaidResponse:
    """Stands in for a plaid-python response model."""

    def __init__(self, data):
        self._data = data

    def to_dict(self):
        return self._data

    def __getitem__(self, key):
        return self._data[key]


@pytest.fixture
def make_response():
    """Build a fake Plaid response from a dict."""
    return FakePlaidResponse


@pytest.fixture
def api_error():
    """Build a plaid ApiException carrying a Plaid error body."""

    def _api_error(
        error_code: str,
        error_type: str = "INVALID_INPUT",
        status: int = 400,
        message: str = "something went wrong",
    ) -> ApiException:
        exc = ApiException(status=status, reason="Bad Request")
        exc.body = json.dumps(
            {
                "error_type": error_type,
                "error_code": error_code,
                "error_message": message,
                "display_message": None,
                "request_id": "req-123",
            }
        )
        return exc

    return _api_error


@pytest.fixture
def settings():
    """Settings for tests; polling never waits."""
    return Settings(
        _env_file=None,
        plaid_client_id="test-client-id",
        plaid_secret="test-secret",
        plaid_env="sandbox",
        plaid_products="transactions",
        plaid_country_codes="US",
        plaid_redirect_uri="",
        asset_report_retry_delay=0.0,
    )


@pytest.fixture
def plaid_client():
    """Mock Plaid API client."""
    return MagicMock(spec=plaid_api.PlaidApi)


@pytest.fixture
def app(settings, plaid_client):
    return create_app(settings=settings, plaid_client=plaid_client)


@pytest.fixture
def session(app):
    return app.state.session


@pytest.fixture
def linked_session(session):
    """Session that already went through a public token exchange."""
    session.set_item("access-sandbox-123", "item-123")
    return session


@pytest.fixture
def client(app):
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an async test client."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
