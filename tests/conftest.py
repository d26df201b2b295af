"""Shared fixtures for the gateway test suite."""

import json
from unittest.mock import AsyncMock

import pytest

from gcal_mcp.auth import (
    AuthSelector,
    DirectAuthStrategy,
    GoogleOAuthStrategy,
    JsonTokenStorage,
    OAuthClientConfig,
)
from gcal_mcp.calendar_service import GoogleCalendarService
from gcal_mcp.config import Settings
from gcal_mcp.dispatcher import RequestDispatcher, ServerIdentity

CLIENT_ID = "test-client.apps.googleusercontent.com"
CLIENT_SECRET = "test-secret"
REDIRECT_URI = "http://localhost:3000/auth/callback"


@pytest.fixture
def oauth_config():
    return OAuthClientConfig(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        redirect_uri=REDIRECT_URI,
    )


@pytest.fixture
def oauth_token_file(tmp_path):
    return tmp_path / "token.json"


@pytest.fixture
def direct_token_file(tmp_path):
    return tmp_path / "direct_auth_token.json"


@pytest.fixture
def oauth_strategy(oauth_config, oauth_token_file):
    return GoogleOAuthStrategy(oauth_config, JsonTokenStorage(oauth_token_file))


@pytest.fixture
def direct_strategy(direct_token_file):
    return DirectAuthStrategy(JsonTokenStorage(direct_token_file))


@pytest.fixture
def write_oauth_token(oauth_token_file):
    """Write a persisted OAuth record, as a completed code exchange would."""

    def write(**overrides):
        record = {
            "token": "access-token",
            "refresh_token": "refresh-token",
            "token_uri": "https://oauth2.googleapis.com/token",
            "client_id": CLIENT_ID,
            "client_secret": CLIENT_SECRET,
            "scopes": ["https://www.googleapis.com/auth/calendar"],
            "expiry": "2999-01-01T00:00:00Z",
            "authenticated": True,
        }
        record.update(overrides)
        oauth_token_file.write_text(json.dumps(record), encoding="utf-8")
        return record

    return write


@pytest.fixture
def calendar():
    return AsyncMock(spec=GoogleCalendarService)


@pytest.fixture
def identity():
    return ServerIdentity(
        id="google-calendar-mcp",
        name="Google Calendar Integration",
        description="Retrieves and manages Google Calendar events",
        version="1.0.0",
    )


@pytest.fixture
def make_dispatcher(oauth_strategy, direct_strategy, calendar, identity):
    def make(method="google_cloud"):
        selector = AuthSelector(method, oauth_strategy, direct_strategy)
        return RequestDispatcher(selector, calendar, identity)

    return make


@pytest.fixture
def dispatcher(make_dispatcher):
    return make_dispatcher()


@pytest.fixture
async def authorized(oauth_strategy, write_oauth_token):
    """OAuth strategy holding a valid, unexpired access token."""
    write_oauth_token()
    assert await oauth_strategy.load_persisted_credentials()
    return oauth_strategy


@pytest.fixture
def settings(oauth_token_file, direct_token_file):
    return Settings(
        environment="test",
        google_client_id=CLIENT_ID,
        google_client_secret=CLIENT_SECRET,
        google_redirect_uri=REDIRECT_URI,
        oauth_token_file=oauth_token_file,
        direct_token_file=direct_token_file,
        log_dir=None,
    )
