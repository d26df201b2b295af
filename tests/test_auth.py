"""Tests for credential storage, the auth strategies and the selector."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from loguru import logger

from gcal_mcp.auth import (
    AuthExchangeError,
    AuthMethod,
    AuthorizationRequiredError,
    AuthSelector,
    CredentialConfigurationError,
    CredentialStorageError,
    DirectAuthStrategy,
    GoogleOAuthStrategy,
    JsonTokenStorage,
    OAuthClientConfig,
    select_strategy,
)


@pytest.fixture
def warnings():
    messages = []
    sink_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
    yield messages
    logger.remove(sink_id)


class TestJsonTokenStorage:
    async def test_missing_file_loads_none(self, tmp_path):
        storage = JsonTokenStorage(tmp_path / "token.json")

        assert await storage.exists() is False
        assert await storage.load() is None

    async def test_save_creates_parent_directories(self, tmp_path):
        storage = JsonTokenStorage(tmp_path / "nested" / "dir" / "token.json")

        await storage.save({"authenticated": True})

        assert await storage.load() == {"authenticated": True}

    async def test_invalid_json(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text("{not json")

        with pytest.raises(CredentialStorageError, match="Failed to parse"):
            await JsonTokenStorage(path).load()

    async def test_non_object_json(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text("[1, 2]")

        with pytest.raises(CredentialStorageError, match="JSON object"):
            await JsonTokenStorage(path).load()

    async def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        with pytest.raises(CredentialStorageError, match="Failed to save"):
            await JsonTokenStorage(blocker / "token.json").save({"authenticated": True})


class TestDirectAuthStrategy:
    """Test the flag-based direct strategy."""

    async def test_credentials_are_recorded_without_password(
        self, direct_strategy, direct_token_file
    ):
        assert await direct_strategy.authenticate_with_credentials(
            "user@example.com", "hunter2"
        )

        record = json.loads(direct_token_file.read_text())
        assert record["email"] == "user@example.com"
        assert record["authenticated"] is True
        assert record["timestamp"].endswith("Z")
        assert "hunter2" not in direct_token_file.read_text()

    async def test_cookies_are_recorded_as_flag(
        self, direct_strategy, direct_token_file
    ):
        assert await direct_strategy.authenticate_with_cookies("SID=abc")

        record = json.loads(direct_token_file.read_text())
        assert record["cookieAuth"] is True
        assert "SID=abc" not in direct_token_file.read_text()

    async def test_no_record_is_not_authorized(self, direct_strategy):
        assert await direct_strategy.is_authorized() is False

    async def test_stored_flag_is_trusted_regardless_of_age(
        self, direct_strategy, direct_token_file
    ):
        direct_token_file.write_text(
            json.dumps({"authenticated": True, "timestamp": "2001-01-01T00:00:00Z"})
        )

        assert await direct_strategy.is_authorized() is True

    @pytest.mark.parametrize("flag", [False, "true", 1, None])
    async def test_flag_must_be_boolean_true(
        self, direct_strategy, direct_token_file, flag
    ):
        direct_token_file.write_text(json.dumps({"authenticated": flag}))

        assert await direct_strategy.has_valid_auth() is False

    async def test_corrupt_record_is_not_authorized(
        self, direct_strategy, direct_token_file
    ):
        direct_token_file.write_text("garbage")

        assert await direct_strategy.has_valid_auth() is False

    async def test_save_failure_reports_false(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        strategy = DirectAuthStrategy(JsonTokenStorage(blocker / "token.json"))

        assert await strategy.authenticate_with_cookies("SID=abc") is False


class TestGoogleOAuthStrategy:
    """Test URL generation, code exchange and token persistence."""

    def test_authorization_url(self, oauth_strategy):
        url = oauth_strategy.get_authorization_url()

        assert "client_id=test-client.apps.googleusercontent.com" in url
        assert "access_type=offline" in url
        assert "prompt=consent" in url
        assert "redirect_uri=http%3A%2F%2Flocalhost%3A3000%2Fauth%2Fcallback" in url
        assert "calendar.events" in url

    def test_incomplete_configuration(self, oauth_token_file):
        strategy = GoogleOAuthStrategy(
            OAuthClientConfig(client_id="", client_secret="", redirect_uri=""),
            JsonTokenStorage(oauth_token_file),
        )

        with pytest.raises(CredentialConfigurationError):
            strategy.get_authorization_url()

    async def test_not_authorized_without_token(self, oauth_strategy):
        assert await oauth_strategy.is_authorized() is False
        assert await oauth_strategy.load_persisted_credentials() is False

        with pytest.raises(AuthorizationRequiredError):
            await oauth_strategy.get_credentials()

    async def test_loads_persisted_tokens(self, oauth_strategy, write_oauth_token):
        write_oauth_token()

        assert await oauth_strategy.load_persisted_credentials() is True
        assert await oauth_strategy.is_authorized() is True
        credentials = await oauth_strategy.get_credentials()
        assert credentials.token == "access-token"
        assert credentials.refresh_token == "refresh-token"

    async def test_get_credentials_reads_saved_tokens(
        self, oauth_strategy, write_oauth_token
    ):
        write_oauth_token()

        credentials = await oauth_strategy.get_credentials()

        assert credentials.token == "access-token"
        assert await oauth_strategy.is_authorized() is True

    async def test_record_without_token_is_ignored(
        self, oauth_strategy, write_oauth_token
    ):
        write_oauth_token(token=None)

        assert await oauth_strategy.load_persisted_credentials() is False
        assert await oauth_strategy.is_authorized() is False

    async def test_corrupt_record_is_ignored(self, oauth_strategy, oauth_token_file):
        oauth_token_file.write_text("{")

        assert await oauth_strategy.load_persisted_credentials() is False

    async def test_exchange_code_persists_tokens(self, oauth_strategy, oauth_token_file):
        flow = Mock()
        flow.credentials = Credentials(
            token="fresh-token",
            refresh_token="fresh-refresh",
            token_uri="https://oauth2.googleapis.com/token",
            client_id="test-client.apps.googleusercontent.com",
            client_secret="test-secret",
        )

        with patch(
            "gcal_mcp.auth.oauth.Flow.from_client_config", return_value=flow
        ):
            await oauth_strategy.exchange_code("4/code")

        flow.fetch_token.assert_called_once_with(code="4/code")
        record = json.loads(oauth_token_file.read_text())
        assert record["token"] == "fresh-token"
        assert record["refresh_token"] == "fresh-refresh"
        assert record["authenticated"] is True
        assert await oauth_strategy.is_authorized() is True

    async def test_exchange_failure(self, oauth_strategy, oauth_token_file):
        flow = Mock()
        flow.fetch_token.side_effect = ValueError("invalid_grant")

        with patch(
            "gcal_mcp.auth.oauth.Flow.from_client_config", return_value=flow
        ):
            with pytest.raises(AuthExchangeError, match="Failed to authenticate"):
                await oauth_strategy.exchange_code("bad")

        assert not oauth_token_file.exists()
        assert await oauth_strategy.is_authorized() is False

    async def test_expired_token_is_refreshed_and_saved(
        self, oauth_strategy, write_oauth_token, oauth_token_file
    ):
        write_oauth_token(expiry="2000-01-01T00:00:00Z")
        await oauth_strategy.load_persisted_credentials()

        def refresh(credentials, request):
            credentials.token = "refreshed-token"
            now = datetime.now(timezone.utc).replace(tzinfo=None)
            credentials.expiry = now + timedelta(hours=1)

        with patch.object(Credentials, "refresh", autospec=True, side_effect=refresh):
            credentials = await oauth_strategy.get_credentials()

        assert credentials.token == "refreshed-token"
        assert json.loads(oauth_token_file.read_text())["token"] == "refreshed-token"

    async def test_revoked_refresh_token(self, oauth_strategy, write_oauth_token):
        write_oauth_token(expiry="2000-01-01T00:00:00Z")
        await oauth_strategy.load_persisted_credentials()

        with patch.object(
            Credentials, "refresh", autospec=True, side_effect=RefreshError("revoked")
        ):
            with pytest.raises(AuthorizationRequiredError):
                await oauth_strategy.get_credentials()

        assert await oauth_strategy.is_authorized() is False


class TestAuthSelector:
    def test_selects_oauth(self, oauth_strategy, direct_strategy):
        selector = AuthSelector("google_cloud", oauth_strategy, direct_strategy)

        assert selector.active is oauth_strategy
        assert selector.active.method is AuthMethod.GOOGLE_CLOUD

    def test_selects_direct(self, oauth_strategy, direct_strategy):
        selector = AuthSelector("direct", oauth_strategy, direct_strategy)

        assert selector.active is direct_strategy

    def test_unknown_method_falls_back_to_oauth(
        self, oauth_strategy, direct_strategy, warnings
    ):
        strategy = select_strategy("saml", oauth_strategy, direct_strategy)

        assert strategy is oauth_strategy
        assert any("Unknown auth method: saml" in message for message in warnings)

    def test_fallback_warns_once(self, oauth_strategy, direct_strategy, warnings):
        selector = AuthSelector("saml", oauth_strategy, direct_strategy)

        selector.active
        selector.active

        assert len(warnings) == 1

    def test_is_configured(self, oauth_strategy, direct_strategy, oauth_token_file):
        assert AuthSelector("direct", oauth_strategy, direct_strategy).is_configured()

        unconfigured = GoogleOAuthStrategy(
            OAuthClientConfig(client_id="id", client_secret="", redirect_uri="x"),
            JsonTokenStorage(oauth_token_file),
        )
        selector = AuthSelector("google_cloud", unconfigured, direct_strategy)
        assert not selector.is_configured()

    async def test_describe(self, oauth_strategy, direct_strategy, direct_token_file):
        direct_token_file.write_text(json.dumps({"authenticated": True}))
        selector = AuthSelector("direct", oauth_strategy, direct_strategy)

        status = await selector.describe()

        assert status.method is AuthMethod.DIRECT
        assert status.configured is True
        assert status.authenticated is True
