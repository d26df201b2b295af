"""OAuth credential management for the Google Calendar MCP gateway."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from loguru import logger

from ..config import CALENDAR_SCOPES
from .base import (
    AuthExchangeError,
    AuthMethod,
    AuthorizationRequiredError,
    AuthStrategy,
    CredentialConfigurationError,
    CredentialStorageError,
)
from .storage import JsonTokenStorage

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(slots=True)
class OAuthClientConfig:
    """Holds the OAuth client registration of the Google Cloud project."""

    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: tuple[str, ...] = CALENDAR_SCOPES

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_uri)

    def to_client_config(self) -> dict[str, Any]:
        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }


def _parse_expiry(value: Any) -> datetime | None:
    # google-auth writes naive UTC timestamps with a trailing "Z".
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.rstrip("Z"))
    except ValueError:
        return None


class GoogleOAuthStrategy(AuthStrategy):
    """Web-server OAuth flow: authorization URL, code exchange, token reuse."""

    method = AuthMethod.GOOGLE_CLOUD

    def __init__(self, config: OAuthClientConfig, storage: JsonTokenStorage) -> None:
        self._config = config
        self._storage = storage
        self._credentials: Credentials | None = None

    @property
    def config(self) -> OAuthClientConfig:
        return self._config

    @property
    def storage(self) -> JsonTokenStorage:
        return self._storage

    @property
    def has_access_token(self) -> bool:
        return self._credentials is not None and bool(self._credentials.token)

    def _build_flow(self) -> Flow:
        if not self._config.is_complete:
            raise CredentialConfigurationError(
                "Google OAuth client is not configured. Set GOOGLE_CLIENT_ID, "
                "GOOGLE_CLIENT_SECRET and GOOGLE_REDIRECT_URI."
            )
        return Flow.from_client_config(
            self._config.to_client_config(),
            scopes=list(self._config.scopes),
            redirect_uri=self._config.redirect_uri,
            autogenerate_code_verifier=False,
        )

    def get_authorization_url(self) -> str:
        """Return the Google consent page URL requesting offline access."""
        url, _state = self._build_flow().authorization_url(
            access_type="offline",
            prompt="consent",
        )
        return url

    async def exchange_code(self, code: str) -> None:
        """
        Exchange an authorization code for tokens and persist them.

        Raises:
            AuthExchangeError: If Google rejects the code or the tokens cannot be saved.
        """
        try:
            flow = self._build_flow()
            await asyncio.to_thread(flow.fetch_token, code=code)
            credentials = flow.credentials
            await self._storage.save(self._to_record(credentials))
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Error getting tokens from code: {exc}")
            raise AuthExchangeError("Failed to authenticate with Google") from exc

        self._credentials = credentials
        logger.info("Authentication successful")

    async def is_authorized(self) -> bool:
        return self.has_access_token

    async def load_persisted_credentials(self) -> bool:
        """Restore tokens saved by an earlier exchange. Returns whether any were found."""
        try:
            record = await self._storage.load()
        except CredentialStorageError as exc:
            logger.warning(f"Error loading saved tokens: {exc}")
            return False

        if not record or not record.get("token"):
            logger.warning("No saved tokens found")
            return False

        self._credentials = self._from_record(record)
        logger.info("Tokens loaded from file")
        return True

    async def get_credentials(self) -> Credentials:
        """
        Return usable credentials, refreshing an expired access token when possible.

        Raises:
            AuthorizationRequiredError: If no token is held or it can no longer be refreshed.
        """
        if self._credentials is None:
            await self.load_persisted_credentials()

        creds = self._credentials
        if creds is None or not creds.token:
            raise AuthorizationRequiredError(
                "No Google OAuth token found. Complete the authorization flow first."
            )

        if creds.expired and creds.refresh_token:
            try:
                await asyncio.to_thread(creds.refresh, Request())
            except RefreshError as exc:
                self._credentials = None
                raise AuthorizationRequiredError(
                    "Stored Google OAuth token can no longer be refreshed. "
                    "Re-run the authorization flow."
                ) from exc
            await self._storage.save(self._to_record(creds))

        return creds

    def _to_record(self, credentials: Credentials) -> dict[str, Any]:
        record = json.loads(credentials.to_json())
        record["authenticated"] = True
        return record

    def _from_record(self, record: dict[str, Any]) -> Credentials:
        return Credentials(
            token=record["token"],
            refresh_token=record.get("refresh_token"),
            token_uri=record.get("token_uri") or GOOGLE_TOKEN_URI,
            client_id=record.get("client_id") or self._config.client_id,
            client_secret=record.get("client_secret") or self._config.client_secret,
            scopes=record.get("scopes") or list(self._config.scopes),
            expiry=_parse_expiry(record.get("expiry")),
        )
