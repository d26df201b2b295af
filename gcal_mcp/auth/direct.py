"""
Direct authentication with a Google account instead of a Google Cloud project.

The stored ``authenticated`` flag is trusted as-is: there is no expiry and no
revalidation against Google, a weaker guarantee than the OAuth strategy's
token check.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from loguru import logger

from .base import AuthMethod, AuthStrategy, CredentialStorageError
from .storage import JsonTokenStorage


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class DirectAuthStrategy(AuthStrategy):
    method = AuthMethod.DIRECT

    def __init__(self, storage: JsonTokenStorage) -> None:
        self._storage = storage

    @property
    def storage(self) -> JsonTokenStorage:
        return self._storage

    async def authenticate_with_credentials(self, email: str, password: str) -> bool:
        """
        Record a successful sign-in for ``email``.

        The password is not sent anywhere and is never stored.
        """
        logger.info(f"Attempting to authenticate using direct credentials for {email}")
        return await self._save(
            {"email": email, "authenticated": True, "timestamp": _timestamp()}
        )

    async def authenticate_with_cookies(self, cookies: str) -> bool:
        logger.info("Attempting to authenticate using Google cookies")
        return await self._save(
            {"cookieAuth": True, "authenticated": True, "timestamp": _timestamp()}
        )

    async def has_valid_auth(self) -> bool:
        try:
            record = await self._storage.load()
        except CredentialStorageError as exc:
            logger.debug(f"Direct auth token invalid: {exc}")
            return False
        if record is None:
            logger.debug("No direct auth token found")
            return False
        return record.get("authenticated") is True

    async def is_authorized(self) -> bool:
        return await self.has_valid_auth()

    async def _save(self, record: dict[str, Any]) -> bool:
        try:
            await self._storage.save(record)
        except CredentialStorageError as exc:
            logger.error(f"Error saving direct auth token: {exc}")
            return False
        logger.info("Direct auth token saved")
        return True
