"""Chooses the active authentication strategy from configuration."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .base import AuthMethod, AuthStrategy
from .direct import DirectAuthStrategy
from .oauth import GoogleOAuthStrategy


def select_strategy(
    method: str, oauth: GoogleOAuthStrategy, direct: DirectAuthStrategy
) -> AuthStrategy:
    """
    Map a configured method name to a strategy.

    Unknown names fall back to the OAuth strategy with a warning rather than
    failing startup.
    """
    try:
        selected = AuthMethod(method)
    except ValueError:
        logger.warning(f"Unknown auth method: {method}, falling back to Google Cloud OAuth")
        return oauth

    if selected is AuthMethod.DIRECT:
        return direct
    return oauth


@dataclass(frozen=True, slots=True)
class AuthStatus:
    method: AuthMethod
    configured: bool
    authenticated: bool


class AuthSelector:
    """Strategy-agnostic view of the caller's authentication state."""

    def __init__(
        self, method: str, oauth: GoogleOAuthStrategy, direct: DirectAuthStrategy
    ) -> None:
        self._oauth = oauth
        self._direct = direct
        # Configuration is read-only for the process lifetime.
        self._active = select_strategy(method, oauth, direct)

    @property
    def oauth(self) -> GoogleOAuthStrategy:
        return self._oauth

    @property
    def direct(self) -> DirectAuthStrategy:
        return self._direct

    @property
    def active(self) -> AuthStrategy:
        return self._active

    def is_configured(self) -> bool:
        """True when the OAuth client id, secret and redirect URI are all set."""
        return self._oauth.config.is_complete

    async def is_authenticated(self) -> bool:
        return await self.active.is_authorized()

    async def describe(self) -> AuthStatus:
        strategy = self.active
        return AuthStatus(
            method=strategy.method,
            configured=self.is_configured(),
            authenticated=await strategy.is_authorized(),
        )
