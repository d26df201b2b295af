"""Shared interface for the interchangeable authentication strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Protocol, runtime_checkable


class AuthMethod(str, Enum):
    GOOGLE_CLOUD = "google_cloud"
    DIRECT = "direct"


class AuthError(RuntimeError):
    """Base class for authentication failures."""


class AuthorizationRequiredError(AuthError):
    """Raised when the user must complete the OAuth flow before continuing."""


class CredentialConfigurationError(AuthError):
    """Raised when the OAuth client settings are missing or incomplete."""


class AuthExchangeError(AuthError):
    """Raised when an OAuth authorization code cannot be turned into tokens."""


class CredentialStorageError(AuthError):
    """Raised when a credential record cannot be read or written."""


class AuthStrategy(ABC):
    """A mechanism for establishing and checking authorization with Google."""

    method: AuthMethod

    @abstractmethod
    async def is_authorized(self) -> bool:
        """Return whether the strategy currently holds a usable authorization."""


@runtime_checkable
class PersistedCredentialLoader(Protocol):
    """Strategies that can restore credentials saved by an earlier process."""

    async def load_persisted_credentials(self) -> bool: ...
