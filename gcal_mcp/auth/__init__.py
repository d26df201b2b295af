"""Authentication strategies and the selector that picks one of them."""

from .base import (
    AuthError,
    AuthExchangeError,
    AuthMethod,
    AuthorizationRequiredError,
    AuthStrategy,
    CredentialConfigurationError,
    CredentialStorageError,
    PersistedCredentialLoader,
)
from .direct import DirectAuthStrategy
from .oauth import GoogleOAuthStrategy, OAuthClientConfig
from .selector import AuthSelector, AuthStatus, select_strategy
from .storage import JsonTokenStorage

__all__ = [
    "AuthError",
    "AuthExchangeError",
    "AuthMethod",
    "AuthSelector",
    "AuthStatus",
    "AuthStrategy",
    "AuthorizationRequiredError",
    "CredentialConfigurationError",
    "CredentialStorageError",
    "DirectAuthStrategy",
    "GoogleOAuthStrategy",
    "JsonTokenStorage",
    "OAuthClientConfig",
    "PersistedCredentialLoader",
    "select_strategy",
]
