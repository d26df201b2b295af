"""Common configuration for the Google Calendar MCP gateway."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from . import __version__


class ConfigurationError(ValueError):
    """Raised when an environment variable holds an unusable value."""


# Working directory of the process (where token files live by default).
BASE_DIR = Path.cwd()

# OAuth scopes that the gateway needs.
CALENDAR_SCOPES = (
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000

# Default host/port for the SSE transport of the MCP tool server.
DEFAULT_SSE_HOST = "127.0.0.1"
DEFAULT_SSE_PORT = 9079

DEFAULT_AUTH_METHOD = "google_cloud"
DEFAULT_SERVER_ID = "google-calendar-mcp"
DEFAULT_SERVER_NAME = "Google Calendar Integration"
DEFAULT_SERVER_DESCRIPTION = "Retrieves and manages Google Calendar events"


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class Settings:
    """Process configuration, read once at startup and never mutated."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    environment: str = "development"
    auth_method: str = DEFAULT_AUTH_METHOD
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    google_scopes: tuple[str, ...] = CALENDAR_SCOPES
    oauth_token_file: Path = field(default_factory=lambda: BASE_DIR / "token.json")
    direct_token_file: Path = field(
        default_factory=lambda: BASE_DIR / "direct_auth_token.json"
    )
    server_id: str = DEFAULT_SERVER_ID
    server_name: str = DEFAULT_SERVER_NAME
    server_description: str = DEFAULT_SERVER_DESCRIPTION
    server_version: str = __version__
    sse_host: str = DEFAULT_SSE_HOST
    sse_port: int = DEFAULT_SSE_PORT
    log_level: str | None = None
    log_dir: Path | None = Path("logs")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "INFO" if self.is_production else "DEBUG"

    @classmethod
    def from_env(
        cls, env: Mapping[str, str] | None = None, *, dotenv: bool = True
    ) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (used by tests).
            dotenv: When True and ``env`` is not given, load ``.env`` from the
                working directory first. Existing variables win.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        if env is None:
            if dotenv:
                load_dotenv(BASE_DIR / ".env")
            env = os.environ

        environment = (env.get("APP_ENV") or env.get("NODE_ENV") or "development").lower()

        log_dir_raw = env.get("LOG_DIR", "logs")

        return cls(
            host=env.get("HOST") or DEFAULT_HOST,
            port=_get_int(env, "PORT", DEFAULT_PORT),
            environment=environment,
            auth_method=env.get("AUTH_METHOD") or DEFAULT_AUTH_METHOD,
            google_client_id=env.get("GOOGLE_CLIENT_ID", ""),
            google_client_secret=env.get("GOOGLE_CLIENT_SECRET", ""),
            google_redirect_uri=env.get("GOOGLE_REDIRECT_URI", ""),
            oauth_token_file=Path(
                env.get("GOOGLE_OAUTH_TOKEN_FILE") or BASE_DIR / "token.json"
            ),
            direct_token_file=Path(
                env.get("DIRECT_AUTH_TOKEN_FILE") or BASE_DIR / "direct_auth_token.json"
            ),
            server_id=env.get("MCP_SERVER_ID") or DEFAULT_SERVER_ID,
            server_name=env.get("MCP_SERVER_NAME") or DEFAULT_SERVER_NAME,
            server_description=env.get("MCP_SERVER_DESCRIPTION")
            or DEFAULT_SERVER_DESCRIPTION,
            sse_host=env.get("MCP_SSE_HOST") or DEFAULT_SSE_HOST,
            sse_port=_get_int(env, "MCP_SSE_PORT", DEFAULT_SSE_PORT),
            log_level=env.get("LOG_LEVEL") or None,
            log_dir=Path(log_dir_raw) if log_dir_raw else None,
        )
