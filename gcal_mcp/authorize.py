"""Command-line helper that completes the Google OAuth flow without the HTTP server."""

from __future__ import annotations

import asyncio

from loguru import logger

from .auth import AuthError, GoogleOAuthStrategy
from .bootstrap import build_services
from .config import Settings


async def _exchange(oauth: GoogleOAuthStrategy, code: str) -> bool:
    try:
        await oauth.exchange_code(code)
    except AuthError as exc:
        logger.error(f"Authorization failed: {exc}")
        return False
    return True


def main(settings: Settings | None = None) -> int:
    settings = settings or Settings.from_env()
    services = build_services(settings)
    try:
        url = services.oauth.get_authorization_url()
    except AuthError as exc:
        logger.error(str(exc))
        return 1

    print("Open the following URL in your browser and grant calendar access:\n")
    print(url)
    print()
    code = input("Paste the authorization code here: ").strip()
    if not code:
        logger.error("Authorization code is required")
        return 1

    if not asyncio.run(_exchange(services.oauth, code)):
        return 1
    print(f"Authorization complete. Tokens saved to {settings.oauth_token_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
