"""Wires the gateway's components together once per process."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .auth import (
    AuthSelector,
    DirectAuthStrategy,
    GoogleOAuthStrategy,
    JsonTokenStorage,
    OAuthClientConfig,
)
from .calendar_service import GoogleCalendarService
from .config import Settings
from .dispatcher import RequestDispatcher, ServerIdentity


@dataclass(slots=True)
class Services:
    settings: Settings
    oauth: GoogleOAuthStrategy
    direct: DirectAuthStrategy
    selector: AuthSelector
    calendar: GoogleCalendarService
    dispatcher: RequestDispatcher


def build_services(settings: Settings) -> Services:
    oauth = GoogleOAuthStrategy(
        OAuthClientConfig(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
            scopes=settings.google_scopes,
        ),
        JsonTokenStorage(settings.oauth_token_file),
    )
    direct = DirectAuthStrategy(JsonTokenStorage(settings.direct_token_file))
    selector = AuthSelector(settings.auth_method, oauth, direct)
    calendar = GoogleCalendarService(oauth)
    dispatcher = RequestDispatcher(
        selector,
        calendar,
        ServerIdentity(
            id=settings.server_id,
            name=settings.server_name,
            description=settings.server_description,
            version=settings.server_version,
        ),
    )
    return Services(
        settings=settings,
        oauth=oauth,
        direct=direct,
        selector=selector,
        calendar=calendar,
        dispatcher=dispatcher,
    )


async def report_auth_status(services: Services) -> None:
    """Log which strategy is active and whether it is ready to use."""
    selector = services.selector
    strategy = selector.active
    logger.info(f"Using authentication method: {strategy.method.value}")

    if strategy is services.direct:
        logger.info("Direct authentication endpoint available at /auth/direct")
    elif not selector.is_configured():
        logger.warning(
            "Google Cloud OAuth not fully configured. Check your environment variables."
        )

    try:
        await services.oauth.load_persisted_credentials()
        authenticated = await selector.is_authenticated()
    except Exception as exc:  # noqa: BLE001
        logger.error(f"Error checking authentication status: {exc}")
        return

    if authenticated:
        logger.info("User is already authenticated")
    else:
        logger.info("No authentication found. User needs to authenticate.")
