"""
Request dispatcher: the single failure-containment boundary of the gateway.

Every request moves through routing, an authentication check, handler
validation and execution. Handlers signal expected failures by raising
``ProtocolException`` subclasses; anything else a collaborator raises becomes
an ``INTERNAL_ERROR``. ``process_request`` never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from . import registry
from .auth.base import PersistedCredentialLoader
from .auth.selector import AuthSelector
from .calendar_service import GoogleCalendarService
from .models import (
    EventCreationData,
    EventDeletionData,
    EventLookup,
    EventQuery,
    EventUpdateData,
    UpcomingQuery,
    validation_problems,
)
from .protocol import (
    BadRequestError,
    EndpointDescriptor,
    ErrorCode,
    NotFoundError,
    ProtocolException,
    ProtocolRequest,
    ProtocolResponse,
    ServerInfo,
    UnauthorizedError,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

Handler = Callable[[ProtocolRequest], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class ServerIdentity:
    id: str
    name: str
    description: str
    version: str


@dataclass(frozen=True, slots=True)
class _Route:
    handler: Handler
    failure_message: str


def parse_parameters(
    model: type[ModelT], payload: Any, prefix: str | None = None
) -> ModelT:
    """
    Validate request parameters against a calendar model.

    Raises:
        BadRequestError: Naming every missing or malformed field.
    """
    if prefix is not None and not isinstance(payload, Mapping):
        raise BadRequestError(f"Missing or invalid parameter(s): {prefix}")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        problems = validation_problems(exc, prefix)
        fields = ", ".join(dict.fromkeys(problem["field"] for problem in problems))
        raise BadRequestError(
            f"Missing or invalid parameter(s): {fields}", details=problems
        ) from exc


class RequestDispatcher:
    """Routes protocol requests to calendar operations."""

    def __init__(
        self,
        selector: AuthSelector,
        calendar: GoogleCalendarService,
        identity: ServerIdentity,
        endpoints: tuple[EndpointDescriptor, ...] | None = None,
    ) -> None:
        endpoints = endpoints if endpoints is not None else registry.list_endpoints()
        self._selector = selector
        self._calendar = calendar
        self._endpoints = registry.index_endpoints(endpoints)
        self._server_info = ServerInfo(
            id=identity.id,
            name=identity.name,
            description=identity.description,
            version=identity.version,
            endpoints=endpoints,
        )
        self._routes: dict[str, _Route] = {
            registry.AUTH_URL: _Route(
                self._get_auth_url, "Failed to generate authentication URL"
            ),
            registry.AUTH_CALLBACK: _Route(
                self._handle_auth_callback, "Failed to authenticate with Google"
            ),
            registry.CALENDARS: _Route(
                self._get_calendars, "Failed to fetch calendar list"
            ),
            registry.EVENTS: _Route(self._get_events, "Failed to fetch calendar events"),
            registry.EVENTS_UPCOMING: _Route(
                self._get_upcoming_events, "Failed to fetch upcoming events"
            ),
            registry.EVENTS_CREATE: _Route(
                self._create_event, "Failed to create calendar event"
            ),
            registry.EVENTS_UPDATE: _Route(
                self._update_event, "Failed to update calendar event"
            ),
            registry.EVENTS_DELETE: _Route(
                self._delete_event, "Failed to delete calendar event"
            ),
            registry.EVENTS_DETAIL: _Route(
                self._get_event_detail, "Failed to fetch event details"
            ),
        }
        unbound = set(self._endpoints) - set(self._routes)
        if unbound:
            raise ValueError(f"No handler bound for: {', '.join(sorted(unbound))}")

    def get_server_info(self) -> ServerInfo:
        return self._server_info

    async def process_request(self, request: ProtocolRequest) -> ProtocolResponse:
        route = self._routes.get(request.endpoint)
        try:
            if route is None or request.endpoint not in self._endpoints:
                raise NotFoundError(f"Endpoint {request.endpoint} not found")
            if request.endpoint not in registry.PUBLIC_ENDPOINTS:
                await self._ensure_authenticated()
            data = await route.handler(request)
        except ProtocolException as exc:
            logger.info(f"{request.method} {request.endpoint} rejected: {exc.message}")
            return exc.to_response()
        except Exception as exc:  # noqa: BLE001 - contain every collaborator failure
            logger.error(f"{route.failure_message} ({request.endpoint}): {exc}")
            return ProtocolResponse.fail(
                ErrorCode.INTERNAL_ERROR, route.failure_message, str(exc)
            )

        return ProtocolResponse.ok(data)

    async def _ensure_authenticated(self) -> None:
        if await self._selector.is_authenticated():
            return

        strategy = self._selector.active
        if isinstance(strategy, PersistedCredentialLoader):
            await strategy.load_persisted_credentials()
            if await self._selector.is_authenticated():
                return

        raise UnauthorizedError("Not authenticated with Google Calendar")

    async def _get_auth_url(self, request: ProtocolRequest) -> str:
        return self._selector.oauth.get_authorization_url()

    async def _handle_auth_callback(self, request: ProtocolRequest) -> bool:
        code = request.param("code")
        if not isinstance(code, str) or not code:
            raise BadRequestError("Authorization code is required")
        await self._selector.oauth.exchange_code(code)
        return True

    async def _get_calendars(self, request: ProtocolRequest) -> Any:
        return await self._calendar.list_calendars()

    async def _get_events(self, request: ProtocolRequest) -> Any:
        query = parse_parameters(EventQuery, request.parameters)
        return await self._calendar.list_events(query)

    async def _get_upcoming_events(self, request: ProtocolRequest) -> Any:
        query = parse_parameters(UpcomingQuery, request.parameters)
        return await self._calendar.get_upcoming_events(query.max_results)

    async def _create_event(self, request: ProtocolRequest) -> Any:
        data = parse_parameters(
            EventCreationData, request.param("eventData"), prefix="eventData"
        )
        return await self._calendar.create_event(data)

    async def _update_event(self, request: ProtocolRequest) -> Any:
        data = parse_parameters(
            EventUpdateData, request.param("eventData"), prefix="eventData"
        )
        return await self._calendar.update_event(data)

    async def _delete_event(self, request: ProtocolRequest) -> bool:
        data = parse_parameters(
            EventDeletionData, request.param("deleteData"), prefix="deleteData"
        )
        await self._calendar.delete_event(data)
        return True

    async def _get_event_detail(self, request: ProtocolRequest) -> Any:
        lookup = parse_parameters(EventLookup, request.parameters)
        return await self._calendar.get_event(lookup.calendar_id, lookup.event_id)
