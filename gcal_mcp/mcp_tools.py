"""MCP tool surface: the gateway's calendar operations as FastMCP tools."""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP
from starlette.applications import Starlette

from . import registry
from .dispatcher import RequestDispatcher
from .models import EventAttendee, EventDateTime
from .protocol import ErrorCode, ProtocolError, ProtocolRequest

AUTH_HELP = (
    "Google authorization is required. Open the URL returned by the "
    "`get_authorization_url` tool (or run `python -m gcal_mcp authorize`), "
    "complete the browser sign-in, then retry the tool."
)


def _error_text(error: ProtocolError) -> str:
    if error.code is ErrorCode.UNAUTHORIZED:
        return AUTH_HELP
    if error.details:
        return f"{error.message}: {error.details}"
    return error.message


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


class CalendarToolset:
    """Tool implementations; each one is a single dispatched protocol request."""

    def __init__(self, dispatcher: RequestDispatcher) -> None:
        self._dispatcher = dispatcher

    async def _call(
        self, endpoint: str, method: str, parameters: dict[str, Any] | None = None
    ) -> Any:
        response = await self._dispatcher.process_request(
            ProtocolRequest(endpoint=endpoint, method=method, parameters=parameters or {})
        )
        if not response.success:
            raise RuntimeError(_error_text(response.error))
        return response.data

    async def get_authorization_url(self) -> str:
        """Return the Google consent URL the user must open to grant access."""
        return await self._call(registry.AUTH_URL, "GET")

    async def list_calendars(self) -> dict[str, Any]:
        return await self._call(registry.CALENDARS, "GET")

    async def list_events(
        self,
        calendar_id: str = "primary",
        max_results: int = 10,
        time_min: str | None = None,
        time_max: str | None = None,
        query: str | None = None,
    ) -> dict[str, Any]:
        """
        Return up to ``max_results`` events ordered by start time.

        Args:
            calendar_id: Target calendar identifier, or ``primary`` for the signed-in user.
            max_results: Maximum number of events to return (Google allows up to 2500).
            time_min: Lower bound (inclusive, ISO8601) for an event's end time.
            time_max: Upper bound (exclusive, ISO8601) for an event's start time.
            query: Optional free-text search query.
        """
        return await self._call(
            registry.EVENTS,
            "GET",
            _compact(
                {
                    "calendarId": calendar_id,
                    "maxResults": max_results,
                    "timeMin": time_min,
                    "timeMax": time_max,
                    "q": query,
                }
            ),
        )

    async def get_event(
        self, event_id: str, calendar_id: str = "primary"
    ) -> dict[str, Any]:
        return await self._call(
            registry.EVENTS_DETAIL,
            "GET",
            {"calendarId": calendar_id, "eventId": event_id},
        )

    async def upcoming_events(self, max_results: int = 10) -> list[dict[str, Any]]:
        return await self._call(
            registry.EVENTS_UPCOMING, "GET", {"maxResults": max_results}
        )

    async def create_event(
        self,
        summary: str,
        start: EventDateTime,
        end: EventDateTime,
        calendar_id: str = "primary",
        description: str | None = None,
        location: str | None = None,
        attendees: list[EventAttendee] | None = None,
    ) -> dict[str, Any]:
        event_data = _compact(
            {
                "calendarId": calendar_id,
                "summary": summary,
                "description": description,
                "location": location,
                "start": start.to_google(),
                "end": end.to_google(),
            }
        )
        if attendees:
            event_data["attendees"] = [attendee.to_google() for attendee in attendees]
        return await self._call(
            registry.EVENTS_CREATE, "POST", {"eventData": event_data}
        )

    async def update_event(
        self,
        event_id: str,
        calendar_id: str = "primary",
        summary: str | None = None,
        description: str | None = None,
        location: str | None = None,
        start: EventDateTime | None = None,
        end: EventDateTime | None = None,
        attendees: list[EventAttendee] | None = None,
    ) -> dict[str, Any]:
        event_data = _compact(
            {
                "calendarId": calendar_id,
                "eventId": event_id,
                "summary": summary,
                "description": description,
                "location": location,
                "start": start.to_google() if start is not None else None,
                "end": end.to_google() if end is not None else None,
            }
        )
        if attendees is not None:
            event_data["attendees"] = [attendee.to_google() for attendee in attendees]
        if len(event_data) == 2:
            raise RuntimeError("No updates were provided.")
        return await self._call(
            registry.EVENTS_UPDATE, "PUT", {"eventData": event_data}
        )

    async def delete_event(
        self, event_id: str, calendar_id: str = "primary"
    ) -> dict[str, Any]:
        await self._call(
            registry.EVENTS_DELETE,
            "DELETE",
            {"deleteData": {"calendarId": calendar_id, "eventId": event_id}},
        )
        return {"deleted": True, "eventId": event_id, "calendarId": calendar_id}


TOOL_DESCRIPTIONS = {
    "get_authorization_url": "Get the Google OAuth URL that grants calendar access.",
    "list_calendars": "List calendars visible to the authorized Google account.",
    "list_events": "List events in a Google Calendar.",
    "get_event": "Get the details of a single Google Calendar event.",
    "upcoming_events": "List the next events across all calendars, soonest first.",
    "create_event": "Create a new Google Calendar event.",
    "update_event": "Update an existing Google Calendar event.",
    "delete_event": "Delete a Google Calendar event.",
}


def build_mcp_server(dispatcher: RequestDispatcher) -> FastMCP:
    calendar_server = FastMCP(
        "google-calendar",
        instructions=(
            "Tools that let you browse, create, update, and delete Google Calendar "
            "events for the authorized Google account. If an authorization error "
            "occurs, ask the user to open the URL from `get_authorization_url` and retry."
        ),
    )
    toolset = CalendarToolset(dispatcher)
    for name, description in TOOL_DESCRIPTIONS.items():
        calendar_server.tool(description=description, structured_output=True)(
            getattr(toolset, name)
        )
    return calendar_server


def create_app(dispatcher: RequestDispatcher) -> Starlette:
    """Return a Starlette app that exposes the MCP tools via SSE transport."""
    return build_mcp_server(dispatcher).sse_app()
