"""Declarative table of the operations the gateway supports."""

from __future__ import annotations

from .protocol import EndpointDescriptor, EndpointParameter, EndpointReturn

AUTH_URL = "/auth/url"
AUTH_CALLBACK = "/auth/callback"
CALENDARS = "/calendars"
EVENTS = "/events"
EVENTS_UPCOMING = "/events/upcoming"
EVENTS_CREATE = "/events/create"
EVENTS_UPDATE = "/events/update"
EVENTS_DELETE = "/events/delete"
EVENTS_DETAIL = "/events/detail"

# Reachable before the caller has authenticated.
PUBLIC_ENDPOINTS = frozenset({AUTH_URL, AUTH_CALLBACK})

_MAX_RESULTS = EndpointParameter(
    name="maxResults",
    type="number",
    description="Maximum number of events to return",
)

ENDPOINTS: tuple[EndpointDescriptor, ...] = (
    EndpointDescriptor(
        path=AUTH_URL,
        method="GET",
        description="Get Google OAuth2 authorization URL",
        returns=EndpointReturn(
            type="string", description="Authorization URL to redirect the user"
        ),
    ),
    EndpointDescriptor(
        path=AUTH_CALLBACK,
        method="POST",
        description="Handle OAuth2 callback after authorization",
        parameters=(
            EndpointParameter(
                name="code",
                type="string",
                description="Authorization code from Google",
                required=True,
            ),
        ),
        returns=EndpointReturn(
            type="boolean", description="Whether authentication was successful"
        ),
    ),
    EndpointDescriptor(
        path=CALENDARS,
        method="GET",
        description="Get list of available calendars",
        returns=EndpointReturn(
            type="CalendarList", description="List of available calendars"
        ),
    ),
    EndpointDescriptor(
        path=EVENTS,
        method="GET",
        description="Get events from a specific calendar",
        parameters=(
            EndpointParameter(
                name="calendarId",
                type="string",
                description="ID of the calendar to fetch events from",
                required=True,
            ),
            EndpointParameter(
                name="timeMin", type="string", description="Start time in ISO format"
            ),
            EndpointParameter(
                name="timeMax", type="string", description="End time in ISO format"
            ),
            _MAX_RESULTS,
        ),
        returns=EndpointReturn(
            type="CalendarEventsList", description="List of calendar events"
        ),
    ),
    EndpointDescriptor(
        path=EVENTS_UPCOMING,
        method="GET",
        description="Get upcoming events across all calendars",
        parameters=(_MAX_RESULTS,),
        returns=EndpointReturn(
            type="CalendarEvent[]",
            description="List of upcoming events sorted by start time",
        ),
    ),
    EndpointDescriptor(
        path=EVENTS_CREATE,
        method="POST",
        description="Create a new calendar event",
        parameters=(
            EndpointParameter(
                name="eventData",
                type="EventCreationData",
                description="Event data to create",
                required=True,
            ),
        ),
        returns=EndpointReturn(type="CalendarEvent", description="Created event details"),
    ),
    EndpointDescriptor(
        path=EVENTS_UPDATE,
        method="PUT",
        description="Update an existing calendar event",
        parameters=(
            EndpointParameter(
                name="eventData",
                type="EventUpdateData",
                description="Event data to update",
                required=True,
            ),
        ),
        returns=EndpointReturn(type="CalendarEvent", description="Updated event details"),
    ),
    EndpointDescriptor(
        path=EVENTS_DELETE,
        method="DELETE",
        description="Delete a calendar event",
        parameters=(
            EndpointParameter(
                name="deleteData",
                type="EventDeletionData",
                description="Event data to delete",
                required=True,
            ),
        ),
        returns=EndpointReturn(
            type="boolean", description="Whether deletion was successful"
        ),
    ),
    EndpointDescriptor(
        path=EVENTS_DETAIL,
        method="GET",
        description="Get details of a specific event",
        parameters=(
            EndpointParameter(
                name="calendarId",
                type="string",
                description="ID of the calendar",
                required=True,
            ),
            EndpointParameter(
                name="eventId",
                type="string",
                description="ID of the event",
                required=True,
            ),
        ),
        returns=EndpointReturn(
            type="CalendarEvent", description="Detailed event information"
        ),
    ),
)


def list_endpoints() -> tuple[EndpointDescriptor, ...]:
    """Return every registered endpoint in declaration order."""
    return ENDPOINTS


def index_endpoints(
    endpoints: tuple[EndpointDescriptor, ...] = ENDPOINTS,
) -> dict[str, EndpointDescriptor]:
    """Key endpoints by path, rejecting duplicates."""
    index: dict[str, EndpointDescriptor] = {}
    for endpoint in endpoints:
        if endpoint.path in index:
            raise ValueError(f"Duplicate endpoint path: {endpoint.path}")
        index[endpoint.path] = endpoint
    return index
