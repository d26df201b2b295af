"""High-level async helpers that wrap the Google Calendar API."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from .auth.oauth import GoogleOAuthStrategy
from .models import (
    EventCreationData,
    EventDeletionData,
    EventQuery,
    EventUpdateData,
)

DEFAULT_MAX_RESULTS = 10


class GoogleCalendarError(RuntimeError):
    """Raised for Google Calendar API failures."""


class GoogleCalendarService:
    """
    Thin async wrapper around the Google Calendar REST API.

    Every call builds its own service object and runs the blocking request in a
    worker thread, so concurrent calls never share an HTTP connection.
    """

    def __init__(self, oauth: GoogleOAuthStrategy) -> None:
        self._oauth = oauth

    async def list_calendars(self) -> dict[str, Any]:
        response = await self._execute(
            lambda service: service.calendarList().list(showDeleted=False)
        )
        return {"items": response.get("items", [])}

    async def list_events(self, query: EventQuery) -> dict[str, Any]:
        request_kwargs: dict[str, Any] = {
            "calendarId": query.calendar_id,
            "maxResults": query.max_results or DEFAULT_MAX_RESULTS,
            "singleEvents": query.single_events,
            "orderBy": query.order_by,
        }
        if query.time_min:
            request_kwargs["timeMin"] = query.time_min
        if query.time_max:
            request_kwargs["timeMax"] = query.time_max
        if query.page_token:
            request_kwargs["pageToken"] = query.page_token
        if query.q:
            request_kwargs["q"] = query.q

        response = await self._execute(
            lambda service: service.events().list(**request_kwargs)
        )
        return {
            "items": response.get("items", []),
            "nextPageToken": response.get("nextPageToken"),
        }

    async def get_event(self, calendar_id: str, event_id: str) -> Mapping[str, Any]:
        return await self._execute(
            lambda service: service.events().get(calendarId=calendar_id, eventId=event_id)
        )

    async def create_event(self, data: EventCreationData) -> Mapping[str, Any]:
        kwargs: dict[str, Any] = {"calendarId": data.calendar_id, "body": data.to_body()}
        if data.conference_data is not None:
            kwargs["conferenceDataVersion"] = 1
        return await self._execute(lambda service: service.events().insert(**kwargs))

    async def update_event(self, data: EventUpdateData) -> Mapping[str, Any]:
        """
        Apply a partial update through ``events.patch``.

        Unlike ``events.update``, which replaces the whole event, fields left
        out of ``data`` keep their current values.
        """
        kwargs: dict[str, Any] = {
            "calendarId": data.calendar_id,
            "eventId": data.event_id,
            "body": data.to_body(),
        }
        if data.conference_data is not None:
            kwargs["conferenceDataVersion"] = 1
        return await self._execute(lambda service: service.events().patch(**kwargs))

    async def delete_event(self, data: EventDeletionData) -> None:
        await self._execute(
            lambda service: service.events().delete(
                calendarId=data.calendar_id, eventId=data.event_id
            )
        )

    async def get_upcoming_events(
        self, max_results: int = DEFAULT_MAX_RESULTS
    ) -> list[Mapping[str, Any]]:
        """
        Return the next ``max_results`` events across every visible calendar.

        Calendars are queried concurrently. A calendar whose events cannot be
        fetched contributes nothing instead of failing the whole call.
        """
        calendars = (await self.list_calendars())["items"]
        now = to_rfc3339(datetime.now(timezone.utc))

        async def fetch(calendar: Mapping[str, Any]) -> list[Mapping[str, Any]]:
            try:
                events = await self.list_events(
                    EventQuery(
                        calendar_id=calendar["id"],
                        time_min=now,
                        max_results=max_results,
                    )
                )
            except Exception as exc:  # noqa: BLE001 - degrade to an empty contribution
                logger.warning(
                    f"Error fetching events for calendar {calendar.get('id')}: {exc}"
                )
                return []
            return events["items"]

        batches = await asyncio.gather(*(fetch(calendar) for calendar in calendars))
        return merge_upcoming(batches, max_results)

    async def _execute(self, make_request: Callable[[Any], Any]) -> Any:
        credentials = await self._oauth.get_credentials()

        def call() -> Any:
            service = build(
                "calendar",
                "v3",
                credentials=credentials,
                cache_discovery=False,
            )
            return make_request(service).execute()

        try:
            result = await asyncio.to_thread(call)
        except HttpError as exc:
            raise GoogleCalendarError(f"Google Calendar API error: {exc}") from exc
        # events().delete() answers with an empty body.
        return result or {}


def to_rfc3339(value: datetime) -> str:
    """Ensure a datetime is timezone aware and convert to RFC3339."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def event_start_key(event: Mapping[str, Any]) -> str:
    """Timed start when present, else the all-day date, else an empty string."""
    start = event.get("start")
    if not isinstance(start, Mapping):
        return ""
    return start.get("dateTime") or start.get("date") or ""


def merge_upcoming(
    batches: Iterable[Iterable[Mapping[str, Any]]], max_results: int
) -> list[Mapping[str, Any]]:
    """
    Concatenate per-calendar results, order them by start and keep the first few.

    Start values are zero-padded ISO strings, so plain string comparison orders
    them chronologically. The sort is stable: equal starts keep fetch order.
    """
    events = [event for batch in batches for event in batch]
    events.sort(key=event_start_key)
    return events[:max_results]
