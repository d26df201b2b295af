"""Pydantic models for the calendar payloads accepted by the gateway."""

from __future__ import annotations

from datetime import date as date_cls, datetime
from typing import Any, Iterable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)


def _parse_iso_datetime(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class CalendarModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)

    def to_google(self, *, exclude: Iterable[str] = ()) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, exclude=set(exclude))


class EventDateTime(CalendarModel):
    """A single event boundary: either a timed instant or an all-day date."""

    date_time: str | None = Field(
        default=None,
        alias="dateTime",
        description="ISO8601 timestamp for timed events.",
    )
    date: str | None = Field(default=None, description="YYYY-MM-DD for all-day events.")
    time_zone: str | None = Field(
        default=None,
        alias="timeZone",
        description="Optional IANA timezone identifier (e.g. 'America/New_York').",
    )

    @field_validator("date_time")
    @classmethod
    def check_date_time(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                _parse_iso_datetime(value)
            except ValueError as exc:
                raise ValueError(f"'{value}' is not an ISO8601 timestamp") from exc
        return value

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                date_cls.fromisoformat(value)
            except ValueError as exc:
                raise ValueError(f"'{value}' is not a YYYY-MM-DD date") from exc
        return value

    @model_validator(mode="after")
    def require_value(self) -> "EventDateTime":
        if not self.date_time and not self.date:
            raise ValueError("either dateTime or date is required")
        return self


class EventAttendee(CalendarModel):
    email: str = Field(description="Email address of the attendee.")
    display_name: str | None = Field(default=None, alias="displayName")
    response_status: str | None = Field(default=None, alias="responseStatus")
    optional: bool | None = None
    comment: str | None = None
    additional_guests: int | None = Field(default=None, alias="additionalGuests")


class EventReminder(CalendarModel):
    method: str
    minutes: int


class EventReminders(CalendarModel):
    use_default: bool = Field(alias="useDefault")
    overrides: list[EventReminder] | None = None


class EventQuery(CalendarModel):
    calendar_id: str = Field(
        alias="calendarId",
        min_length=1,
        description="Calendar identifier or 'primary' for the signed-in user.",
    )
    time_min: str | None = Field(default=None, alias="timeMin")
    time_max: str | None = Field(default=None, alias="timeMax")
    max_results: int | None = Field(
        default=None,
        alias="maxResults",
        ge=1,
        le=2500,
        description="Maximum number of events to return (Google allows up to 2500).",
    )
    single_events: bool = Field(default=True, alias="singleEvents")
    order_by: str = Field(default="startTime", alias="orderBy")
    page_token: str | None = Field(default=None, alias="pageToken")
    q: str | None = Field(default=None, description="Free-text search query.")

    @field_validator("time_min", "time_max")
    @classmethod
    def check_bounds(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                _parse_iso_datetime(value)
            except ValueError as exc:
                raise ValueError(f"'{value}' is not an ISO8601 timestamp") from exc
        return value


class UpcomingQuery(CalendarModel):
    max_results: int = Field(default=10, alias="maxResults", ge=1, le=2500)


class EventLookup(CalendarModel):
    calendar_id: str = Field(alias="calendarId", min_length=1)
    event_id: str = Field(alias="eventId", min_length=1)


class EventDeletionData(EventLookup):
    pass


class _EventFields(CalendarModel):
    description: str | None = None
    location: str | None = None
    attendees: list[EventAttendee] | None = None
    recurrence: list[str] | None = None
    reminders: EventReminders | None = None
    conference_data: dict[str, Any] | None = Field(default=None, alias="conferenceData")


class EventCreationData(_EventFields):
    calendar_id: str = Field(alias="calendarId", min_length=1)
    summary: str = Field(description="Human-readable title for the event.")
    start: EventDateTime
    end: EventDateTime

    @field_validator("summary")
    @classmethod
    def summary_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("summary must not be empty")
        return value

    def to_body(self) -> dict[str, Any]:
        return self.to_google(exclude=("calendar_id",))


class EventUpdateData(_EventFields):
    """Partial update: fields left unset keep their current value upstream."""

    calendar_id: str = Field(alias="calendarId", min_length=1)
    event_id: str = Field(alias="eventId", min_length=1)
    summary: str | None = None
    start: EventDateTime | None = None
    end: EventDateTime | None = None

    def to_body(self) -> dict[str, Any]:
        return self.to_google(exclude=("calendar_id", "event_id"))


def validation_problems(
    exc: ValidationError, prefix: str | None = None
) -> list[dict[str, str]]:
    """Flatten a pydantic error into JSON-safe {field, message} pairs."""
    problems = []
    for error in exc.errors(include_url=False):
        path = ".".join(str(part) for part in error["loc"])
        if prefix:
            path = f"{prefix}.{path}" if path else prefix
        problems.append({"field": path, "message": error["msg"]})
    return problems
