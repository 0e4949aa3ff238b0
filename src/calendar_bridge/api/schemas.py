"""Pydantic request/response models for the calendar HTTP routes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from calendar_bridge.calendar import EventDraft, TimePoint


class DateTimeModel(BaseModel):
    """Start or end of an event.

    Example:
    {"dateTime": "2025-01-01T09:00:00Z", "timeZone": "Europe/Madrid"}
    """

    model_config = ConfigDict(populate_by_name=True)

    date_time: str = Field(..., alias="dateTime", description="ISO-8601 date-time")
    time_zone: str | None = Field(None, alias="timeZone", description="IANA time zone")

    @field_validator("date_time")
    @classmethod
    def _check_iso(cls, value: str) -> str:
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError(f"dateTime must be an ISO-8601 date-time, got {value!r}") from e
        return value

    def to_time_point(self) -> TimePoint:
        return TimePoint(date_time=self.date_time, time_zone=self.time_zone)


class CreateEventRequest(BaseModel):
    """Body for POST /google-calendar/events."""

    summary: str
    description: str | None = None
    location: str | None = None
    start: DateTimeModel
    end: DateTimeModel
    attendees: list[EmailStr] | None = None

    def to_draft(self) -> EventDraft:
        return EventDraft(
            summary=self.summary,
            start=self.start.to_time_point(),
            end=self.end.to_time_point(),
            description=self.description,
            location=self.location,
            attendees=[str(email) for email in self.attendees] if self.attendees else None,
        )


class AddAttendeesRequest(BaseModel):
    """Body for POST /google-calendar/events/{eventId}/attendees."""

    attendees: list[EmailStr] = Field(..., min_length=1, description="Email addresses to add")


class TokenRequest(BaseModel):
    """Body for POST /google-calendar/auth/tokens.

    Same shape as an OAuth token endpoint response.
    """

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    token_type: str | None = None
    scope: str | None = None
    expires_at: float | None = Field(None, description="Expiry as a Unix timestamp")
    expiry_date: int | None = Field(None, description="Expiry as Unix milliseconds")


class AuthUrlResponse(BaseModel):
    authUrl: str


class MessageResponse(BaseModel):
    message: str
