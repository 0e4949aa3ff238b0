"""Calendar event request models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass
class TimePoint:
    """Start or end of a timed event."""

    date_time: str
    time_zone: str | None = None

    def to_body(self) -> dict[str, str]:
        body = {"dateTime": self.date_time}
        if self.time_zone:
            body["timeZone"] = self.time_zone
        return body

    @classmethod
    def from_body(cls, data: Mapping[str, Any]) -> TimePoint:
        return cls(date_time=data["dateTime"], time_zone=data.get("timeZone"))


@dataclass
class EventDraft:
    """An event to send to the Calendar API.

    Never carries an ``id``; Google assigns one on insert.
    """

    summary: str
    start: TimePoint
    end: TimePoint
    description: str | None = None
    location: str | None = None
    attendees: list[str] | None = None

    def to_body(self) -> dict[str, Any]:
        """Convert to the Calendar v3 event resource shape."""
        body: dict[str, Any] = {
            "summary": self.summary,
            "start": self.start.to_body(),
            "end": self.end.to_body(),
        }
        if self.description is not None:
            body["description"] = self.description
        if self.location is not None:
            body["location"] = self.location
        if self.attendees:
            body["attendees"] = [{"email": email} for email in self.attendees]
        return body


def event_body(event: EventDraft | Mapping[str, Any]) -> dict[str, Any]:
    """Get the wire body for an EventDraft or an already-shaped mapping.

    Plain email strings in a mapping's ``attendees`` become attendee objects.
    """
    if isinstance(event, EventDraft):
        return event.to_body()

    body = dict(event)
    if body.get("attendees"):
        body["attendees"] = [
            {"email": attendee} if isinstance(attendee, str) else attendee
            for attendee in body["attendees"]
        ]
    return body
