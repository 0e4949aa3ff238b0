"""Google Calendar commands on top of the OAuth credential manager.

Usage:
    from calendar_bridge.calendar import CalendarClient, EventDraft, TimePoint
    from calendar_bridge.config import load_oauth_config
    from calendar_bridge.google import GoogleOAuth

    auth = GoogleOAuth(load_oauth_config())
    print(auth.get_authorization_url())
    auth.exchange_code(code)

    client = CalendarClient(auth)
    events = client.list_events()
    event = client.create_event(
        EventDraft(
            summary="Team Meeting",
            start=TimePoint("2026-01-25T10:00:00Z"),
            end=TimePoint("2026-01-25T11:00:00Z"),
            attendees=["teammate@example.com"],
        )
    )
"""

from __future__ import annotations

from calendar_bridge.calendar.client import CalendarClient
from calendar_bridge.calendar.exceptions import (
    CalendarError,
    ServiceNotConfigured,
    UpstreamError,
)
from calendar_bridge.calendar.models import EventDraft, TimePoint

__all__ = [
    "CalendarClient",
    "EventDraft",
    "TimePoint",
    "CalendarError",
    "ServiceNotConfigured",
    "UpstreamError",
]
