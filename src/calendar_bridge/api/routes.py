"""Google Calendar router.

Endpoints:
    GET    /google-calendar/auth-url                       -> consent URL
    GET    /google-calendar/auth/callback?code=            -> exchange code for tokens
    POST   /google-calendar/auth/tokens                    -> store existing tokens
    GET    /google-calendar/auth/status                    -> token status
    GET    /google-calendar/calendars                      -> list calendars
    GET    /google-calendar/events                         -> list events
    GET    /google-calendar/events/{eventId}               -> get event
    POST   /google-calendar/events                         -> create event
    POST   /google-calendar/events/{eventId}/attendees     -> add attendees
    POST   /google-calendar/events/{eventId}/google-meet   -> add Meet link
    PUT    /google-calendar/events/{eventId}               -> replace event
    DELETE /google-calendar/events/{eventId}               -> delete event

Routes are plain ``def`` functions: the core makes blocking calls, so FastAPI
runs them in its threadpool.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request, status

from calendar_bridge.api.schemas import (
    AddAttendeesRequest,
    AuthUrlResponse,
    CreateEventRequest,
    MessageResponse,
    TokenRequest,
)
from calendar_bridge.calendar import CalendarClient
from calendar_bridge.google import GoogleOAuth


router = APIRouter(prefix="/google-calendar", tags=["google-calendar"])


def get_auth(request: Request) -> GoogleOAuth:
    return request.app.state.auth


def get_calendar(request: Request) -> CalendarClient:
    return request.app.state.calendar


# ---------------------------------------------------------------------------
# AUTH
# ---------------------------------------------------------------------------


@router.get("/auth-url", response_model=AuthUrlResponse)
def get_auth_url(
    state: str | None = Query(None, description="Opaque value echoed back to the callback"),
    auth: GoogleOAuth = Depends(get_auth),
):
    """Get the OAuth2 authorization URL."""
    return {"authUrl": auth.get_authorization_url(state=state)}


@router.get("/auth/callback", response_model=MessageResponse)
def handle_auth_callback(
    code: str = Query(..., description="Authorization code from Google"),
    auth: GoogleOAuth = Depends(get_auth),
):
    """Handle the OAuth2 callback by exchanging the code for tokens."""
    auth.exchange_code(code)
    return {"message": "Authentication successful"}


@router.post("/auth/tokens", response_model=MessageResponse)
def set_tokens(body: TokenRequest, auth: GoogleOAuth = Depends(get_auth)):
    """Store tokens obtained elsewhere, replacing the current ones."""
    auth.set_tokens(body.model_dump(exclude_none=True))
    return {"message": "Tokens stored"}


@router.get("/auth/status")
def get_auth_status(auth: GoogleOAuth = Depends(get_auth)) -> dict[str, Any]:
    """Report whether tokens are set and when they expire."""
    return auth.get_token_info()


# ---------------------------------------------------------------------------
# CALENDARS & EVENTS
# ---------------------------------------------------------------------------


@router.get("/calendars")
def get_calendars(calendar: CalendarClient = Depends(get_calendar)) -> list[dict[str, Any]]:
    """Get the list of calendars."""
    return calendar.list_calendars()


@router.get("/events")
def get_events(
    calendar_id: str | None = Query(None, alias="calendarId", description="Defaults to primary"),
    time_min: str | None = Query(None, alias="timeMin", description="ISO-8601 lower bound"),
    time_max: str | None = Query(None, alias="timeMax", description="ISO-8601 upper bound"),
    max_results: int | None = Query(None, alias="maxResults", ge=1, le=2500),
    calendar: CalendarClient = Depends(get_calendar),
) -> list[dict[str, Any]]:
    """Get events from a calendar, ordered by start time."""
    return calendar.list_events(
        calendar_id=calendar_id,
        time_min=time_min,
        time_max=time_max,
        max_results=max_results,
    )


@router.get("/events/{event_id}")
def get_event(
    event_id: str,
    calendar_id: str | None = Query(None, alias="calendarId"),
    calendar: CalendarClient = Depends(get_calendar),
) -> dict[str, Any]:
    """Get a specific event."""
    return calendar.get_event(event_id, calendar_id=calendar_id)


@router.post("/events", status_code=status.HTTP_201_CREATED)
def create_event(
    body: CreateEventRequest,
    calendar_id: str | None = Query(None, alias="calendarId"),
    send_notifications: bool = Query(False, alias="sendNotifications"),
    add_google_meet: bool | None = Query(
        None, alias="addGoogleMeet", description="Add a Google Meet link (default: true)"
    ),
    calendar: CalendarClient = Depends(get_calendar),
) -> dict[str, Any]:
    """Create a new event."""
    return calendar.create_event(
        body.to_draft(),
        calendar_id=calendar_id,
        send_notifications=send_notifications,
        add_video_link=add_google_meet,
    )


@router.post("/events/{event_id}/attendees")
def add_attendees(
    event_id: str,
    body: AddAttendeesRequest,
    calendar_id: str | None = Query(None, alias="calendarId"),
    send_notifications: bool = Query(True, alias="sendNotifications"),
    calendar: CalendarClient = Depends(get_calendar),
) -> dict[str, Any]:
    """Add attendees to an existing event."""
    return calendar.add_attendees(
        event_id,
        [str(email) for email in body.attendees],
        calendar_id=calendar_id,
        send_notifications=send_notifications,
    )


@router.post("/events/{event_id}/google-meet")
def add_google_meet(
    event_id: str,
    calendar_id: str | None = Query(None, alias="calendarId"),
    send_notifications: bool = Query(True, alias="sendNotifications"),
    calendar: CalendarClient = Depends(get_calendar),
) -> dict[str, Any]:
    """Add a Google Meet link to an existing event."""
    return calendar.add_video_link(
        event_id,
        calendar_id=calendar_id,
        send_notifications=send_notifications,
    )


@router.put("/events/{event_id}")
def update_event(
    event_id: str,
    event: dict[str, Any] = Body(..., description="Calendar v3 event resource"),
    calendar_id: str | None = Query(None, alias="calendarId"),
    send_notifications: bool = Query(False, alias="sendNotifications"),
    calendar: CalendarClient = Depends(get_calendar),
) -> dict[str, Any]:
    """Replace an existing event."""
    return calendar.update_event(
        event_id,
        event,
        calendar_id=calendar_id,
        send_notifications=send_notifications,
    )


@router.delete("/events/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: str,
    calendar_id: str | None = Query(None, alias="calendarId"),
    calendar: CalendarClient = Depends(get_calendar),
):
    """Delete an event."""
    calendar.delete_event(event_id, calendar_id=calendar_id)
    return {"message": "Event deleted successfully"}
