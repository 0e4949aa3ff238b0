"""Google Calendar API command layer."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httplib2
from google.auth import exceptions as google_auth_exceptions
from googleapiclient.errors import HttpError

from calendar_bridge.calendar.exceptions import ServiceNotConfigured, UpstreamError
from calendar_bridge.calendar.models import EventDraft, event_body
from calendar_bridge.config import CalendarDefaults
from calendar_bridge.google import GoogleOAuth, Unconfigured

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 10


def video_link_request() -> dict[str, Any]:
    """Conference data asking Google to generate a Meet link."""
    return {
        "createRequest": {
            "requestId": uuid.uuid4().hex,
            "conferenceSolutionKey": {"type": "hangoutsMeet"},
        }
    }


def _send_updates(send_notifications: bool) -> str:
    return "all" if send_notifications else "none"


class CalendarClient:
    """Google Calendar commands on top of a shared credential manager.

    Every command reads the authorized client once when it starts and uses
    that snapshot for all of its upstream calls. Tokens stored while a
    command is running only affect later commands.

    Usage:
        auth = GoogleOAuth(load_oauth_config())
        client = CalendarClient(auth)

        # After auth.exchange_code(...) or auth.set_tokens(...)
        calendars = client.list_calendars()
        event = client.create_event(
            EventDraft(
                summary="Standup",
                start=TimePoint("2025-01-01T09:00:00Z"),
                end=TimePoint("2025-01-01T09:30:00Z"),
            )
        )

    Note:
        ``add_attendees`` and ``add_video_link`` read the event and write it
        back without a precondition, so a concurrent edit made between the
        two calls is overwritten.
    """

    def __init__(
        self,
        auth: GoogleOAuth,
        defaults: CalendarDefaults | None = None,
    ) -> None:
        """Initialize Calendar client.

        Args:
            auth: Credential manager holding the current tokens.
            defaults: Default calendar, video link policy and retry settings.
        """
        self._auth = auth
        self.defaults = defaults or CalendarDefaults()

    def _get_service(self) -> Any:
        """Snapshot the authorized client and build a Calendar API service."""
        state = self._auth.client_state()
        if isinstance(state, Unconfigured) or not state.client.is_authorized:
            raise ServiceNotConfigured()
        return state.client.build_service("calendar", "v3")

    def _calendar_id(self, calendar_id: str | None) -> str:
        return calendar_id or self.defaults.calendar_id

    def _execute(self, request: Any, action: str, num_retries: int = 0) -> Any:
        """Run an API request, wrapping failures in UpstreamError."""
        try:
            return request.execute(num_retries=num_retries)
        except HttpError as e:
            logger.error(f"Failed to {action}: {e}")
            raise UpstreamError(
                f"Failed to {action}: {e.reason}",
                status_code=e.resp.status,
                reason=e.reason,
                details=e.error_details or None,
            ) from e
        except (
            httplib2.HttpLib2Error,
            google_auth_exceptions.GoogleAuthError,
            OSError,
        ) as e:
            logger.error(f"Failed to {action}: {e}")
            raise UpstreamError(f"Failed to {action}: {e}") from e

    def _read(self, request: Any, action: str) -> Any:
        return self._execute(request, action, num_retries=self.defaults.read_retries)

    # =========================================================================
    # Calendars
    # =========================================================================

    def list_calendars(self) -> list[dict[str, Any]]:
        """List all calendars on the user's calendar list.

        Returns:
            Calendar list entries, empty if there are none.
        """
        service = self._get_service()
        results = self._read(service.calendarList().list(), "get calendars")
        return results.get("items", []) if results else []

    # =========================================================================
    # Events
    # =========================================================================

    def list_events(
        self,
        calendar_id: str | None = None,
        time_min: datetime | str | None = None,
        time_max: datetime | str | None = None,
        max_results: int | None = None,
    ) -> list[dict[str, Any]]:
        """List single event occurrences ordered by start time.

        Args:
            calendar_id: Calendar ID. Defaults to "primary".
            time_min: Lower bound for event end time.
            time_max: Upper bound for event start time.
            max_results: Maximum number of events to return. Defaults to 10.

        Returns:
            Event resources, empty if there are none.
        """
        service = self._get_service()

        kwargs: dict[str, Any] = {
            "calendarId": self._calendar_id(calendar_id),
            "maxResults": max_results if max_results is not None else DEFAULT_MAX_RESULTS,
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if time_min is not None:
            kwargs["timeMin"] = self._format_datetime(time_min)
        if time_max is not None:
            kwargs["timeMax"] = self._format_datetime(time_max)

        results = self._read(service.events().list(**kwargs), "get events")
        return results.get("items", []) if results else []

    def get_event(self, event_id: str, calendar_id: str | None = None) -> dict[str, Any]:
        """Get a specific event.

        Raises:
            UpstreamError: With status 404 if the event does not exist.
        """
        service = self._get_service()
        return self._read(
            service.events().get(calendarId=self._calendar_id(calendar_id), eventId=event_id),
            "get event",
        )

    def create_event(
        self,
        event: EventDraft | Mapping[str, Any],
        calendar_id: str | None = None,
        send_notifications: bool = False,
        add_video_link: bool | None = None,
    ) -> dict[str, Any]:
        """Create a new event.

        Args:
            event: Event to create.
            calendar_id: Calendar ID. Defaults to "primary".
            send_notifications: Email invitations to attendees.
            add_video_link: Have Google generate a Meet link. Defaults to the
                configured policy (on unless disabled).

        Returns:
            The created event, including its Google-assigned id.
        """
        service = self._get_service()
        if add_video_link is None:
            add_video_link = self.defaults.add_video_link

        body = event_body(event)
        kwargs: dict[str, Any] = {
            "calendarId": self._calendar_id(calendar_id),
            "body": body,
            "sendUpdates": _send_updates(send_notifications),
        }
        if add_video_link:
            body["conferenceData"] = video_link_request()
            kwargs["conferenceDataVersion"] = 1

        result = self._execute(service.events().insert(**kwargs), "create event")
        logger.info(f"Event created: {result.get('id')}")
        return result

    def update_event(
        self,
        event_id: str,
        event: EventDraft | Mapping[str, Any],
        calendar_id: str | None = None,
        send_notifications: bool = False,
    ) -> dict[str, Any]:
        """Replace an existing event's fields.

        Returns:
            The updated event.
        """
        service = self._get_service()
        result = self._execute(
            service.events().update(
                calendarId=self._calendar_id(calendar_id),
                eventId=event_id,
                body=event_body(event),
                sendUpdates=_send_updates(send_notifications),
            ),
            "update event",
        )
        logger.info(f"Event updated: {event_id}")
        return result

    def delete_event(self, event_id: str, calendar_id: str | None = None) -> None:
        """Delete an event."""
        service = self._get_service()
        self._execute(
            service.events().delete(calendarId=self._calendar_id(calendar_id), eventId=event_id),
            "delete event",
        )
        logger.info(f"Event deleted: {event_id}")

    def add_attendees(
        self,
        event_id: str,
        emails: list[str],
        calendar_id: str | None = None,
        send_notifications: bool = True,
    ) -> dict[str, Any]:
        """Append attendees to an existing event.

        Existing attendees are kept as they are; new emails go after them.
        Emails already on the event are skipped.

        Returns:
            The updated event.
        """
        if not emails:
            raise ValueError("At least one attendee email is required")

        service = self._get_service()
        calendar_id = self._calendar_id(calendar_id)

        current = self._read(
            service.events().get(calendarId=calendar_id, eventId=event_id), "get event"
        )

        attendees = list(current.get("attendees") or [])
        known = {a.get("email", "").lower() for a in attendees}
        for email in emails:
            if email.lower() not in known:
                attendees.append({"email": email})
                known.add(email.lower())
        current["attendees"] = attendees

        result = self._execute(
            service.events().update(
                calendarId=calendar_id,
                eventId=event_id,
                body=current,
                sendUpdates=_send_updates(send_notifications),
            ),
            "add attendees",
        )
        logger.info(f"Attendees added to event: {event_id}")
        return result

    def add_video_link(
        self,
        event_id: str,
        calendar_id: str | None = None,
        send_notifications: bool = True,
    ) -> dict[str, Any]:
        """Attach a generated Meet link to an existing event.

        Returns:
            The updated event.
        """
        service = self._get_service()
        calendar_id = self._calendar_id(calendar_id)

        current = self._read(
            service.events().get(calendarId=calendar_id, eventId=event_id), "get event"
        )
        current["conferenceData"] = video_link_request()

        result = self._execute(
            service.events().update(
                calendarId=calendar_id,
                eventId=event_id,
                body=current,
                conferenceDataVersion=1,
                sendUpdates=_send_updates(send_notifications),
            ),
            "add video link",
        )
        logger.info(f"Video link added to event: {event_id}")
        return result

    def _format_datetime(self, dt: datetime | str) -> str:
        """Format datetime for API."""
        if isinstance(dt, str):
            return dt
        return dt.isoformat() + "Z" if dt.tzinfo is None else dt.isoformat()
