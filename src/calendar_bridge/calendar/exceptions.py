"""Google Calendar command exceptions."""

from __future__ import annotations

from typing import Any


class CalendarError(Exception):
    """Base exception for calendar command errors."""


class ServiceNotConfigured(CalendarError):
    """Raised when a command runs without an authorized client."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Google Calendar not properly configured. Complete OAuth authorization first."
        )


class UpstreamError(CalendarError):
    """Raised when the Calendar API call fails.

    Carries the upstream status code and reason when the API returned an
    HTTP error; both are None for transport failures.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        details: Any = None,
    ):
        self.status_code = status_code
        self.reason = reason
        self.details = details
        super().__init__(message)
