"""HTTP transport for the calendar service."""

from calendar_bridge.api.app import create_app

__all__ = ["create_app"]
