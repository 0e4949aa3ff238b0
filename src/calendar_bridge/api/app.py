"""FastAPI application factory.

Run with:
    uvicorn calendar_bridge.api.app:create_app --factory
or:
    calendar-bridge serve
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from calendar_bridge.api.routes import router
from calendar_bridge.calendar import CalendarClient, ServiceNotConfigured, UpstreamError
from calendar_bridge.config import (
    CalendarDefaults,
    OAuthConfig,
    load_calendar_defaults,
    load_oauth_config,
)
from calendar_bridge.google import AuthError, GoogleOAuth, NotConfigured

logger = logging.getLogger(__name__)


def _not_configured(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


def _auth_error(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "error": exc.error, "error_description": exc.description},
    )


def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code or status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc), "reason": exc.reason, "details": exc.details},
    )


def _value_error(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


def create_app(
    oauth_config: OAuthConfig | None = None,
    defaults: CalendarDefaults | None = None,
    auth: GoogleOAuth | None = None,
) -> FastAPI:
    """Create the calendar service application.

    Args:
        oauth_config: OAuth client configuration. Read from the environment
            if not provided.
        defaults: Calendar command defaults. Read from the environment if
            not provided.
        auth: Pre-built credential manager; overrides ``oauth_config``.

    Returns:
        Configured FastAPI application.
    """
    defaults = defaults or load_calendar_defaults()
    if auth is None:
        auth = GoogleOAuth(
            oauth_config or load_oauth_config(),
            request_timeout=defaults.request_timeout,
        )

    app = FastAPI(
        title="Google Calendar Bridge",
        description="OAuth2 authorization and event management for Google Calendar",
    )

    # One credential manager per process, shared by every request
    app.state.auth = auth
    app.state.calendar = CalendarClient(auth, defaults)

    app.add_exception_handler(NotConfigured, _not_configured)
    app.add_exception_handler(ServiceNotConfigured, _not_configured)
    app.add_exception_handler(AuthError, _auth_error)
    app.add_exception_handler(UpstreamError, _upstream_error)
    app.add_exception_handler(ValueError, _value_error)

    app.include_router(router)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    logger.info(f"Calendar service created (authorized: {auth.is_authorized()})")
    return app
