"""Google OAuth credential management."""

from calendar_bridge.google.exceptions import (
    AuthError,
    GoogleAuthError,
    NotConfigured,
)
from calendar_bridge.google.oauth import (
    CALENDAR_SCOPES,
    AuthorizedClient,
    ClientState,
    Configured,
    GoogleOAuth,
    TokenPair,
    Unconfigured,
)

__all__ = [
    "GoogleOAuth",
    "AuthorizedClient",
    "TokenPair",
    "ClientState",
    "Configured",
    "Unconfigured",
    "CALENDAR_SCOPES",
    "GoogleAuthError",
    "NotConfigured",
    "AuthError",
]
