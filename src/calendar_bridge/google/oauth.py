"""Google OAuth credential management using Authlib.

This module owns the OAuth 2.0 authorization-code flow for the Calendar API:
- Consent URL generation (offline access, calendar scopes)
- Authorization-code exchange
- Direct injection of pre-existing tokens
- The authorized client handle used by the calendar command layer

Tokens are held in memory only and vanish when the process exits.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import httplib2
import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from google.oauth2.credentials import Credentials as GoogleCredentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build

from calendar_bridge.config import OAuthConfig
from calendar_bridge.google.exceptions import AuthError, GoogleAuthError, NotConfigured

logger = logging.getLogger(__name__)


CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]


def _parse_expiry(value: Any) -> datetime | None:
    """Normalize an expiry value to an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported expiry value: {value!r}")


def _parse_scopes(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(scope) for scope in value]


@dataclass(frozen=True)
class TokenPair:
    """An OAuth access token plus its optional refresh token."""

    access_token: str
    refresh_token: str | None = None
    expiry: datetime | None = None
    scopes: list[str] = field(default_factory=list)
    token_type: str = "Bearer"

    def __post_init__(self):
        if not self.access_token:
            raise ValueError("access_token is required")

    @classmethod
    def from_token_response(cls, token: Mapping[str, Any]) -> TokenPair:
        """Build from an OAuth token endpoint response."""
        expiry = token.get("expires_at")
        if expiry is None and token.get("expires_in") is not None:
            expiry = datetime.now(timezone.utc) + timedelta(seconds=int(token["expires_in"]))

        return cls(
            access_token=token.get("access_token"),
            refresh_token=token.get("refresh_token"),
            expiry=_parse_expiry(expiry),
            scopes=_parse_scopes(token.get("scope")),
            token_type=token.get("token_type") or "Bearer",
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TokenPair:
        """Build from a caller-supplied token mapping.

        Accepts the OAuth response shape (access_token, expires_at, scope),
        the Google authorized-user shape (token, expiry, scopes) and the
        millisecond ``expiry_date`` used by Node clients.
        """
        if "access_token" in data and "token" not in data:
            pair = cls.from_token_response(data)
            if pair.expiry is None and data.get("expiry_date"):
                pair = cls(
                    access_token=pair.access_token,
                    refresh_token=pair.refresh_token,
                    expiry=_parse_expiry(int(data["expiry_date"]) / 1000),
                    scopes=pair.scopes,
                    token_type=pair.token_type,
                )
            return pair

        return cls(
            access_token=data.get("token"),
            refresh_token=data.get("refresh_token"),
            expiry=_parse_expiry(data.get("expiry")),
            scopes=_parse_scopes(data.get("scopes") or data.get("scope")),
            token_type=data.get("type") or data.get("token_type") or "Bearer",
        )

    @property
    def is_expired(self) -> bool:
        return self.expiry is not None and self.expiry <= datetime.now(timezone.utc)


class AuthorizedClient:
    """Handle for calling Google APIs with one fixed token pair.

    A new handle is created every time tokens are stored, so a handle read
    at the start of an operation keeps using the same tokens until that
    operation finishes.
    """

    def __init__(
        self,
        config: OAuthConfig,
        tokens: TokenPair | None = None,
        timeout: float | None = None,
    ):
        self.config = config
        self.tokens = tokens
        self.timeout = timeout

    @property
    def is_authorized(self) -> bool:
        return self.tokens is not None

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries.

        Raises:
            GoogleAuthError: If no tokens have been set.
        """
        if self.tokens is None:
            raise GoogleAuthError("No OAuth tokens set")

        expiry = self.tokens.expiry
        return GoogleCredentials(
            token=self.tokens.access_token,
            refresh_token=self.tokens.refresh_token,
            token_uri=GoogleOAuth.TOKEN_URL,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            scopes=self.tokens.scopes or CALENDAR_SCOPES,
            # google-auth compares against naive UTC
            expiry=expiry.astimezone(timezone.utc).replace(tzinfo=None) if expiry else None,
        )

    def build_service(self, service_name: str = "calendar", version: str = "v3"):
        """Build a Google API service with this handle's credentials.

        Each call gets its own HTTP connection; httplib2 connections are not
        safe to share between threads.

        Args:
            service_name: Name of the service (e.g., 'calendar').
            version: API version (e.g., 'v3').

        Returns:
            Google API service object.
        """
        http = AuthorizedHttp(self.get_credentials(), http=httplib2.Http(timeout=self.timeout))
        return build(service_name, version, http=http, cache_discovery=False)


@dataclass(frozen=True)
class Unconfigured:
    """The OAuth configuration is missing or incomplete."""

    missing: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Configured:
    """The OAuth configuration is complete; tokens may or may not be set."""

    client: AuthorizedClient


ClientState = Unconfigured | Configured


class GoogleOAuth:
    """Google OAuth credential manager using Authlib.

    Holds the OAuth client configuration and the current token pair for the
    process. State moves Unconfigured -> Configured -> Authorized and never
    back to Unconfigured.

    Example:
        >>> auth = GoogleOAuth(load_oauth_config())
        >>> url = auth.get_authorization_url()
        >>> # user visits url, Google redirects back with ?code=...
        >>> auth.exchange_code(code)
        >>> service = auth.get_authorized_client().build_service()
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        config: OAuthConfig | None = None,
        scopes: list[str] | None = None,
        request_timeout: float | None = None,
    ):
        """Initialize the credential manager.

        Args:
            config: OAuth client configuration. If given, ``configure`` is
                called immediately.
            scopes: Full scope URLs. Defaults to CALENDAR_SCOPES.
            request_timeout: Timeout in seconds for upstream API calls.
        """
        self.scopes = list(scopes or CALENDAR_SCOPES)
        self.request_timeout = request_timeout

        self._lock = threading.Lock()
        self._state: ClientState = Unconfigured()
        self._config: OAuthConfig | None = None
        self._session: OAuth2Session | None = None
        self._configure_attempted = False

        self.last_stored: datetime | None = None
        self.store_count = 0

        if config is not None:
            self.configure(config)

    def configure(self, config: OAuthConfig) -> ClientState:
        """Apply the OAuth client configuration.

        An incomplete configuration leaves the manager unconfigured for the
        rest of its life; it is not reloaded.

        Returns:
            The resulting client state.

        Raises:
            GoogleAuthError: If configure was already called.
        """
        with self._lock:
            if self._configure_attempted:
                raise GoogleAuthError("OAuth configuration can only be applied once")
            self._configure_attempted = True

            missing = config.missing_fields()
            if missing:
                logger.warning(f"Google Calendar credentials not configured: missing {missing}")
                self._state = Unconfigured(missing=missing)
                return self._state

            self._config = config
            self._session = OAuth2Session(
                client_id=config.client_id,
                client_secret=config.client_secret,
                scope=" ".join(self.scopes),
                redirect_uri=config.redirect_uri,
                token_endpoint=self.TOKEN_URL,
                token_endpoint_auth_method="client_secret_post",
            )
            self._state = Configured(AuthorizedClient(config, timeout=self.request_timeout))

        logger.info("Google OAuth client configured")
        return self._state

    def client_state(self) -> ClientState:
        """Get the current client state."""
        with self._lock:
            return self._state

    def _require_config(self) -> OAuthConfig:
        state = self.client_state()
        if isinstance(state, Unconfigured):
            raise NotConfigured(state.missing)
        return state.client.config

    def get_authorization_url(self, state: str | None = None) -> str:
        """Build the OAuth consent URL.

        Requests offline access so Google issues a refresh token.

        Args:
            state: Optional CSRF token to round-trip through the callback.

        Returns:
            Authorization URL for the user to visit.

        Raises:
            NotConfigured: If the OAuth configuration is incomplete.
        """
        config = self._require_config()
        return prepare_grant_uri(
            self.AUTHORIZE_URL,
            client_id=config.client_id,
            response_type="code",
            redirect_uri=config.redirect_uri,
            scope=self.scopes,
            state=state,
            access_type="offline",
        )

    def exchange_code(self, code: str) -> TokenPair:
        """Exchange an authorization code for tokens and store them.

        Codes are single-use, so failures are never retried.

        Args:
            code: Authorization code from the OAuth callback.

        Returns:
            The stored token pair.

        Raises:
            NotConfigured: If the OAuth configuration is incomplete.
            AuthError: If the exchange fails.
        """
        self._require_config()
        if not code:
            raise AuthError("Authorization code is required")

        try:
            token = self._session.fetch_token(
                self.TOKEN_URL,
                grant_type="authorization_code",
                code=code,
            )
            tokens = TokenPair.from_token_response(token)
        except AuthlibBaseError as e:
            logger.error(f"Failed to exchange authorization code: {e}")
            raise AuthError(
                f"Authorization code exchange failed: {e}",
                error=e.error,
                description=e.description,
            ) from e
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to exchange authorization code: {e}")
            raise AuthError(f"Authorization code exchange failed: {e}") from e

        self._store(tokens)
        logger.info("Google Calendar credentials set successfully")
        return tokens

    def set_tokens(self, tokens: TokenPair | Mapping[str, Any]) -> None:
        """Store pre-existing tokens, replacing any current pair.

        Raises:
            NotConfigured: If the OAuth configuration is incomplete.
        """
        self._require_config()
        if not isinstance(tokens, TokenPair):
            tokens = TokenPair.from_dict(tokens)
        self._store(tokens)
        logger.info("Google Calendar credentials set from supplied tokens")

    def _store(self, tokens: TokenPair):
        with self._lock:
            config = self._state.client.config
            self._state = Configured(AuthorizedClient(config, tokens, timeout=self.request_timeout))
            self.last_stored = datetime.now(timezone.utc)
            self.store_count += 1

        logger.info(f"Tokens stored with scopes: {tokens.scopes}")

    def get_authorized_client(self) -> AuthorizedClient:
        """Get the handle reflecting the most recently stored tokens.

        Raises:
            NotConfigured: If the OAuth configuration is incomplete.
        """
        state = self.client_state()
        if isinstance(state, Unconfigured):
            raise NotConfigured(state.missing)
        return state.client

    def is_authorized(self) -> bool:
        """Check if tokens have been set."""
        state = self.client_state()
        return isinstance(state, Configured) and state.client.is_authorized

    def get_token_info(self) -> dict[str, Any]:
        """Get information about the current token.

        Returns:
            Dictionary with token status, scopes, expiry, etc.
        """
        state = self.client_state()
        if isinstance(state, Unconfigured):
            return {"status": "unconfigured", "missing": state.missing}

        tokens = state.client.tokens
        if tokens is None:
            return {"status": "no_token"}

        if tokens.expiry:
            expires_in = (tokens.expiry - datetime.now(timezone.utc)).total_seconds()
            expires_str = str(timedelta(seconds=int(max(0, expires_in))))
        else:
            expires_str = "unknown"

        return {
            "status": "expired" if tokens.is_expired else "valid",
            "scopes": tokens.scopes,
            "expires_in": expires_str,
            "has_refresh_token": bool(tokens.refresh_token),
            "store_count": self.store_count,
            "last_stored": self.last_stored.isoformat() if self.last_stored else None,
        }
