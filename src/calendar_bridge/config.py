"""Centralized service configuration.

Configuration comes from the process environment, optionally seeded from a
``.env`` file in the repo root:

    GOOGLE_CLIENT_ID          - OAuth client ID
    GOOGLE_CLIENT_SECRET      - OAuth client secret
    GOOGLE_REDIRECT_URI       - OAuth callback URL
    HOST / PORT / LOG_LEVEL   - HTTP server settings
    CALENDAR_*                - calendar command defaults

This module auto-loads the .env file on import. Values already present in
the environment always win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# __file__ is src/calendar_bridge/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = REPO_ROOT / ".env"

DEFAULT_CALENDAR_ID = "primary"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class OAuthConfig:
    """OAuth client configuration. Immutable for the process lifetime."""

    client_id: str | None
    client_secret: str | None
    redirect_uri: str | None

    def missing_fields(self) -> list[str]:
        """Return the names of absent or empty fields."""
        return [
            name
            for name in ("client_id", "client_secret", "redirect_uri")
            if not getattr(self, name)
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


@dataclass(frozen=True)
class CalendarDefaults:
    """Defaults applied by the calendar command layer."""

    calendar_id: str = DEFAULT_CALENDAR_ID
    add_video_link: bool = True
    request_timeout: float = 30.0
    read_retries: int = 0


@dataclass(frozen=True)
class ServerSettings:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Environment variables take precedence
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def load_oauth_config() -> OAuthConfig:
    """Read the OAuth client configuration from the environment.

    Missing values are kept as None; the credential manager decides what
    an incomplete configuration means.
    """
    return OAuthConfig(
        client_id=os.environ.get("GOOGLE_CLIENT_ID") or None,
        client_secret=os.environ.get("GOOGLE_CLIENT_SECRET") or None,
        redirect_uri=os.environ.get("GOOGLE_REDIRECT_URI") or None,
    )


def load_calendar_defaults() -> CalendarDefaults:
    """Read calendar command defaults from the environment."""
    read_retries = _env_number("CALENDAR_READ_RETRIES", 0, int)
    if read_retries < 0:
        raise ValueError("CALENDAR_READ_RETRIES must not be negative")

    return CalendarDefaults(
        calendar_id=os.environ.get("CALENDAR_DEFAULT_ID") or DEFAULT_CALENDAR_ID,
        add_video_link=_env_bool("CALENDAR_ADD_VIDEO_LINK", True),
        request_timeout=_env_number("CALENDAR_REQUEST_TIMEOUT", 30.0, float),
        read_retries=read_retries,
    )


def load_server_settings() -> ServerSettings:
    """Read HTTP server settings from the environment."""
    return ServerSettings(
        host=os.environ.get("HOST") or "127.0.0.1",
        port=_env_number("PORT", 3000, int),
        log_level=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
    )


def get_config_status() -> dict:
    """Get status of all configuration values.

    Secrets are reported as present/absent only.

    Returns:
        Dictionary with configuration status.
    """
    oauth = load_oauth_config()
    defaults = load_calendar_defaults()
    server = load_server_settings()
    return {
        "repo_root": str(REPO_ROOT),
        "env_file": ENV_FILE.exists(),
        "google": {
            "client_id": bool(oauth.client_id),
            "client_secret": bool(oauth.client_secret),
            "redirect_uri": oauth.redirect_uri,
        },
        "calendar": {
            "calendar_id": defaults.calendar_id,
            "add_video_link": defaults.add_video_link,
            "request_timeout": defaults.request_timeout,
            "read_retries": defaults.read_retries,
        },
        "server": {
            "host": server.host,
            "port": server.port,
            "log_level": server.log_level,
        },
    }


# Auto-load .env from repo root on import
_loaded = _load_env_file(ENV_FILE)
