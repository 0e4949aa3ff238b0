"""CLI for calendar-bridge.

Usage:
    calendar-bridge status                 # Show configuration status
    calendar-bridge auth-url               # Print the OAuth consent URL
    calendar-bridge serve                  # Run the HTTP service
"""

from __future__ import annotations

import argparse
import logging
import sys
import webbrowser


def cmd_status() -> int:
    """Show configuration status."""
    from calendar_bridge.config import get_config_status

    status = get_config_status()

    print("=" * 60)
    print("CALENDAR-BRIDGE CONFIGURATION")
    print("=" * 60)
    print()
    print(f"Repository: {status['repo_root']}")
    print(f".env file:  {'[x]' if status['env_file'] else '[ ]'}")
    print()

    google = status["google"]
    print("Google OAuth:")
    print(f"  client id:     {'[x]' if google['client_id'] else '[ ]'}")
    print(f"  client secret: {'[x]' if google['client_secret'] else '[ ]'}")
    print(f"  redirect uri:  {google['redirect_uri'] or '[ ]'}")
    print()

    calendar = status["calendar"]
    print("Calendar defaults:")
    print(f"  calendar id:    {calendar['calendar_id']}")
    print(f"  add video link: {calendar['add_video_link']}")
    print(f"  timeout:        {calendar['request_timeout']}s")
    print(f"  read retries:   {calendar['read_retries']}")
    print()

    server = status["server"]
    print(f"Server: {server['host']}:{server['port']} (log level {server['log_level']})")

    configured = google["client_id"] and google["client_secret"] and google["redirect_uri"]
    return 0 if configured else 1


def cmd_auth_url(open_browser: bool = False, state: str | None = None) -> int:
    """Print the OAuth consent URL."""
    from calendar_bridge.config import load_oauth_config
    from calendar_bridge.google import GoogleOAuth, NotConfigured

    auth = GoogleOAuth(load_oauth_config())
    try:
        url = auth.get_authorization_url(state=state)
    except NotConfigured as e:
        print(f"Error: {e}")
        return 1

    print(f"Authorization URL:\n{url}")
    if open_browser:
        webbrowser.open(url)
    return 0


def cmd_serve(host: str | None = None, port: int | None = None, reload: bool = False) -> int:
    """Run the HTTP service with uvicorn."""
    import uvicorn

    from calendar_bridge.config import load_server_settings

    settings = load_server_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "calendar_bridge.api.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="calendar-bridge",
        description="Google Calendar OAuth and event management service",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # status command
    subparsers.add_parser("status", help="Show configuration status")

    # auth-url command
    auth_url_parser = subparsers.add_parser("auth-url", help="Print the OAuth consent URL")
    auth_url_parser.add_argument(
        "--open",
        action="store_true",
        help="Open the URL in a browser",
    )
    auth_url_parser.add_argument("--state", type=str, default=None, help="OAuth state value")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", type=str, default=None, help="Bind address (default: HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "status":
        return cmd_status()

    if args.command == "auth-url":
        return cmd_auth_url(args.open, args.state)

    if args.command == "serve":
        return cmd_serve(args.host, args.port, args.reload)

    return 0


if __name__ == "__main__":
    sys.exit(main())
