"""
Calendar tool server command line.

Usage:
    python -m calendar_mcp            # Serve the tools over MCP stdio
    python -m calendar_mcp auth       # Authorize Google Calendar access
    python -m calendar_mcp http       # Serve the tools over HTTP
"""
import argparse
import asyncio
import logging
import sys

from .config import settings
from .errors import ConfigurationError


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def cmd_serve(args) -> int:
    from .server import serve

    settings.import_local_oauth_keys()
    issues = settings.validate_config()
    if issues:
        for issue in issues:
            print(f"Error: {issue}", file=sys.stderr)
        return 1

    asyncio.run(serve())
    return 0


def cmd_auth(args) -> int:
    from .integrations.google_calendar.client import get_calendar

    try:
        get_calendar().authenticate(open_browser=not args.no_browser)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    print("Authentication completed successfully", file=sys.stderr)
    return 0


def cmd_http(args) -> int:
    import uvicorn

    uvicorn.run("calendar_mcp.api:app", host=args.host, port=args.port)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="calendar_mcp", description="Google Calendar tools for agents")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Serve tools over MCP stdio (default)")
    serve_parser.set_defaults(func=cmd_serve)

    auth_parser = subparsers.add_parser("auth", help="Run the Google OAuth flow")
    auth_parser.add_argument("--no-browser", action="store_true", help="Only print the authorization URL")
    auth_parser.set_defaults(func=cmd_auth)

    http_parser = subparsers.add_parser("http", help="Serve tools over HTTP")
    http_parser.add_argument("--host", default=settings.api_host)
    http_parser.add_argument("--port", type=int, default=settings.api_port)
    http_parser.set_defaults(func=cmd_http)

    args = parser.parse_args(argv)
    configure_logging()
    return args.func(args) if args.command else cmd_serve(args)


if __name__ == "__main__":
    sys.exit(main())
