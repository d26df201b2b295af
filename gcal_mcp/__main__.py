"""CLI entry point for the Google Calendar MCP gateway."""

from __future__ import annotations

import argparse
import asyncio

import uvicorn

from . import http_app, mcp_tools
from .authorize import main as authorize_main
from .bootstrap import build_services
from .config import Settings
from .log import setup_logging


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m gcal_mcp",
        description="Run the Google Calendar MCP gateway or its authorization helper.",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser(
        "serve", help="Start the HTTP protocol gateway (default)."
    )
    serve_parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Host interface to bind (default: {settings.host}).",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"TCP port to listen on (default: {settings.port}).",
    )

    mcp_parser = subparsers.add_parser(
        "mcp", help="Start the MCP tool server over SSE transport."
    )
    mcp_parser.add_argument(
        "--host",
        default=settings.sse_host,
        help=f"Host interface to bind (default: {settings.sse_host}).",
    )
    mcp_parser.add_argument(
        "--port",
        type=int,
        default=settings.sse_port,
        help=f"TCP port to listen on (default: {settings.sse_port}).",
    )

    subparsers.add_parser(
        "authorize",
        help="Run the interactive OAuth flow to grant Google Calendar access.",
    )
    subparsers.add_parser(
        "status", help="Print the configured auth method and whether it is usable."
    )

    return parser


async def _print_status(settings: Settings) -> None:
    services = build_services(settings)
    await services.oauth.load_persisted_credentials()
    status = await services.selector.describe()
    print(f"method:        {status.method.value}")
    print(f"configured:    {status.configured}")
    print(f"authenticated: {status.authenticated}")


def main(argv: list[str] | None = None) -> int:
    settings = Settings.from_env()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    command = args.command or "serve"
    setup_logging(settings)

    if command == "authorize":
        return authorize_main(settings)

    if command == "status":
        asyncio.run(_print_status(settings))
        return 0

    services = build_services(settings)
    if command == "mcp":
        app = mcp_tools.create_app(services.dispatcher)
    else:
        app = http_app.create_app(services)

    uvicorn.run(
        app,
        host=getattr(args, "host", settings.host),
        port=getattr(args, "port", settings.port),
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
