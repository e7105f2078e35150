"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from trail_status import __version__
from trail_status.config import get_settings
from trail_status.errors import ConfigError
from trail_status.flows.aggregate import aggregate_statuses
from trail_status.reference import load_trails
from trail_status.server import serve


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="trail-status",
        description="Mountain-bike trail status from calendar feeds, status pictures and forecasts",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")
    subparsers.add_parser("trails", help="List configured trails")

    # 'status' command - run one cycle and print the JSON response
    status_parser = subparsers.add_parser("status", help="Aggregate statuses and print JSON")
    status_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indent (default: 2)",
    )

    # 'refresh' command - run one cycle, print a summary
    subparsers.add_parser("refresh", help="Aggregate statuses, notify changes, cache response")

    # 'serve' command - JSON endpoint
    serve_parser = subparsers.add_parser("serve", help="Serve the status endpoint locally")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to serve on (default: api_port from settings)",
    )

    return parser


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Data dir: {settings.data_dir}")
    print(f"Weather API key: {'set' if settings.openweather_api_key else 'not set'}")
    print(f"Webhook: {'set' if settings.discord_webhook_url else 'not set'}")
    return 0


def cmd_trails(_args: argparse.Namespace) -> int:
    """Handle the 'trails' command."""
    settings = get_settings()
    try:
        trails = load_trails(settings.trails_file)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for trail in trails:
        print(f"{trail.id:<14} {trail.name:<16} {trail.kind:<9} ({trail.lat}, {trail.lon})")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Handle the 'status' command."""
    response = asyncio.run(aggregate_statuses())
    print(json.dumps(response.body(), indent=args.indent, ensure_ascii=False))
    return 0


def cmd_refresh(_args: argparse.Namespace) -> int:
    """Handle the 'refresh' command."""
    response = asyncio.run(aggregate_statuses())
    if response.error:
        print(f"Error: {response.error}", file=sys.stderr)
        return 1

    for trail_id, entry in response.trails.items():
        print(f"{trail_id}: {entry.status} - {entry.description}")
    print("Done.")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle the 'serve' command."""
    settings = get_settings()
    port = args.port if args.port is not None else settings.api_port
    serve(port)
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.debug or settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "trails": cmd_trails,
        "status": cmd_status,
        "refresh": cmd_refresh,
        "serve": cmd_serve,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
