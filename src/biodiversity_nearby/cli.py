"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import functools
import http.server
import json
import logging
import math
import sys

from biodiversity_nearby import __version__
from biodiversity_nearby.config import get_settings
from biodiversity_nearby.enrichment import EnrichmentLookup
from biodiversity_nearby.errors import GeolocationUnavailable, RemoteFetchFailed
from biodiversity_nearby.flows.nearby import sync_nearby
from biodiversity_nearby.store import FileStore


def positive_float(value: str) -> float:
    """argparse type for distances: a finite float greater than zero."""
    number = float(value)
    if not 0 < number < math.inf:
        msg = f"must be a positive number: {value}"
        raise argparse.ArgumentTypeError(msg)
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="biodiversity-nearby",
        description="GBIF observations around you, cached per H3 cell",
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

    # 'refresh' command - sync cells around a position and build the map
    refresh_parser = subparsers.add_parser("refresh", help="Sync nearby observations and build map")
    refresh_parser.add_argument("--lat", type=float, default=None, help="Latitude")
    refresh_parser.add_argument("--lon", type=float, default=None, help="Longitude")
    refresh_parser.add_argument(
        "--radius",
        type=positive_float,
        default=None,
        help="Viewport half-width in metres (default: viewport_radius_m from settings)",
    )

    # 'describe' command - name and media for a taxon
    describe_parser = subparsers.add_parser("describe", help="Show name and media for a taxon")
    describe_parser.add_argument("taxon_id", type=int, help="GBIF taxon key")

    # 'serve' command - serve built site locally
    serve_parser = subparsers.add_parser("serve", help="Serve site locally")
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
    print(f"Cache directory: {settings.data_dir}")
    print(f"Sync threshold: {settings.sync_threshold} cells")
    return 0


def cmd_refresh(args: argparse.Namespace) -> int:
    """Handle the 'refresh' command: sync cells then build the map."""
    try:
        summary = sync_nearby(lat=args.lat, lon=args.lon, radius_m=args.radius)
    except GeolocationUnavailable as exc:
        print("Waiting for user location...", file=sys.stderr)
        print(f"({exc})", file=sys.stderr)
        return 1

    print(f"{summary['records']} observations in {summary['cells']} cells.")
    if summary["failed_cells"]:
        print(f"{len(summary['failed_cells'])} cell(s) served from cache after errors.")
    print("Done.")
    return 0


def cmd_describe(args: argparse.Namespace) -> int:
    """Handle the 'describe' command: print localized name and media."""
    settings = get_settings()
    lookup = EnrichmentLookup(FileStore(settings.data_dir), language=settings.language)

    status = 0
    try:
        name = lookup.localized_name(args.taxon_id)
    except RemoteFetchFailed as exc:
        print(f"Error: {exc}", file=sys.stderr)
        name, status = None, 1

    try:
        media = lookup.media(args.taxon_id)
    except RemoteFetchFailed as exc:
        print(f"Error: {exc}", file=sys.stderr)
        media, status = [], 1

    payload = {
        "taxon_id": args.taxon_id,
        "name": name,
        "media": [m.model_dump(mode="json") for m in media],
    }
    print(json.dumps(payload, indent=2))
    if not media and status == 0:
        print("No media found.", file=sys.stderr)
    return status


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle the 'serve' command: serve the built site locally."""
    settings = get_settings()
    port = args.port if args.port is not None else settings.api_port
    site_dir = settings.site_dir

    if not site_dir.exists():
        print("No site directory found. Run 'biodiversity-nearby refresh' first.", file=sys.stderr)
        return 1

    handler = functools.partial(http.server.SimpleHTTPRequestHandler, directory=str(site_dir))

    with http.server.HTTPServer(("", port), handler) as server:
        print(f"Serving site on http://localhost:{port}/ (Ctrl+C to stop)")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("\nServer stopped.")

    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug or get_settings().debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "refresh": cmd_refresh,
        "describe": cmd_describe,
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
