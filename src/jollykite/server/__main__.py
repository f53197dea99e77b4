"""Command line entry for the jollykite server.

Usage::

    python -m jollykite.server serve --port 8080
    python -m jollykite.server collect      # one ingestion, for cron hosts

Configuration comes from ``KITE_*`` environment variables.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import aiohttp
from aiohttp import web

from jollykite._api import AmbientWeatherSource
from jollykite._transport import HttpTransport
from jollykite.config import KiteConfig
from jollykite.exceptions import KiteError
from jollykite.server.app import create_app
from jollykite.server.ingest import IngestionService
from jollykite.server.storage import SqlMeasurementStore

_logger = logging.getLogger("jollykite.server")


async def collect_once(config: KiteConfig) -> dict[str, object]:
    """Run one ingestion without HTTP; the caller is trusted."""
    api_key, application_key = config.require_ambient_keys()
    store = SqlMeasurementStore(config.database_url)
    try:
        async with aiohttp.ClientSession() as session:
            source = AmbientWeatherSource(
                HttpTransport(session, timeout=config.request_timeout),
                api_key=api_key,
                application_key=application_key,
                base_url=config.ambient_base_url,
            )
            return await IngestionService(source, store, config.cron_secret).collect_unchecked()
    finally:
        store.dispose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jollykite-server", description="jollykite ingestion and history server.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")

    commands.add_parser("collect", help="Collect one reading into the database and exit")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = KiteConfig.from_env()
        if args.command == "collect":
            row = asyncio.run(collect_once(config))
            print(json.dumps(row, indent=2, default=str, ensure_ascii=False))
            return 0
        web.run_app(create_app(config), host=args.host, port=args.port)
    except KiteError as exc:
        _logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
