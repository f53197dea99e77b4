"""aiohttp application exposing ingestion and history endpoints.

Routes:
  - GET|POST /api/collect-wind-data   (Authorization: Bearer <secret>)
  - GET|OPTIONS /api/wind-history?limit=..&hours=..   (CORS: any origin)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable

import aiohttp
from aiohttp import web

from jollykite._api import AmbientWeatherSource, WindSource
from jollykite._transport import HttpTransport
from jollykite.config import KiteConfig
from jollykite.exceptions import AuthError, KiteConfigError, KiteError
from jollykite.server.ingest import IngestionService, verify_bearer
from jollykite.server.query import QueryService, parse_query_params
from jollykite.server.storage import MeasurementStore, SqlMeasurementStore

_logger = logging.getLogger(__name__)

COLLECT_PATH = "/api/collect-wind-data"
HISTORY_PATH = "/api/wind-history"

CONFIG_KEY = web.AppKey("config", KiteConfig)
STORE_KEY = web.AppKey("store", MeasurementStore)
INGESTION_KEY = web.AppKey("ingestion", IngestionService)
QUERY_KEY = web.AppKey("query", QueryService)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
_CORS_PATHS = frozenset({HISTORY_PATH})

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    if request.path not in _CORS_PATHS:
        return await handler(request)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(_CORS_HEADERS)
        raise
    response.headers.update(_CORS_HEADERS)
    return response


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status)


async def collect_wind_data(request: web.Request) -> web.Response:
    authorization = request.headers.get("Authorization")
    service = request.app.get(INGESTION_KEY)
    try:
        if service is None:
            verify_bearer(authorization, request.app[CONFIG_KEY].cron_secret)
            raise KiteConfigError("Wind source for ingestion is not configured")
        row = await service.collect(authorization)
    except AuthError:
        return web.json_response({"error": "Unauthorized"}, status=401)
    except KiteError as exc:
        _logger.error("Error collecting wind data: %s", exc)
        return _error(500, str(exc))
    return web.json_response({"success": True, "message": "Wind data collected successfully", "data": row})


async def wind_history(request: web.Request) -> web.Response:
    if request.method == "OPTIONS":
        return web.Response(status=200)
    if request.method != "GET":
        return web.json_response({"error": "Method not allowed"}, status=405, headers={"Allow": "GET, OPTIONS"})

    try:
        limit, hours = parse_query_params(request.query)
    except ValueError as exc:
        return _error(400, str(exc))
    try:
        payload = await request.app[QUERY_KEY].query(limit=limit, hours=hours)
    except KiteError as exc:
        _logger.error("Error fetching wind history: %s", exc)
        return _error(500, str(exc))
    return web.json_response(payload)


def _ingestion_context(source: WindSource | None) -> Callable[[web.Application], AsyncIterator[None]]:
    async def _context(app: web.Application) -> AsyncIterator[None]:
        config = app[CONFIG_KEY]
        if source is not None:
            app[INGESTION_KEY] = IngestionService(source, app[STORE_KEY], config.cron_secret)
            yield
            return

        session = aiohttp.ClientSession()
        try:
            api_key, application_key = config.require_ambient_keys()
        except KiteConfigError as exc:
            _logger.warning("Ingestion disabled: %s", exc)
        else:
            ambient = AmbientWeatherSource(
                HttpTransport(session, timeout=config.request_timeout),
                api_key=api_key,
                application_key=application_key,
                base_url=config.ambient_base_url,
            )
            app[INGESTION_KEY] = IngestionService(ambient, app[STORE_KEY], config.cron_secret)
        try:
            yield
        finally:
            await session.close()

    return _context


def create_app(
    config: KiteConfig,
    *,
    source: WindSource | None = None,
    store: MeasurementStore | None = None,
) -> web.Application:
    """Build the application.

    Parameters
    ----------
    config : KiteConfig
        Server configuration (secret, Ambient keys, database URL).
    source : WindSource or None
        Ingestion source. Defaults to Ambient Weather with the configured keys.
    store : MeasurementStore or None
        Durable store. Defaults to :class:`SqlMeasurementStore` on
        ``config.database_url``.
    """
    app = web.Application(middlewares=[cors_middleware])
    app[CONFIG_KEY] = config
    if store is None:
        sql_store = SqlMeasurementStore(config.database_url)
        store = sql_store

        async def _dispose(_app: web.Application) -> None:
            sql_store.dispose()

        app.on_cleanup.append(_dispose)
    app[STORE_KEY] = store
    app[QUERY_KEY] = QueryService(store)
    app.cleanup_ctx.append(_ingestion_context(source))

    app.router.add_route("GET", COLLECT_PATH, collect_wind_data)
    app.router.add_route("POST", COLLECT_PATH, collect_wind_data)
    app.router.add_route("*", HISTORY_PATH, wind_history)
    return app
