"""High-level async client for kite-spot wind data."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

import aiohttp

from jollykite._api import AmbientWeatherSource, OpenMeteoForecast, ProxyStationSource, WindSource
from jollykite._cache import SingleFlightCache
from jollykite._client.scheduling import Debouncer, GenerationCounter
from jollykite._transport import HttpTransport, Transport
from jollykite.config import KiteConfig
from jollykite.exceptions import KiteConfigError, KiteError
from jollykite.models.forecast import ForecastPoint
from jollykite.models.measurement import Measurement
from jollykite.models.trend import TrendResult
from jollykite.settings import SettingsManager
from jollykite.state.history import HistoryStore
from jollykite.state.persistence import BlobStorage, FileBlobStorage, MemoryBlobStorage
from jollykite.state.trend import TrendAnalyzer

_logger = logging.getLogger(__name__)

_WIND = "wind"
_FORECAST = "forecast"


class KiteClient:
    """Async client composing sources, cache, trend, history and settings.

    Usage::

        async with KiteClient(KiteConfig.from_env()) as client:
            reading = await client.refresh_wind()
            forecast = await client.get_forecast()

    Parameters
    ----------
    config : KiteConfig
        Library configuration.
    session : aiohttp.ClientSession or None
        Shared HTTP session. Created (and closed) by the client when omitted.
    transport : Transport or None
        Replaces the HTTP transport entirely, e.g. with a test double.
    sources : mapping of str to WindSource, or None
        Live sources by id. Built from *config* when omitted.
    storage : BlobStorage or None
        Persistence for history, trend window and settings. Defaults to
        files under ``config.data_dir`` or to memory.
    """

    def __init__(
        self,
        config: KiteConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        sources: Mapping[str, WindSource] | None = None,
        storage: BlobStorage | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._injected_sources = dict(sources) if sources is not None else None
        self._sources: dict[str, WindSource] = {}
        self._forecast: OpenMeteoForecast | None = None

        if storage is None:
            storage = FileBlobStorage(config.data_dir) if config.data_dir else MemoryBlobStorage()
        self._storage = storage
        self._cache = SingleFlightCache()
        self._generations = GenerationCounter()
        self._debouncer = Debouncer(config.debounce_delay)
        self.trend = TrendAnalyzer(
            reference_interval=timedelta(seconds=config.trend_reference_interval),
            stable_threshold=config.trend_stable_threshold,
            storage=storage,
        )
        self.history = HistoryStore(storage, config.history)
        self.settings = SettingsManager(storage)

        self._current_source = config.default_source
        self._latest: Measurement | None = None
        self._min_wind_speed = config.min_wind_speed
        self._auto_update_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> KiteClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        self._sources = self._injected_sources if self._injected_sources is not None else self._build_sources()
        if self._current_source not in self._sources:
            raise KiteConfigError(
                f"Default source {self._current_source!r} is not configured (have: {', '.join(self._sources) or 'none'})"
            )
        self._forecast = OpenMeteoForecast(
            self._transport,
            url=self._config.forecast_url,
            window=self._config.forecast,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop_auto_update()
        self._debouncer.cancel()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._forecast = None

    def _build_sources(self) -> dict[str, WindSource]:
        transport = self._require_transport()
        sources: dict[str, WindSource] = {}
        config = self._config
        if config.ambient_api_key and config.ambient_application_key:
            ambient = AmbientWeatherSource(
                transport,
                api_key=config.ambient_api_key,
                application_key=config.ambient_application_key,
                base_url=config.ambient_base_url,
            )
            sources[ambient.source_id] = ambient
        if config.proxy_base_url:
            proxy = ProxyStationSource(transport, base_url=config.proxy_base_url, source_id=config.proxy_source_id)
            sources[proxy.source_id] = proxy
        return sources

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise KiteError("Client not initialized. Use 'async with KiteClient(...) as client:'")
        return self._transport

    def _require_source(self, source_id: str) -> WindSource:
        self._require_transport()
        try:
            return self._sources[source_id]
        except KeyError:
            raise KiteConfigError(f"Unknown wind source: {source_id!r}") from None

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def config(self) -> KiteConfig:
        return self._config

    @property
    def current_source(self) -> str:
        return self._current_source

    @property
    def available_sources(self) -> list[str]:
        return list(self._sources)

    @property
    def latest(self) -> Measurement | None:
        return self._latest

    @property
    def min_wind_speed(self) -> float:
        return self._min_wind_speed

    @min_wind_speed.setter
    def min_wind_speed(self, knots: float) -> None:
        if knots < 0:
            raise ValueError("min_wind_speed must be >= 0")
        self._min_wind_speed = knots

    def meets_minimum(self, measurement: Measurement) -> bool:
        return measurement.wind_speed_knots >= self._min_wind_speed

    def analyze_trend(self) -> TrendResult:
        return self.trend.analyze_trend()

    # ------------------------------------------------------------------
    # Wind
    # ------------------------------------------------------------------

    async def refresh_wind(self) -> Measurement | None:
        """Fetch the latest reading from the current source.

        Returns ``None`` when a newer refresh (or a source switch) started
        while this one was in flight; its result is then discarded. Source
        errors propagate unchanged.
        """
        source_id = self._current_source
        source = self._require_source(source_id)
        generation = self._generations.next(_WIND)

        measurement = await self._cache.get(f"{_WIND}:{source_id}", source.fetch_latest, ttl=0, force=True)

        if not self._generations.is_current(_WIND, generation):
            _logger.debug("Discarding stale %s reading (generation %d)", source_id, generation)
            return None

        previous = self._latest
        if (
            previous is None
            or previous.timestamp != measurement.timestamp
            or previous.source_id != measurement.source_id
        ):
            self.history.append(measurement)
        self.trend.add_measurement(measurement)
        # Published last: a failed local write leaves the previous reading current.
        self._latest = measurement
        return measurement

    def switch_source(self, source_id: str) -> asyncio.Task[object]:
        """Select another source and resync after the debounce delay.

        The switch itself is immediate: in-flight readings from the old
        source are discarded and the trend window restarts. Rapid switches
        collapse into one fetch.
        """
        self._require_source(source_id)
        if source_id != self._current_source:
            _logger.info("Wind source switched to %s", source_id)
            self._current_source = source_id
            self._latest = None
            self.trend.clear()
        self._generations.next(_WIND)
        return self._debouncer.trigger(self.refresh_wind)

    async def check_proxy_health(self) -> bool | None:
        """Probe the proxied station; ``None`` when no proxy is configured."""
        for source in self._sources.values():
            if isinstance(source, ProxyStationSource):
                return await source.check_health()
        return None

    # ------------------------------------------------------------------
    # Forecast
    # ------------------------------------------------------------------

    async def get_forecast(self, *, force: bool = False) -> list[ForecastPoint]:
        """Cached multi-day forecast (TTL ``config.forecast_ttl``)."""
        self._require_transport()
        forecast = self._forecast
        if forecast is None:
            raise KiteError("Client not initialized. Use 'async with KiteClient(...) as client:'")
        points: list[ForecastPoint] = await self._cache.get(
            _FORECAST,
            lambda: forecast.fetch_forecast(self._config.location),
            ttl=self._config.forecast_ttl,
            force=force,
        )
        return points

    async def refresh_all(self) -> tuple[Measurement | None, list[ForecastPoint]]:
        """Refresh wind, then force a forecast reload."""
        measurement = await self.refresh_wind()
        forecast = await self.get_forecast(force=True)
        return measurement, forecast

    # ------------------------------------------------------------------
    # Auto-update
    # ------------------------------------------------------------------

    @property
    def auto_update_running(self) -> bool:
        return self._auto_update_task is not None and not self._auto_update_task.done()

    def start_auto_update(self, interval: float | None = None) -> None:
        """Refresh wind every *interval* seconds in the background.

        Errors are logged and the loop keeps going; the next tick retries.
        """
        if self.auto_update_running:
            return
        period = interval if interval is not None else self._config.auto_update_interval
        if period <= 0:
            raise ValueError("auto-update interval must be positive")
        self._auto_update_task = asyncio.create_task(self._auto_update_loop(period))

    async def _auto_update_loop(self, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            try:
                await self.refresh_wind()
            except KiteError as exc:
                _logger.warning("Auto-update failed: %s", exc)
            except Exception:
                _logger.exception("Auto-update failed unexpectedly")

    async def stop_auto_update(self) -> None:
        task = self._auto_update_task
        self._auto_update_task = None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
