"""Open-Meteo hourly wind forecast.

Endpoint:
  - GET {forecast_url}?latitude=..&longitude=..&hourly=wind_speed_10m,
    wind_direction_10m,wind_gusts_10m&timezone=..&forecast_days=..

Hourly arrays start at local midnight of the first day, so hour ``h`` of
day ``d`` sits at index ``d * 24 + h``. Speeds arrive in km/h.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from jollykite._transport import Transport
from jollykite.config import ForecastWindow, SpotLocation
from jollykite.exceptions import ForecastUnavailable, KiteError
from jollykite.ingestion.normalize import normalize_direction, safe_float
from jollykite.models.forecast import ForecastPoint
from jollykite.units import kmh_to_knots

_logger = logging.getLogger(__name__)

_HOURLY_FIELDS = ("time", "wind_speed_10m", "wind_direction_10m", "wind_gusts_10m")


def _resolve_zone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        _logger.debug("Unknown timezone %r, forecast times treated as UTC", name)
        return UTC


def _parse_local_time(value: Any, zone: tzinfo) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=zone)


def parse_hourly(payload: Any, window: ForecastWindow, *, days: int, timezone: str) -> list[ForecastPoint]:
    """Select the configured hours from an Open-Meteo ``hourly`` block.

    Hours whose speed or direction is missing are skipped; a missing gust
    is kept as ``None``.
    """
    hourly = payload.get("hourly") if isinstance(payload, dict) else None
    if not isinstance(hourly, dict) or not all(isinstance(hourly.get(key), list) for key in _HOURLY_FIELDS):
        raise ForecastUnavailable("Forecast response has no usable hourly data")

    times: list[Any] = hourly["time"]
    speeds: list[Any] = hourly["wind_speed_10m"]
    directions: list[Any] = hourly["wind_direction_10m"]
    gusts: list[Any] = hourly["wind_gusts_10m"]
    available = min(len(times), len(speeds), len(directions), len(gusts))
    zone = _resolve_zone(timezone)

    points: list[ForecastPoint] = []
    for day in range(days):
        for hour in range(window.start_hour, window.end_hour + 1, window.hour_interval):
            index = day * 24 + hour
            if index >= available:
                break
            moment = _parse_local_time(times[index], zone)
            speed_kmh = safe_float(speeds[index])
            direction = safe_float(directions[index])
            if moment is None or speed_kmh is None or direction is None:
                continue
            gust_kmh = safe_float(gusts[index])
            try:
                points.append(
                    ForecastPoint(
                        date=moment,
                        hour_of_day=hour,
                        speed_knots=kmh_to_knots(speed_kmh),
                        direction_deg=normalize_direction(direction),
                        gust_knots=None if gust_kmh is None else kmh_to_knots(gust_kmh),
                    )
                )
            except ValidationError as exc:
                raise ForecastUnavailable(f"Invalid forecast hour at index {index}: {exc}") from exc
    return points


class OpenMeteoForecast:
    """Multi-day wind forecast for a spot."""

    def __init__(self, transport: Transport, *, url: str, window: ForecastWindow) -> None:
        self._transport = transport
        self._url = url
        self._window = window

    async def fetch_forecast(self, location: SpotLocation, horizon_days: int | None = None) -> list[ForecastPoint]:
        """Fetch and filter the forecast.

        Raises
        ------
        ForecastUnavailable
            On any transport or payload failure.
        """
        days = horizon_days if horizon_days is not None else self._window.days
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "hourly": ",".join(_HOURLY_FIELDS[1:]),
            "timezone": location.timezone,
            "forecast_days": days,
        }
        try:
            payload = await self._transport.get_json(self._url, params=params)
        except KiteError as exc:
            raise ForecastUnavailable(f"Forecast request failed: {exc}") from exc

        points = parse_hourly(payload, self._window, days=days, timezone=location.timezone)
        _logger.debug("forecast: %d points over %d days", len(points), days)
        return points
