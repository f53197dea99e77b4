"""Ambient Weather station source (primary).

Endpoint:
  - GET {base}/devices?applicationKey=...&apiKey=...

The response is a list of devices; the first device's ``lastData`` holds
the most recent observation in imperial units.
"""

from __future__ import annotations

import logging
from typing import Any

from jollykite._api._common import build_measurement
from jollykite._constants import AMBIENT_SOURCE_ID
from jollykite._transport import Transport
from jollykite.exceptions import NetworkError, NoDeviceError, UpstreamFormatError
from jollykite.ingestion.normalize import parse_timestamp, safe_float
from jollykite.models.measurement import Measurement
from jollykite.units import mph_to_knots

_logger = logging.getLogger(__name__)


def _optional_knots(value: Any) -> float | None:
    mph = safe_float(value)
    return None if mph is None else mph_to_knots(mph)


def _extract_devices(payload: Any, endpoint: str) -> list[Any]:
    """Accept the bare device list or a proxy wrapper ``{"data": [...]}``."""
    if isinstance(payload, dict):
        if payload.get("offline"):
            raise NetworkError("Station data unavailable: upstream reported offline mode", endpoint=endpoint)
        if "data" not in payload:
            raise UpstreamFormatError(f"Expected a device list from {endpoint}", endpoint=endpoint)
        payload = payload["data"]
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise UpstreamFormatError(f"Expected a device list from {endpoint}", endpoint=endpoint)
    return payload


def parse_last_data(last_data: dict[str, Any], *, source_id: str, endpoint: str) -> Measurement:
    """Normalize one ``lastData`` block into a :class:`Measurement`.

    Required: ``windspeedmph``, ``winddir`` and ``dateutc`` (or ``date``).
    Everything else is optional and stays ``None`` when absent.
    """
    speed_mph = safe_float(last_data.get("windspeedmph"))
    direction = safe_float(last_data.get("winddir"))
    timestamp = parse_timestamp(last_data.get("dateutc")) or parse_timestamp(last_data.get("date"))
    missing = [
        name
        for name, value in (("windspeedmph", speed_mph), ("winddir", direction), ("dateutc", timestamp))
        if value is None
    ]
    if missing:
        raise UpstreamFormatError(f"lastData from {endpoint} is missing {', '.join(missing)}", endpoint=endpoint)

    return build_measurement(
        {
            "timestamp": timestamp,
            "wind_speed_knots": mph_to_knots(speed_mph),
            "wind_gust_knots": _optional_knots(last_data.get("windgustmph")),
            "max_gust_knots": _optional_knots(last_data.get("maxdailygust")),
            "wind_direction_deg": direction,
            "wind_direction_avg_deg": safe_float(last_data.get("winddir_avg10m")),
            "temperature_f": safe_float(last_data.get("tempf")),
            "humidity_pct": safe_float(last_data.get("humidity")),
            "pressure_inhg": safe_float(last_data.get("baromrelin")),
            "source_id": source_id,
        },
        endpoint=endpoint,
    )


class AmbientWeatherSource:
    """Latest reading from the first Ambient Weather device on the account."""

    def __init__(
        self,
        transport: Transport,
        *,
        api_key: str,
        application_key: str,
        base_url: str,
        source_id: str = AMBIENT_SOURCE_ID,
    ) -> None:
        self._transport = transport
        self._api_key = api_key
        self._application_key = application_key
        self._url = f"{base_url.rstrip('/')}/devices"
        self.source_id = source_id

    async def fetch_latest(self) -> Measurement:
        payload = await self._transport.get_json(
            self._url,
            params={"applicationKey": self._application_key, "apiKey": self._api_key},
        )
        devices = _extract_devices(payload, self._url)
        if not devices:
            raise NoDeviceError("No devices reported by Ambient Weather")

        device = devices[0]
        if not isinstance(device, dict):
            raise UpstreamFormatError(f"Unexpected device entry from {self._url}", endpoint=self._url)
        last_data = device.get("lastData")
        if not isinstance(last_data, dict) or not last_data:
            raise NoDeviceError("Ambient Weather device has no lastData")

        measurement = parse_last_data(last_data, source_id=self.source_id, endpoint=self._url)
        _logger.debug(
            "ambient reading ts=%s speed=%.1fkt dir=%.0f",
            measurement.timestamp,
            measurement.wind_speed_knots,
            measurement.wind_direction_deg,
        )
        return measurement
