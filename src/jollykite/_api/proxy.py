"""Secondary station proxied through a jollykite server.

The backend's public history endpoint already returns rows in the durable
store layout, so the latest row is all this source needs:

  - GET {backend}/api/wind-history?limit=1&hours=1
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from jollykite._constants import PROXY_HISTORY_PATH, PROXY_SOURCE_ID
from jollykite._transport import Transport
from jollykite.exceptions import KiteError, NoDeviceError, UpstreamFormatError
from jollykite.models.measurement import Measurement

_logger = logging.getLogger(__name__)


class ProxyStationSource:
    """Latest row from a jollykite history endpoint."""

    def __init__(
        self,
        transport: Transport,
        *,
        base_url: str,
        source_id: str = PROXY_SOURCE_ID,
    ) -> None:
        self._transport = transport
        self._url = f"{base_url.rstrip('/')}{PROXY_HISTORY_PATH}"
        self.source_id = source_id
        self.is_available: bool | None = None

    async def check_health(self) -> bool:
        """Probe the backend; never raises."""
        try:
            await self._transport.get_json(self._url, params={"limit": 1})
        except KiteError as exc:
            _logger.warning("Proxy backend unavailable: %s", exc)
            self.is_available = False
        else:
            self.is_available = True
        return self.is_available

    async def fetch_latest(self) -> Measurement:
        payload = await self._transport.get_json(self._url, params={"limit": 1, "hours": 1})
        if not isinstance(payload, Mapping):
            raise UpstreamFormatError(f"Expected an object from {self._url}", endpoint=self._url)
        if not payload.get("success", False):
            raise NoDeviceError(f"Proxy backend reported failure: {payload.get('error', 'unknown error')}")

        latest: Any = payload.get("latest")
        if latest is None:
            raise NoDeviceError("No recent data available from proxy backend")
        if not isinstance(latest, Mapping):
            raise UpstreamFormatError(f"'latest' from {self._url} is not an object", endpoint=self._url)

        try:
            measurement = Measurement.from_row(latest, source_id=self.source_id)
        except ValidationError as exc:
            raise UpstreamFormatError(f"Unusable row from {self._url}: {exc}", endpoint=self._url) from exc
        self.is_available = True
        return measurement
