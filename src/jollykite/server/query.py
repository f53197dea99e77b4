"""Time-windowed history with aggregate stats for display clients."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from jollykite.ingestion.normalize import format_timestamp, safe_float
from jollykite.models.stats import WindStats
from jollykite.server.storage import MeasurementStore

_logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
DEFAULT_HOURS = 24


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _positive_int(raw: str | None, name: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"'{name}' must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"'{name}' must be positive, got {value}")
    return value


def parse_query_params(params: Mapping[str, str]) -> tuple[int, int]:
    """``(limit, hours)`` from a query string; ``ValueError`` when invalid."""
    return (
        _positive_int(params.get("limit"), "limit", DEFAULT_LIMIT),
        _positive_int(params.get("hours"), "hours", DEFAULT_HOURS),
    )


class QueryService:
    """Stateless reader over the durable store."""

    def __init__(self, store: MeasurementStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    async def query(self, limit: int = DEFAULT_LIMIT, hours: int = DEFAULT_HOURS) -> dict[str, Any]:
        """Rows from the last *hours*, newest first, plus stats over exactly those rows."""
        if limit <= 0 or hours <= 0:
            raise ValueError("limit and hours must be positive")
        now = self._clock()
        floor = now - timedelta(hours=hours)
        rows = await asyncio.to_thread(self._store.fetch_since, format_timestamp(floor), limit)

        stats = WindStats.from_values(
            (safe_float(row.get("wind_speed_knots")), safe_float(row.get("wind_gust_knots"))) for row in rows
        )
        _logger.debug("history query hours=%d limit=%d -> %d rows", hours, limit, len(rows))
        return {
            "success": True,
            "latest": rows[0] if rows else None,
            "history": rows,
            "stats": stats.to_payload() if stats is not None else None,
            "meta": {
                "count": len(rows),
                "hours": hours,
                "timeRange": {"from": format_timestamp(floor), "to": format_timestamp(now)},
            },
        }
