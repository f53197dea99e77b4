"""Sliding-window wind trend analysis.

The analyzer keeps a short, time-ordered window of recent measurements and
compares the newest one against the one closest to ``reference_interval``
earlier.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from pydantic import TypeAdapter, ValidationError

from jollykite._constants import TREND_STORAGE_KEY
from jollykite.exceptions import SerializationError
from jollykite.models.measurement import Measurement
from jollykite.models.trend import Trend, TrendResult
from jollykite.state.persistence import BlobStorage
from jollykite.state.policy import evict_count

_logger = logging.getLogger(__name__)

_WINDOW_ADAPTER = TypeAdapter(list[Measurement])

_STYLE: dict[Trend, tuple[str, str]] = {
    Trend.STRENGTHENING: ("📈", "#10b981"),
    Trend.WEAKENING: ("📉", "#f59e0b"),
    Trend.STABLE: ("➡️", "#3b82f6"),
    Trend.INSUFFICIENT_DATA: ("⏳", "#9ca3af"),
}


@dataclass(frozen=True, slots=True)
class TrendWindowInfo:
    size: int
    oldest: datetime | None
    newest: datetime | None

    @property
    def span_seconds(self) -> float:
        if self.oldest is None or self.newest is None:
            return 0.0
        return (self.newest - self.oldest).total_seconds()


def _decode_window(blob: str) -> list[Measurement]:
    try:
        return _WINDOW_ADAPTER.validate_json(blob)
    except ValidationError as exc:
        raise SerializationError(f"corrupt trend window: {exc.error_count()} errors") from exc


def _result(trend: Trend, **values: float) -> TrendResult:
    icon, color = _STYLE[trend]
    return TrendResult(trend=trend, icon=icon, color=color, **values)


class TrendAnalyzer:
    """Bounded window of recent measurements plus the trend rule.

    Parameters
    ----------
    reference_interval : timedelta
        Gap between the two compared measurements.
    stable_threshold : float
        Absolute percent change below which the wind counts as stable.
    max_size : int
        Hard cap on retained measurements.
    storage : BlobStorage or None
        When given, the window survives restarts under ``jollykite-trend``.
    """

    def __init__(
        self,
        *,
        reference_interval: timedelta = timedelta(minutes=10),
        stable_threshold: float = 5.0,
        max_size: int = 200,
        storage: BlobStorage | None = None,
    ) -> None:
        if reference_interval <= timedelta(0):
            raise ValueError("reference_interval must be positive")
        self._reference = reference_interval
        self._stable_threshold = stable_threshold
        self._max_size = max_size
        # Twice the reference keeps a candidate on both sides of the target.
        self._max_age = reference_interval * 2
        self._storage = storage
        self._window: list[Measurement] = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> list[Measurement]:
        if self._storage is None:
            return []
        blob = self._storage.load(TREND_STORAGE_KEY)
        if blob is None:
            return []
        try:
            window = _decode_window(blob)
        except SerializationError:
            _logger.warning("Discarding unreadable trend window", exc_info=True)
            return []
        window.sort(key=lambda m: m.timestamp)
        return window

    def _save(self) -> None:
        if self._storage is not None:
            self._storage.save(TREND_STORAGE_KEY, _WINDOW_ADAPTER.dump_json(self._window).decode("utf-8"))

    # ------------------------------------------------------------------
    # Window maintenance
    # ------------------------------------------------------------------

    def add_measurement(self, measurement: Measurement) -> None:
        """Insert in timestamp order; a reading with a known timestamp replaces it."""
        keys = [m.timestamp for m in self._window]
        index = bisect.bisect_left(keys, measurement.timestamp)
        if index < len(self._window) and self._window[index].timestamp == measurement.timestamp:
            self._window[index] = measurement
        else:
            self._window.insert(index, measurement)
        self._prune()
        self._save()

    def extend(self, measurements: Iterable[Measurement]) -> None:
        for measurement in measurements:
            self.add_measurement(measurement)

    def _prune(self) -> None:
        if not self._window:
            return
        drop = evict_count(
            [m.timestamp for m in self._window],
            now=self._window[-1].timestamp,
            max_age=self._max_age,
            max_count=self._max_size,
        )
        if drop:
            del self._window[:drop]

    def clear(self) -> None:
        self._window.clear()
        if self._storage is not None:
            self._storage.delete(TREND_STORAGE_KEY)

    def cache_info(self) -> TrendWindowInfo:
        if not self._window:
            return TrendWindowInfo(size=0, oldest=None, newest=None)
        return TrendWindowInfo(
            size=len(self._window),
            oldest=self._window[0].timestamp,
            newest=self._window[-1].timestamp,
        )

    def __len__(self) -> int:
        return len(self._window)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_trend(self) -> TrendResult:
        """Compare the newest measurement with the one closest to ``reference_interval`` earlier."""
        if len(self._window) < 2:
            return _result(Trend.INSUFFICIENT_DATA)

        current = self._window[-1]
        if current.timestamp - self._window[0].timestamp < self._reference:
            return _result(Trend.INSUFFICIENT_DATA)

        target = current.timestamp - self._reference
        # Ties resolve to the older candidate.
        previous = min(self._window[:-1], key=lambda m: (abs(m.timestamp - target), m.timestamp))

        change = current.wind_speed_knots - previous.wind_speed_knots
        if previous.wind_speed_knots == 0:
            percent_change = 0.0
        else:
            percent_change = change / previous.wind_speed_knots * 100

        if abs(percent_change) < self._stable_threshold:
            trend = Trend.STABLE
        elif change > 0:
            trend = Trend.STRENGTHENING
        else:
            trend = Trend.WEAKENING

        return _result(
            trend,
            current_speed=current.wind_speed_knots,
            previous_speed=previous.wind_speed_knots,
            change=change,
            percent_change=percent_change,
        )
