"""Wind trend result model."""

from __future__ import annotations

from enum import StrEnum

from jollykite.models._base import KiteBaseModel


class Trend(StrEnum):
    STRENGTHENING = "strengthening"
    WEAKENING = "weakening"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class TrendResult(KiteBaseModel):
    """Outcome of :meth:`jollykite.state.trend.TrendAnalyzer.analyze_trend`.

    The numeric fields are ``None`` when ``trend`` is
    :attr:`Trend.INSUFFICIENT_DATA`.
    """

    trend: Trend
    icon: str
    color: str
    current_speed: float | None = None
    previous_speed: float | None = None
    change: float | None = None
    percent_change: float | None = None

    @property
    def has_data(self) -> bool:
        return self.trend is not Trend.INSUFFICIENT_DATA
