"""Data models for jollykite."""

from jollykite.models._base import KiteBaseModel, KiteTimestamp
from jollykite.models.forecast import ForecastPoint
from jollykite.models.history import HistoryRecord
from jollykite.models.measurement import ROW_COLUMNS, Measurement
from jollykite.models.safety import SafetyLevel, SafetyVerdict
from jollykite.models.stats import WindStats
from jollykite.models.trend import Trend, TrendResult

__all__ = [
    "ROW_COLUMNS",
    "ForecastPoint",
    "HistoryRecord",
    "KiteBaseModel",
    "KiteTimestamp",
    "Measurement",
    "SafetyLevel",
    "SafetyVerdict",
    "Trend",
    "TrendResult",
    "WindStats",
]
