"""jollykite - Async wind data pipeline for a kite spot."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("jollykite")
except PackageNotFoundError:
    __version__ = "0+local"
from jollykite.client import KiteClient
from jollykite.config import ForecastWindow, HistoryPolicy, KiteConfig, SpotLocation
from jollykite.exceptions import (
    AuthError,
    ForecastUnavailable,
    KiteConfigError,
    KiteError,
    NetworkError,
    NoDeviceError,
    SerializationError,
    StoreError,
    UpstreamFormatError,
)
from jollykite.models import (
    ForecastPoint,
    HistoryRecord,
    Measurement,
    SafetyLevel,
    SafetyVerdict,
    Trend,
    TrendResult,
    WindStats,
)
from jollykite.safety import classify
from jollykite.settings import SettingsManager, UserSettings
from jollykite.units import SpeedUnit, TemperatureUnit, degrees_to_cardinal

__all__ = [
    "__version__",
    "AuthError",
    "ForecastPoint",
    "ForecastUnavailable",
    "ForecastWindow",
    "HistoryPolicy",
    "HistoryRecord",
    "KiteClient",
    "KiteConfig",
    "KiteConfigError",
    "KiteError",
    "Measurement",
    "NetworkError",
    "NoDeviceError",
    "SafetyLevel",
    "SafetyVerdict",
    "SerializationError",
    "SettingsManager",
    "SpeedUnit",
    "SpotLocation",
    "StoreError",
    "TemperatureUnit",
    "Trend",
    "TrendResult",
    "UpstreamFormatError",
    "UserSettings",
    "WindStats",
    "classify",
    "degrees_to_cardinal",
]
