"""Configuration for jollykite."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Mapping
from typing import Any

from jollykite._constants import AMBIENT_BASE_URL, AMBIENT_SOURCE_ID, OPEN_METEO_URL, PROXY_SOURCE_ID
from jollykite.exceptions import KiteConfigError


def _env_number(env: Mapping[str, str], key: str, convert: Callable[[str], Any]) -> Any:
    """Convert one env var, or ``None`` when unset."""
    val = env.get(key)
    if val is None:
        return None
    try:
        return convert(val)
    except ValueError as exc:
        kind = "an integer" if convert is int else "a number"
        raise KiteConfigError(f"{key} must be {kind}, got {val!r}") from exc


@dataclasses.dataclass(frozen=True)
class SpotLocation:
    """Where the station and forecast are.

    Defaults to the Pak Nam Pran kite beach.
    """

    latitude: float = 12.346596
    longitude: float = 99.998179
    timezone: str = "Asia/Bangkok"


@dataclasses.dataclass(frozen=True)
class ForecastWindow:
    """Which forecast hours are kept.

    ``start_hour`` and ``end_hour`` are inclusive, stepped by
    ``hour_interval``, repeated for each of ``days``.
    """

    days: int = 3
    start_hour: int = 6
    end_hour: int = 19
    hour_interval: int = 1

    def __post_init__(self) -> None:
        if self.days < 1:
            raise KiteConfigError(f"forecast days must be >= 1, got {self.days}")
        if not 0 <= self.start_hour <= self.end_hour <= 23:
            raise KiteConfigError(
                f"forecast hours must satisfy 0 <= start <= end <= 23, got {self.start_hour}..{self.end_hour}"
            )
        if self.hour_interval < 1:
            raise KiteConfigError(f"forecast hour_interval must be >= 1, got {self.hour_interval}")


@dataclasses.dataclass(frozen=True)
class HistoryPolicy:
    """Retention limits for the local history.

    Either limit may be ``None`` to disable it.
    """

    max_age_hours: float | None = 24.0
    max_records: int | None = 1000

    def __post_init__(self) -> None:
        if self.max_age_hours is not None and self.max_age_hours <= 0:
            raise KiteConfigError(f"max_age_hours must be positive, got {self.max_age_hours}")
        if self.max_records is not None and self.max_records < 1:
            raise KiteConfigError(f"max_records must be >= 1, got {self.max_records}")


@dataclasses.dataclass(frozen=True)
class KiteConfig:
    """Library and server configuration.

    Parameters
    ----------
    ambient_api_key : str or None
        Ambient Weather API key.
    ambient_application_key : str or None
        Ambient Weather application key.
    ambient_base_url : str
        Ambient Weather REST base URL.
    proxy_base_url : str or None
        Base URL of a jollykite server whose history endpoint serves the
        secondary station. ``None`` disables the secondary source.
    proxy_source_id : str
        Identifier reported for measurements from the secondary station.
    default_source : str
        Source selected when a client starts.
    forecast_url : str
        Open-Meteo forecast endpoint.
    location : SpotLocation
        Spot coordinates and timezone.
    forecast : ForecastWindow
        Forecast days and daily hour window.
    forecast_ttl : float
        Seconds a cached forecast stays valid.
    request_timeout : float
        Total timeout in seconds for each upstream HTTP request.
    auto_update_interval : float
        Seconds between background wind refreshes.
    debounce_delay : float
        Trailing debounce, in seconds, applied to source switches.
    trend_reference_interval : float
        Seconds between the two measurements compared for the trend.
    trend_stable_threshold : float
        Percent change below which the trend is reported stable.
    min_wind_speed : float
        Readings below this speed (knots) are flagged as below minimum.
    history : HistoryPolicy
        Local history retention.
    data_dir : str or None
        Directory for persisted client blobs. ``None`` keeps them in memory.
    cron_secret : str or None
        Shared secret expected by the ingestion endpoint.
    database_url : str
        SQLAlchemy URL of the durable store.
    """

    ambient_api_key: str | None = None
    ambient_application_key: str | None = None
    ambient_base_url: str = AMBIENT_BASE_URL
    proxy_base_url: str | None = None
    proxy_source_id: str = PROXY_SOURCE_ID
    default_source: str = AMBIENT_SOURCE_ID
    forecast_url: str = OPEN_METEO_URL
    location: SpotLocation = dataclasses.field(default_factory=SpotLocation)
    forecast: ForecastWindow = dataclasses.field(default_factory=ForecastWindow)
    forecast_ttl: float = 5 * 60
    request_timeout: float = 10.0
    auto_update_interval: float = 30.0
    debounce_delay: float = 0.3
    trend_reference_interval: float = 10 * 60
    trend_stable_threshold: float = 5.0
    min_wind_speed: float = 0.0
    history: HistoryPolicy = dataclasses.field(default_factory=HistoryPolicy)
    data_dir: str | None = None
    cron_secret: str | None = None
    database_url: str = "sqlite:///jollykite.db"

    def require_ambient_keys(self) -> tuple[str, str]:
        if not self.ambient_api_key or not self.ambient_application_key:
            raise KiteConfigError("Ambient Weather keys missing (set KITE_AMBIENT_API_KEY and KITE_AMBIENT_APP_KEY)")
        return self.ambient_api_key, self.ambient_application_key

    @classmethod
    def from_env(cls, **overrides: Any) -> KiteConfig:
        """Create configuration from ``KITE_*`` environment variables.

        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        KiteConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "KITE_AMBIENT_API_KEY": "ambient_api_key",
            "KITE_AMBIENT_APP_KEY": "ambient_application_key",
            "KITE_AMBIENT_BASE_URL": "ambient_base_url",
            "KITE_PROXY_BASE_URL": "proxy_base_url",
            "KITE_PROXY_SOURCE_ID": "proxy_source_id",
            "KITE_DEFAULT_SOURCE": "default_source",
            "KITE_FORECAST_URL": "forecast_url",
            "KITE_DATA_DIR": "data_dir",
            "KITE_CRON_SECRET": "cron_secret",
            "KITE_DATABASE_URL": "database_url",
        }
        _ENV_FLOAT_MAP = {
            "KITE_FORECAST_TTL": "forecast_ttl",
            "KITE_REQUEST_TIMEOUT": "request_timeout",
            "KITE_AUTO_UPDATE_INTERVAL": "auto_update_interval",
            "KITE_DEBOUNCE_DELAY": "debounce_delay",
            "KITE_TREND_REFERENCE_INTERVAL": "trend_reference_interval",
            "KITE_TREND_STABLE_THRESHOLD": "trend_stable_threshold",
            "KITE_MIN_WIND_SPEED": "min_wind_speed",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            if field_name in overrides:
                continue
            number = _env_number(env, env_key, float)
            if number is not None:
                config_kwargs[field_name] = number

        # Nested sections: a dict override merges over the env-derived values.
        location_kwargs: dict[str, Any] = {}
        for env_key, field_name in (("KITE_LATITUDE", "latitude"), ("KITE_LONGITUDE", "longitude")):
            number = _env_number(env, env_key, float)
            if number is not None:
                location_kwargs[field_name] = number
        timezone = env.get("KITE_TIMEZONE")
        if timezone is not None:
            location_kwargs["timezone"] = timezone
        location_overrides = overrides.pop("location", None)
        if isinstance(location_overrides, dict):
            location_kwargs.update(location_overrides)
        elif isinstance(location_overrides, SpotLocation):
            location_kwargs = dataclasses.asdict(location_overrides)
        config_kwargs["location"] = SpotLocation(**location_kwargs)

        forecast_kwargs: dict[str, Any] = {}
        for env_key, field_name in (
            ("KITE_FORECAST_DAYS", "days"),
            ("KITE_FORECAST_START_HOUR", "start_hour"),
            ("KITE_FORECAST_END_HOUR", "end_hour"),
            ("KITE_FORECAST_HOUR_INTERVAL", "hour_interval"),
        ):
            number = _env_number(env, env_key, int)
            if number is not None:
                forecast_kwargs[field_name] = number
        forecast_overrides = overrides.pop("forecast", None)
        if isinstance(forecast_overrides, dict):
            forecast_kwargs.update(forecast_overrides)
        elif isinstance(forecast_overrides, ForecastWindow):
            forecast_kwargs = dataclasses.asdict(forecast_overrides)
        config_kwargs["forecast"] = ForecastWindow(**forecast_kwargs)

        history_kwargs: dict[str, Any] = {}
        for env_key, field_name, convert in (
            ("KITE_HISTORY_MAX_AGE_HOURS", "max_age_hours", float),
            ("KITE_HISTORY_MAX_RECORDS", "max_records", int),
        ):
            number = _env_number(env, env_key, convert)
            if number is not None:
                history_kwargs[field_name] = number
        history_overrides = overrides.pop("history", None)
        if isinstance(history_overrides, dict):
            history_kwargs.update(history_overrides)
        elif isinstance(history_overrides, HistoryPolicy):
            history_kwargs = dataclasses.asdict(history_overrides)
        config_kwargs["history"] = HistoryPolicy(**history_kwargs)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
