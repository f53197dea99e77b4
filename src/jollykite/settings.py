"""Persisted display preferences.

Settings are stored as one camelCase JSON object under
``jollykite-settings``. Unknown keys in the stored blob are ignored and
missing ones fall back to defaults, so older blobs keep loading.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

from pydantic import ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from jollykite._constants import SETTINGS_STORAGE_KEY
from jollykite.exceptions import SerializationError
from jollykite.models._base import KiteBaseModel
from jollykite.state.persistence import BlobStorage
from jollykite.units import (
    SPEED_UNITS,
    SpeedUnit,
    TemperatureUnit,
    convert_speed,
    convert_temperature,
    speed_unit_label,
    temperature_symbol,
)

_logger = logging.getLogger(__name__)

Language = Literal["ru", "en"]
SettingsListener = Callable[["UserSettings"], None]


class UserSettings(KiteBaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    wind_speed_unit: SpeedUnit = SpeedUnit.KNOTS
    temperature_unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT
    update_interval: int = Field(default=30, ge=5)
    language: Language = "ru"

    @property
    def update_interval_ms(self) -> int:
        return self.update_interval * 1000


def _decode_settings(blob: str) -> UserSettings:
    try:
        return UserSettings.model_validate_json(blob)
    except ValidationError as exc:
        raise SerializationError(f"unreadable settings blob: {exc.error_count()} errors") from exc


class SettingsManager:
    """Load, change and persist :class:`UserSettings`.

    Listeners are called with the new settings after every save. A failing
    listener is logged and does not stop the others.
    """

    def __init__(self, storage: BlobStorage) -> None:
        self._storage = storage
        self._listeners: list[SettingsListener] = []
        self._settings = self._load()

    def _load(self) -> UserSettings:
        blob = self._storage.load(SETTINGS_STORAGE_KEY)
        if blob is None:
            return UserSettings()
        try:
            return _decode_settings(blob)
        except SerializationError:
            _logger.warning("Discarding unreadable settings, using defaults", exc_info=True)
            return UserSettings()

    def _save(self) -> None:
        self._storage.save(SETTINGS_STORAGE_KEY, self._settings.model_dump_json(by_alias=True))
        self._notify()

    @property
    def settings(self) -> UserSettings:
        return self._settings

    def get(self, key: str) -> Any:
        if key not in UserSettings.model_fields:
            raise KeyError(f"Unknown setting: {key}")
        return getattr(self._settings, key)

    def set(self, key: str, value: Any) -> UserSettings:
        """Change one setting and persist.

        Raises
        ------
        KeyError
            If *key* is not a known setting.
        pydantic.ValidationError
            If *value* is not acceptable for *key*.
        """
        if key not in UserSettings.model_fields:
            raise KeyError(f"Unknown setting: {key}")
        self._settings = UserSettings.model_validate({**self._settings.model_dump(), key: value})
        self._save()
        return self._settings

    def update(self, **values: Any) -> UserSettings:
        unknown = set(values) - set(UserSettings.model_fields)
        if unknown:
            raise KeyError(f"Unknown settings: {', '.join(sorted(unknown))}")
        self._settings = UserSettings.model_validate({**self._settings.model_dump(), **values})
        self._save()
        return self._settings

    def reset(self) -> UserSettings:
        self._settings = UserSettings()
        self._save()
        _logger.info("Settings reset to defaults")
        return self._settings

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: SettingsListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SettingsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._settings)
            except Exception:
                _logger.exception("Settings listener %r failed", listener)

    # ------------------------------------------------------------------
    # Display conversions
    # ------------------------------------------------------------------

    def convert_wind_speed(self, knots: float) -> float:
        return convert_speed(knots, self._settings.wind_speed_unit)

    def wind_speed_label(self, language: str | None = None) -> str:
        return speed_unit_label(self._settings.wind_speed_unit, language or self._settings.language)

    def wind_speed_short_label(self) -> str:
        return SPEED_UNITS[self._settings.wind_speed_unit].short_label

    def convert_temperature(self, fahrenheit: float) -> float:
        return convert_temperature(fahrenheit, self._settings.temperature_unit)

    def temperature_symbol(self) -> str:
        return temperature_symbol(self._settings.temperature_unit)
