from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from jollykite.settings import SettingsManager, UserSettings
from jollykite.state.persistence import MemoryBlobStorage
from jollykite.units import SpeedUnit, TemperatureUnit


def test_defaults() -> None:
    settings = SettingsManager(MemoryBlobStorage()).settings

    assert settings.wind_speed_unit is SpeedUnit.KNOTS
    assert settings.temperature_unit is TemperatureUnit.FAHRENHEIT
    assert settings.update_interval == 30
    assert settings.update_interval_ms == 30_000
    assert settings.language == "ru"


def test_set_persists_camel_case_blob() -> None:
    storage = MemoryBlobStorage()
    manager = SettingsManager(storage)

    manager.set("wind_speed_unit", "ms")

    stored = json.loads(storage.load("jollykite-settings") or "{}")
    assert stored["windSpeedUnit"] == "ms"
    assert SettingsManager(storage).get("wind_speed_unit") is SpeedUnit.METERS_PER_SECOND


def test_stored_blob_merges_with_defaults() -> None:
    storage = MemoryBlobStorage({"jollykite-settings": '{"language": "en", "legacyFlag": true}'})

    settings = SettingsManager(storage).settings

    assert settings.language == "en"
    assert settings.update_interval == 30


def test_corrupt_blob_falls_back_to_defaults(caplog: pytest.LogCaptureFixture) -> None:
    storage = MemoryBlobStorage({"jollykite-settings": '{"windSpeedUnit": "furlongs"}'})

    assert SettingsManager(storage).settings == UserSettings()
    assert "Discarding unreadable settings" in caplog.text


def test_unknown_key_and_bad_value_are_rejected() -> None:
    manager = SettingsManager(MemoryBlobStorage())

    with pytest.raises(KeyError):
        manager.set("theme", "dark")
    with pytest.raises(KeyError):
        manager.get("theme")
    with pytest.raises(ValidationError):
        manager.set("language", "de")
    assert manager.settings.language == "ru"


def test_listeners_notified_and_failures_isolated(caplog: pytest.LogCaptureFixture) -> None:
    manager = SettingsManager(MemoryBlobStorage())
    seen: list[UserSettings] = []

    def broken(_settings: UserSettings) -> None:
        raise RuntimeError("listener bug")

    manager.add_listener(broken)
    manager.add_listener(seen.append)
    manager.update(language="en", temperature_unit="celsius")

    assert [s.language for s in seen] == ["en"]
    assert "Settings listener" in caplog.text

    manager.remove_listener(seen.append)
    manager.reset()
    assert len(seen) == 1
    assert manager.settings == UserSettings()


def test_display_conversions() -> None:
    manager = SettingsManager(MemoryBlobStorage())
    manager.update(wind_speed_unit="kmh", temperature_unit="celsius")

    assert manager.convert_wind_speed(10) == pytest.approx(18.52)
    assert manager.wind_speed_label() == "км/ч"
    assert manager.wind_speed_label("en") == "km/h"
    assert manager.wind_speed_short_label() == "km/h"
    assert manager.convert_temperature(212) == pytest.approx(100.0)
    assert manager.temperature_symbol() == "°C"
