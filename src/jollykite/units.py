"""Wind speed and temperature units.

Upstream sources report mph (Ambient Weather) or km/h (Open-Meteo); the
library works in knots internally and converts only for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from jollykite._constants import KMH_TO_KNOTS, KNOTS_TO_KMH, KNOTS_TO_MS, MPH_TO_KNOTS


class SpeedUnit(StrEnum):
    KNOTS = "knots"
    METERS_PER_SECOND = "ms"
    KILOMETERS_PER_HOUR = "kmh"


class TemperatureUnit(StrEnum):
    FAHRENHEIT = "fahrenheit"
    CELSIUS = "celsius"


@dataclass(frozen=True, slots=True)
class SpeedUnitInfo:
    """Conversion factor from knots plus display labels."""

    factor: float
    short_label: str
    labels: dict[str, str]


SPEED_UNITS: dict[SpeedUnit, SpeedUnitInfo] = {
    SpeedUnit.KNOTS: SpeedUnitInfo(1.0, "kts", {"ru": "узлов", "en": "knots"}),
    SpeedUnit.METERS_PER_SECOND: SpeedUnitInfo(KNOTS_TO_MS, "m/s", {"ru": "м/с", "en": "m/s"}),
    SpeedUnit.KILOMETERS_PER_HOUR: SpeedUnitInfo(KNOTS_TO_KMH, "km/h", {"ru": "км/ч", "en": "km/h"}),
}

_CARDINALS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)  # fmt: skip


def mph_to_knots(mph: float) -> float:
    return mph * MPH_TO_KNOTS


def kmh_to_knots(kmh: float) -> float:
    return kmh * KMH_TO_KNOTS


def knots_to_kmh(knots: float) -> float:
    return knots * KNOTS_TO_KMH


def convert_speed(knots: float, unit: SpeedUnit) -> float:
    """Convert a speed in knots to *unit*."""
    return knots * SPEED_UNITS[unit].factor


def speed_unit_label(unit: SpeedUnit, language: str = "en") -> str:
    labels = SPEED_UNITS[unit].labels
    return labels.get(language, labels["en"])


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32.0) * 5.0 / 9.0


def convert_temperature(fahrenheit: float, unit: TemperatureUnit) -> float:
    if unit is TemperatureUnit.CELSIUS:
        return fahrenheit_to_celsius(fahrenheit)
    return fahrenheit


def temperature_symbol(unit: TemperatureUnit) -> str:
    return "°C" if unit is TemperatureUnit.CELSIUS else "°F"


def degrees_to_cardinal(degrees: float) -> str:
    """16-point compass name for a bearing (``0`` = wind from the north)."""
    index = int((degrees % 360.0) / 22.5 + 0.5) % len(_CARDINALS)
    return _CARDINALS[index]
