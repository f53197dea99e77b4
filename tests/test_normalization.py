from __future__ import annotations

import math
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from jollykite.ingestion.normalize import (
    format_timestamp,
    normalize_direction,
    parse_timestamp,
    safe_float,
    safe_int,
)
from jollykite.models.measurement import ROW_COLUMNS, Measurement
from jollykite.models.safety import SafetyLevel


@pytest.mark.parametrize("value", [None, "", "--", True, "abc", math.nan, math.inf, [1]])
def test_safe_float_rejects_placeholders(value: object) -> None:
    assert safe_float(value) is None


def test_safe_float_keeps_zero() -> None:
    assert safe_float(0) == 0.0
    assert safe_float("0") == 0.0
    assert safe_float("12.5") == 12.5
    assert safe_int("7.9") == 7


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0, 0.0), (360, 0.0), (725, 5.0), (-90, 270.0), (359.5, 359.5), (-0.0, 0.0)],
)
def test_normalize_direction(raw: float, expected: float) -> None:
    assert normalize_direction(raw) == pytest.approx(expected)
    assert 0 <= normalize_direction(raw) < 360


def test_parse_timestamp_formats() -> None:
    expected = datetime(2026, 1, 1, tzinfo=UTC)

    assert parse_timestamp(1_767_225_600) == expected
    assert parse_timestamp(1_767_225_600_000) == expected
    assert parse_timestamp("1767225600000") == expected
    assert parse_timestamp("2026-01-01T00:00:00.000Z") == expected
    assert parse_timestamp("2026-01-01T00:00:00") == expected
    assert parse_timestamp(datetime(2026, 1, 1)) == expected


@pytest.mark.parametrize("value", [None, "", "yesterday", 0, -5])
def test_parse_timestamp_unparseable(value: object) -> None:
    assert parse_timestamp(value) is None


def test_format_timestamp_is_fixed_width_utc() -> None:
    assert format_timestamp(datetime(2026, 1, 1, tzinfo=UTC)) == "2026-01-01T00:00:00.000Z"
    assert format_timestamp(datetime(2026, 1, 1, 12, 30, 5, 123456, tzinfo=UTC)) == "2026-01-01T12:30:05.123Z"


def test_measurement_wraps_directions_and_defaults_average() -> None:
    measurement = Measurement(
        timestamp="2026-01-01T00:00:00Z",
        wind_speed_knots=15,
        wind_direction_deg=450,
        source_id="ambient_weather",
    )

    assert measurement.wind_direction_deg == 90.0
    assert measurement.wind_direction_avg_deg == 90.0
    assert measurement.safety.level is SafetyLevel.SAFE


def test_measurement_safety_uses_average_direction() -> None:
    measurement = Measurement(
        timestamp="2026-01-01T00:00:00Z",
        wind_speed_knots=15,
        wind_direction_deg=90,
        wind_direction_avg_deg=270,
        source_id="ambient_weather",
    )

    assert measurement.safety.level is SafetyLevel.DANGER
    assert measurement.is_offshore


def test_measurement_rejects_negative_speed_and_humidity() -> None:
    with pytest.raises(ValidationError):
        Measurement(timestamp=1, wind_speed_knots=-1, wind_direction_deg=0, source_id="x")
    with pytest.raises(ValidationError):
        Measurement(timestamp=1, wind_speed_knots=1, wind_direction_deg=0, humidity_pct=-3, source_id="x")


def test_measurement_keeps_reported_zero_and_missing_apart() -> None:
    measurement = Measurement(
        timestamp="2026-01-01T00:00:00Z",
        wind_speed_knots=0,
        wind_direction_deg=0,
        humidity_pct=0,
        source_id="ambient_weather",
    )

    assert measurement.humidity_pct == 0.0
    assert measurement.temperature_f is None
    assert measurement.wind_gust_knots is None


def test_measurement_is_immutable() -> None:
    measurement = Measurement(timestamp=1_767_225_600, wind_speed_knots=10, wind_direction_deg=0, source_id="x")

    with pytest.raises(ValidationError):
        measurement.wind_speed_knots = 20  # type: ignore[misc]


def test_row_round_trip_recomputes_safety() -> None:
    measurement = Measurement(
        timestamp="2026-01-01T06:00:00Z",
        wind_speed_knots=14.2,
        wind_gust_knots=18.0,
        wind_direction_deg=100,
        wind_direction_avg_deg=95,
        temperature_f=84.1,
        humidity_pct=70,
        pressure_inhg=29.8,
        source_id="ambient_weather",
    )
    row = measurement.to_row()

    assert set(ROW_COLUMNS) <= set(row)
    assert row["timestamp"] == "2026-01-01T06:00:00.000Z"
    assert row["safety_level"] == "safe"
    assert row["is_onshore"] is True

    tampered = {**row, "safety_level": "danger", "safety_text": "nope"}
    restored = Measurement.from_row(tampered)
    assert restored == measurement


def test_from_row_defaults_source() -> None:
    row = {"timestamp": "2026-01-01T00:00:00Z", "wind_speed_knots": "10", "wind_direction": "200"}

    assert Measurement.from_row(row).source_id == "unknown"
    assert Measurement.from_row(row, source_id="windguru").source_id == "windguru"
