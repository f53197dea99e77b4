"""Canonical wind measurement model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field, field_validator, model_validator

from jollykite.ingestion.normalize import format_timestamp, normalize_direction, safe_float
from jollykite.models._base import KiteBaseModel, KiteTimestamp
from jollykite.models.safety import SafetyVerdict

# Durable-store column -> Measurement field.
ROW_COLUMNS: dict[str, str] = {
    "timestamp": "timestamp",
    "wind_speed_knots": "wind_speed_knots",
    "wind_gust_knots": "wind_gust_knots",
    "max_gust_knots": "max_gust_knots",
    "wind_direction": "wind_direction_deg",
    "wind_direction_avg": "wind_direction_avg_deg",
    "temperature_f": "temperature_f",
    "humidity": "humidity_pct",
    "pressure": "pressure_inhg",
    "data_source": "source_id",
}


class Measurement(KiteBaseModel):
    """One normalized station reading.

    Speeds are knots, directions are degrees the wind blows *from*
    wrapped into ``[0, 360)``. Optional sensor fields are ``None`` when the
    source did not report them; a reported ``0`` stays ``0``.

    ``safety`` is derived from the average direction and the sustained
    speed when not supplied.
    """

    timestamp: KiteTimestamp
    wind_speed_knots: float = Field(ge=0)
    wind_gust_knots: float | None = Field(default=None, ge=0)
    max_gust_knots: float | None = Field(default=None, ge=0)
    wind_direction_deg: float
    wind_direction_avg_deg: float
    temperature_f: float | None = None
    humidity_pct: float | None = Field(default=None, ge=0)
    pressure_inhg: float | None = None
    source_id: str
    safety: SafetyVerdict

    @model_validator(mode="before")
    @classmethod
    def _derive_defaults(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        working = dict(values)
        if working.get("wind_direction_avg_deg") is None:
            working["wind_direction_avg_deg"] = working.get("wind_direction_deg")
        if working.get("safety") is None:
            speed = safe_float(working.get("wind_speed_knots"))
            direction = safe_float(working.get("wind_direction_avg_deg"))
            if speed is not None and direction is not None:
                # Imported lazily; the classifier depends on the models package.
                from jollykite.safety import classify

                working["safety"] = classify(direction, speed)
        return working

    @field_validator("wind_direction_deg", "wind_direction_avg_deg")
    @classmethod
    def _wrap_direction(cls, value: float) -> float:
        return normalize_direction(value)

    def to_row(self) -> dict[str, Any]:
        """Flatten into the ``wind_measurements`` column layout."""
        return {
            "timestamp": format_timestamp(self.timestamp),
            "wind_speed_knots": self.wind_speed_knots,
            "wind_gust_knots": self.wind_gust_knots,
            "max_gust_knots": self.max_gust_knots,
            "wind_direction": self.wind_direction_deg,
            "wind_direction_avg": self.wind_direction_avg_deg,
            "temperature_f": self.temperature_f,
            "humidity": self.humidity_pct,
            "pressure": self.pressure_inhg,
            "safety_level": self.safety.level.value,
            "safety_text": self.safety.label,
            "safety_color": self.safety.color,
            "is_offshore": self.safety.is_offshore,
            "is_onshore": self.safety.is_onshore,
            "data_source": self.source_id,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any], *, source_id: str | None = None) -> Measurement:
        """Rebuild a measurement from a ``wind_measurements`` row.

        Stored safety columns are ignored; the verdict is recomputed from
        direction and speed. Raises :class:`pydantic.ValidationError` for
        rows missing required columns.
        """
        values: dict[str, Any] = {}
        for column, field_name in ROW_COLUMNS.items():
            raw = row.get(column)
            if column in {"timestamp", "data_source"}:
                values[field_name] = raw
            else:
                values[field_name] = safe_float(raw)
        if source_id is not None:
            values["source_id"] = source_id
        elif not values.get("source_id"):
            values["source_id"] = "unknown"
        return cls.model_validate(values)

    @property
    def is_offshore(self) -> bool:
        return self.safety.is_offshore

    @property
    def is_onshore(self) -> bool:
        return self.safety.is_onshore
