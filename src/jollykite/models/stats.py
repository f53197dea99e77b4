"""Aggregate wind statistics over a window of measurements."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from jollykite.models._base import KiteBaseModel


def _round(value: float) -> float:
    return round(value, 2)


class WindStats(KiteBaseModel):
    """Summary of a window, serialized with camelCase keys for HTTP payloads.

    ``min_wind_speed`` only considers non-zero speeds (a calm reading is
    usually a sensor gap rather than a real minimum) and is ``None`` when
    every speed in the window is zero or missing.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    count: int
    avg_wind_speed: float
    max_gust: float
    min_wind_speed: float | None
    max_wind_speed: float

    @classmethod
    def from_values(cls, pairs: Iterable[tuple[float | None, float | None]]) -> WindStats | None:
        """Build stats from ``(speed, gust)`` pairs; ``None`` for an empty window."""
        speeds: list[float] = []
        gusts: list[float] = []
        for speed, gust in pairs:
            speeds.append(speed or 0.0)
            gusts.append(gust or 0.0)
        if not speeds:
            return None
        nonzero = [speed for speed in speeds if speed]
        return cls(
            count=len(speeds),
            avg_wind_speed=_round(sum(speeds) / len(speeds)),
            max_gust=_round(max(gusts)),
            min_wind_speed=_round(min(nonzero)) if nonzero else None,
            max_wind_speed=_round(max(speeds)),
        )

    def to_payload(self) -> dict[str, float | int | None]:
        return self.model_dump(by_alias=True)
