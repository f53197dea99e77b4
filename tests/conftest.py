from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from jollykite.models.measurement import Measurement
from jollykite.state.persistence import MemoryBlobStorage

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeTransport:
    """Serves canned JSON per URL; an Exception instance is raised instead."""

    responses: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    delay: float = 0.0

    async def get_json(self, url: str, *, params: Mapping[str, Any] | None = None) -> Any:
        self.calls.append((url, dict(params or {})))
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    def count(self, url: str) -> int:
        return sum(1 for called, _ in self.calls if called == url)


class FakeSource:
    """Returns its readings in order (the last one repeats); waits on *gate* when given."""

    def __init__(self, source_id: str, *readings: Measurement | Exception, gate: asyncio.Event | None = None) -> None:
        self.source_id = source_id
        self.readings = list(readings)
        self.calls = 0
        self.gate = gate

    async def fetch_latest(self) -> Measurement:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        reading = self.readings[min(self.calls, len(self.readings)) - 1]
        if isinstance(reading, Exception):
            raise reading
        return reading


class FailingStorage(MemoryBlobStorage):
    """Memory storage whose saves under *failing_keys* raise ``OSError``."""

    def __init__(self, *failing_keys: str) -> None:
        super().__init__()
        self.failing_keys = set(failing_keys)

    def save(self, key: str, blob: str) -> None:
        if key in self.failing_keys:
            raise OSError("disk full")
        super().save(key, blob)


class FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_measurement() -> Callable[..., Measurement]:
    def _make(
        minutes: float = 0.0,
        speed: float = 15.0,
        *,
        direction: float = 90.0,
        gust: float | None = None,
        source_id: str = "ambient_weather",
        at: datetime = T0,
    ) -> Measurement:
        return Measurement(
            timestamp=at + timedelta(minutes=minutes),
            wind_speed_knots=speed,
            wind_gust_knots=gust,
            wind_direction_deg=direction,
            source_id=source_id,
        )

    return _make
