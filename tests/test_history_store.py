from __future__ import annotations

import csv
import io
import json
from collections.abc import Callable

import pytest

from conftest import FailingStorage, FakeClock
from jollykite._constants import HISTORY_STORAGE_KEY
from jollykite.config import HistoryPolicy
from jollykite.exceptions import SerializationError
from jollykite.models.measurement import Measurement
from jollykite.state.history import CSV_COLUMNS, HistoryStore
from jollykite.state.persistence import MemoryBlobStorage

MakeMeasurement = Callable[..., Measurement]


def _store(clock: FakeClock, *, max_age_hours: float | None = None, max_records: int | None = None) -> HistoryStore:
    return HistoryStore(
        MemoryBlobStorage(),
        HistoryPolicy(max_age_hours=max_age_hours, max_records=max_records),
        clock=clock,
    )


def _speeds(measurements: list[Measurement]) -> list[float]:
    return [m.wind_speed_knots for m in measurements]


def test_append_beyond_capacity_evicts_exactly_the_oldest(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock, max_records=3)
    for minute, speed in ((-30, 10), (-20, 11), (-10, 12)):
        store.append(make_measurement(minute, speed))

    store.append(make_measurement(0, 13))

    assert len(store) == 3
    assert _speeds(store.query()) == [13, 12, 11]


def test_out_of_order_append_keeps_time_order(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock)
    store.append(make_measurement(-10, 12))
    store.append(make_measurement(-30, 10))
    store.append(make_measurement(-20, 11))

    assert _speeds(store.query()) == [12, 11, 10]


def test_out_of_order_append_evicts_the_oldest_not_the_last(
    clock: FakeClock, make_measurement: MakeMeasurement
) -> None:
    store = _store(clock, max_records=2)
    store.append(make_measurement(-10, 12))
    store.append(make_measurement(-5, 13))
    store.append(make_measurement(-30, 10))

    assert _speeds(store.query()) == [13, 12]


def test_query_since_hours_is_most_recent_first(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock)
    for minute, speed in ((-150, 5), (-90, 6), (-45, 7), (-10, 8)):
        store.append(make_measurement(minute, speed))

    assert _speeds(store.query(since_hours=1)) == [8, 7]
    assert _speeds(store.query(limit=3)) == [8, 7, 6]
    assert _speeds(store.query(since_hours=2, limit=1)) == [8]
    assert store.query(limit=0) == []


def test_max_age_is_enforced_against_the_clock(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock, max_age_hours=1)
    store.append(make_measurement(-50, 10))
    store.append(make_measurement(-5, 11))

    clock.advance(minutes=20)
    store.append(make_measurement(15, 12))

    assert _speeds(store.query()) == [12, 11]


def test_append_too_old_is_dropped_immediately(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock, max_age_hours=1)

    store.append(make_measurement(-120, 10))

    assert len(store) == 0


def test_export_then_import_reproduces_records(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    source = _store(clock)
    for minute in (-40, -30, -20, -10):
        source.append(make_measurement(minute, 10 - minute / 10, gust=20.0))
    exported = source.export_json()

    target = _store(clock)
    assert target.import_json(exported) == 4

    def _key(store: HistoryStore) -> set[tuple[str, str]]:
        return {(r.record_id, r.measurement.model_dump_json()) for r in store.records()}

    assert _key(target) == _key(source)
    assert target.import_json(exported) == 0
    assert len(target) == 4


def test_export_json_respects_range(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock)
    store.append(make_measurement(-90, 10))
    store.append(make_measurement(-10, 11))

    exported = json.loads(store.export_json(since_hours=1))

    assert len(exported) == 1
    assert exported[0]["measurement"]["wind_speed_knots"] == 11


def test_import_rejects_garbage(clock: FakeClock) -> None:
    with pytest.raises(SerializationError):
        _store(clock).import_json('{"not": "a list"}')


def test_export_csv_fixed_columns_and_quoting(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock)
    store.append(make_measurement(-20, 10, source_id="station, north"))
    store.append(make_measurement(-10, 12, gust=18.5))

    text = store.export_csv()
    rows = list(csv.reader(io.StringIO(text)))

    assert tuple(rows[0]) == CSV_COLUMNS
    assert len(rows) == 3
    newest, oldest = rows[1], rows[2]
    assert newest[CSV_COLUMNS.index("wind_gust_knots")] == "18.5"
    assert oldest[CSV_COLUMNS.index("wind_gust_knots")] == ""
    assert oldest[CSV_COLUMNS.index("data_source")] == "station, north"
    assert '"station, north"' in text
    assert newest[0] == "2026-01-01T11:50:00.000Z"


def test_clear_is_persisted(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    storage = MemoryBlobStorage()
    store = HistoryStore(storage, HistoryPolicy(), clock=clock)
    store.append(make_measurement(-1, 10))

    store.clear()

    assert len(store) == 0
    assert storage.load("jollykite-history") == "[]"
    assert len(HistoryStore(storage, clock=clock)) == 0


def test_records_survive_restart(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    storage = MemoryBlobStorage()
    HistoryStore(storage, clock=clock).append(make_measurement(-1, 14))

    reloaded = HistoryStore(storage, clock=clock)

    latest = reloaded.latest()
    assert latest is not None and latest.wind_speed_knots == 14


def test_corrupt_blob_starts_empty(clock: FakeClock, caplog: pytest.LogCaptureFixture) -> None:
    storage = MemoryBlobStorage({"jollykite-history": "[{\"record_id\": "})

    store = HistoryStore(storage, clock=clock)

    assert len(store) == 0
    assert store.latest() is None
    assert "Discarding unreadable local history" in caplog.text


def test_stats_over_window(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    store = _store(clock)
    store.append(make_measurement(-30, 0, gust=None))
    store.append(make_measurement(-20, 10, gust=15))
    store.append(make_measurement(-10, 20, gust=25))

    stats = store.stats(since_hours=1)

    assert stats is not None
    assert stats.count == 3
    assert stats.avg_wind_speed == 10.0
    assert stats.max_gust == 25.0
    assert stats.min_wind_speed == 10.0
    assert stats.max_wind_speed == 20.0
    assert stats.to_payload() == {
        "count": 3,
        "avgWindSpeed": 10.0,
        "maxGust": 25.0,
        "minWindSpeed": 10.0,
        "maxWindSpeed": 20.0,
    }
    assert _store(clock).stats() is None


def test_failed_save_leaves_records_unchanged(clock: FakeClock, make_measurement: MakeMeasurement) -> None:
    storage = FailingStorage()
    store = HistoryStore(storage, HistoryPolicy(max_age_hours=None, max_records=None), clock=clock)
    store.append(make_measurement(0, 10))

    storage.failing_keys.add(HISTORY_STORAGE_KEY)
    with pytest.raises(OSError):
        store.append(make_measurement(5, 20))

    assert _speeds(store.query()) == [10]
