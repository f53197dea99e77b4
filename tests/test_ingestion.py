from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from sqlalchemy import func, select

from conftest import FakeSource
from jollykite.exceptions import AuthError, NetworkError, StoreError
from jollykite.models.measurement import Measurement
from jollykite.server.ingest import IngestionService, verify_bearer
from jollykite.server.storage import SqlMeasurementStore, WindMeasurementRow

MakeMeasurement = Callable[..., Measurement]
SECRET = "s3cret"


@pytest.fixture
def store() -> Iterator[SqlMeasurementStore]:
    sql_store = SqlMeasurementStore("sqlite://")
    yield sql_store
    sql_store.dispose()


def _row_count(store: SqlMeasurementStore) -> int:
    with store.engine.connect() as connection:
        return connection.scalar(select(func.count()).select_from(WindMeasurementRow))


class TestVerifyBearer:
    def test_accepts_matching_secret(self) -> None:
        verify_bearer(f"Bearer {SECRET}", SECRET)

    @pytest.mark.parametrize("header", [None, "", SECRET, f"bearer {SECRET}", f"Bearer {SECRET}x", "Bearer "])
    def test_rejects_anything_else(self, header: str | None) -> None:
        with pytest.raises(AuthError, match="Unauthorized"):
            verify_bearer(header, SECRET)

    @pytest.mark.parametrize("secret", [None, ""])
    def test_unset_secret_rejects_everything(self, secret: str | None) -> None:
        with pytest.raises(AuthError, match="not configured"):
            verify_bearer("Bearer ", secret)


@pytest.mark.asyncio
async def test_collect_stores_one_row(store: SqlMeasurementStore, make_measurement: MakeMeasurement) -> None:
    reading = make_measurement(0, 18, direction=95, gust=22)
    source = FakeSource("ambient_weather", reading)
    service = IngestionService(source, store, SECRET)

    row = await service.collect(f"Bearer {SECRET}")

    assert row["id"] == 1
    assert row["timestamp"] == "2026-01-01T12:00:00.000Z"
    assert row["wind_speed_knots"] == 18
    assert row["wind_gust_knots"] == 22
    assert row["safety_level"] == reading.safety.level.value
    assert row["is_onshore"] is reading.safety.is_onshore
    assert row["data_source"] == "ambient_weather"
    assert row["created_at"].endswith("Z")
    assert _row_count(store) == 1


@pytest.mark.asyncio
async def test_rejected_request_never_reaches_the_source(store: SqlMeasurementStore) -> None:
    source = FakeSource("ambient_weather")
    service = IngestionService(source, store, SECRET)

    with pytest.raises(AuthError):
        await service.collect("Bearer wrong")

    assert source.calls == 0
    assert _row_count(store) == 0


@pytest.mark.asyncio
async def test_source_failure_propagates_without_a_row(store: SqlMeasurementStore) -> None:
    service = IngestionService(FakeSource("ambient_weather", NetworkError("timeout")), store, SECRET)

    with pytest.raises(NetworkError):
        await service.collect(f"Bearer {SECRET}")

    assert _row_count(store) == 0


@pytest.mark.asyncio
async def test_repeated_collection_stores_duplicates(
    store: SqlMeasurementStore, make_measurement: MakeMeasurement
) -> None:
    service = IngestionService(FakeSource("ambient_weather", make_measurement()), store, SECRET)

    first = await service.collect(f"Bearer {SECRET}")
    second = await service.collect(f"Bearer {SECRET}")

    assert first["timestamp"] == second["timestamp"]
    assert first["id"] != second["id"]
    assert _row_count(store) == 2


def test_store_rejects_unknown_columns(store: SqlMeasurementStore) -> None:
    with pytest.raises(StoreError, match="bogus"):
        store.insert({"timestamp": "2026-01-01T12:00:00.000Z", "bogus": 1})


def test_fetch_since_orders_newest_first(store: SqlMeasurementStore) -> None:
    for stamp in ("2026-01-01T10:00:00.000Z", "2026-01-01T12:00:00.000Z", "2026-01-01T11:00:00.000Z"):
        store.insert({"timestamp": stamp, "wind_speed_knots": 10.0})

    rows = store.fetch_since("2026-01-01T10:30:00.000Z", 10)

    assert [row["timestamp"] for row in rows] == ["2026-01-01T12:00:00.000Z", "2026-01-01T11:00:00.000Z"]
    assert len(store.fetch_since("2026-01-01T00:00:00.000Z", 1)) == 1
