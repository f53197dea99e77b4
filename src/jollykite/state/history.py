"""Bounded local history of measurements.

The store is the only component that mutates the ``jollykite-history``
blob. Records are kept in ascending timestamp order internally; every
read hands them out most-recent-first.
"""

from __future__ import annotations

import bisect
import csv
import io
import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from pydantic import TypeAdapter, ValidationError

from jollykite._constants import HISTORY_STORAGE_KEY
from jollykite.config import HistoryPolicy
from jollykite.exceptions import SerializationError
from jollykite.models.history import HistoryRecord
from jollykite.models.measurement import Measurement
from jollykite.models.stats import WindStats
from jollykite.state.persistence import BlobStorage
from jollykite.state.policy import evict_count, retention_cutoff

_logger = logging.getLogger(__name__)

_RECORDS_ADAPTER = TypeAdapter(list[HistoryRecord])

CSV_COLUMNS: tuple[str, ...] = (
    "timestamp",
    "wind_speed_knots",
    "wind_gust_knots",
    "max_gust_knots",
    "wind_direction",
    "wind_direction_avg",
    "temperature_f",
    "humidity",
    "pressure",
    "safety_level",
    "safety_text",
    "data_source",
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _decode_records(blob: str | bytes) -> list[HistoryRecord]:
    try:
        return _RECORDS_ADAPTER.validate_json(blob)
    except ValidationError as exc:
        raise SerializationError(f"unreadable history blob: {exc.error_count()} errors") from exc


def _csv_cell(value: object) -> object:
    return "" if value is None else value


class HistoryStore:
    """Timestamp-ordered measurement history with retention.

    Parameters
    ----------
    storage : BlobStorage
        Where the serialized records live.
    policy : HistoryPolicy
        Max age (relative to ``clock()``) and max count; oldest go first.
    clock : callable
        Returns the current aware ``datetime``. Defaults to UTC now.
    """

    def __init__(
        self,
        storage: BlobStorage,
        policy: HistoryPolicy | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._policy = policy or HistoryPolicy()
        self._clock = clock
        self._records: list[HistoryRecord] = self._load()

    @property
    def policy(self) -> HistoryPolicy:
        return self._policy

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> list[HistoryRecord]:
        blob = self._storage.load(HISTORY_STORAGE_KEY)
        if blob is None:
            return []
        try:
            records = _decode_records(blob)
        except SerializationError:
            _logger.warning("Discarding unreadable local history", exc_info=True)
            return []
        records.sort(key=lambda record: record.timestamp)
        _logger.debug("loaded %d history records", len(records))
        return records

    def _save(self) -> None:
        self._storage.save(HISTORY_STORAGE_KEY, _RECORDS_ADAPTER.dump_json(self._records).decode("utf-8"))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _insert(self, record: HistoryRecord) -> None:
        keys = [existing.timestamp for existing in self._records]
        # bisect_right keeps equal timestamps in arrival order.
        self._records.insert(bisect.bisect_right(keys, record.timestamp), record)

    def _enforce_retention(self) -> int:
        max_age = None
        if self._policy.max_age_hours is not None:
            max_age = timedelta(hours=self._policy.max_age_hours)
        drop = evict_count(
            [record.timestamp for record in self._records],
            now=self._clock(),
            max_age=max_age,
            max_count=self._policy.max_records,
        )
        if drop:
            del self._records[:drop]
            _logger.debug("evicted %d history records", drop)
        return drop

    def append(self, measurement: Measurement) -> HistoryRecord:
        """Store *measurement*, apply retention and persist.

        The returned record may already have been evicted if the measurement
        is older than the retention window.
        A failed save leaves the in-memory records unchanged.
        """
        record = HistoryRecord(record_id=uuid.uuid4().hex, stored_at=self._clock(), measurement=measurement)
        previous = list(self._records)
        self._insert(record)
        self._enforce_retention()
        try:
            self._save()
        except Exception:
            self._records = previous
            raise
        return record

    def import_json(self, text: str | bytes) -> int:
        """Merge a previous :meth:`export_json` payload; returns records added.

        Records whose ``record_id`` is already present are skipped.

        Raises
        ------
        SerializationError
            If *text* is not a valid export.
        """
        incoming = _decode_records(text)
        known = {record.record_id for record in self._records}
        added = 0
        for record in incoming:
            if record.record_id in known:
                continue
            known.add(record.record_id)
            self._insert(record)
            added += 1
        self._enforce_retention()
        self._save()
        _logger.info("imported %d of %d history records", added, len(incoming))
        return added

    def clear(self) -> None:
        """Drop every record. Irreversible."""
        self._records.clear()
        self._save()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def records(self, since_hours: float | None = None, limit: int | None = None) -> list[HistoryRecord]:
        """Records newer than ``now - since_hours``, most-recent-first."""
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
        floor = None
        if since_hours is not None:
            floor = retention_cutoff(self._clock(), timedelta(hours=since_hours))
        selected: list[HistoryRecord] = []
        for record in reversed(self._records):
            if floor is not None and record.timestamp < floor:
                break
            if limit is not None and len(selected) >= limit:
                break
            selected.append(record)
        return selected

    def query(self, since_hours: float | None = None, limit: int | None = None) -> list[Measurement]:
        return [record.measurement for record in self.records(since_hours, limit)]

    def latest(self) -> Measurement | None:
        return self._records[-1].measurement if self._records else None

    def stats(self, since_hours: float | None = None) -> WindStats | None:
        return WindStats.from_values(
            (measurement.wind_speed_knots, measurement.wind_gust_knots) for measurement in self.query(since_hours)
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_json(self, since_hours: float | None = None) -> str:
        return _RECORDS_ADAPTER.dump_json(self.records(since_hours), indent=2).decode("utf-8")

    def export_csv(self, since_hours: float | None = None) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        writer.writerows(_csv_rows(self.query(since_hours)))
        return buffer.getvalue()


def _csv_rows(measurements: Iterable[Measurement]) -> Iterable[list[object]]:
    for measurement in measurements:
        row = measurement.to_row()
        yield [_csv_cell(row[column]) for column in CSV_COLUMNS]
