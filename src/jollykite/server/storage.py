"""Durable ``wind_measurements`` table.

Timestamps are stored as ISO-8601 text in one fixed format
(``YYYY-MM-DDTHH:MM:SS.mmmZ``) so that string comparison and ordering match
chronological order.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from jollykite.exceptions import StoreError
from jollykite.ingestion.normalize import format_timestamp

_logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class WindMeasurementRow(Base):
    __tablename__ = "wind_measurements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[str] = mapped_column(String(32), nullable=False)
    wind_speed_knots: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_gust_knots: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_gust_knots: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_direction: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_direction_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    temperature_f: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    pressure: Mapped[float | None] = mapped_column(Float, nullable=True)
    safety_level: Mapped[str | None] = mapped_column(String(16), nullable=True)
    safety_text: Mapped[str | None] = mapped_column(String(64), nullable=True)
    safety_color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    is_offshore: Mapped[bool] = mapped_column(Boolean, default=False)
    is_onshore: Mapped[bool] = mapped_column(Boolean, default=False)
    data_source: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    __table_args__ = (
        Index("idx_wind_measurements_timestamp", "timestamp"),
    )


_INSERTABLE = frozenset(column.name for column in WindMeasurementRow.__table__.columns) - {"id", "created_at"}


def _as_dict(row: WindMeasurementRow) -> dict[str, Any]:
    values: dict[str, Any] = {column.name: getattr(row, column.key) for column in WindMeasurementRow.__table__.columns}
    created_at = values.get("created_at")
    if isinstance(created_at, datetime):
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        values["created_at"] = format_timestamp(created_at)
    return values


class MeasurementStore(Protocol):
    """What the ingestion and query services need from the durable store.

    Both methods block; the services call them through ``asyncio.to_thread``.
    """

    def insert(self, row: Mapping[str, Any]) -> dict[str, Any]:
        ...

    def fetch_since(self, since: str, limit: int) -> list[dict[str, Any]]:
        ...


class SqlMeasurementStore:
    """:class:`MeasurementStore` over any SQLAlchemy URL.

    Parameters
    ----------
    url : str
        SQLAlchemy database URL, e.g. ``sqlite:///jollykite.db``.
    create_tables : bool
        Create ``wind_measurements`` when it does not exist yet.
    """

    def __init__(self, url: str, *, create_tables: bool = True) -> None:
        try:
            self._engine = _make_engine(url)
            if create_tables:
                Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"Cannot open durable store: {exc}") from exc

    @property
    def engine(self) -> Engine:
        return self._engine

    def insert(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored (with ``id`` and ``created_at``)."""
        unknown = set(row) - _INSERTABLE
        if unknown:
            raise StoreError(f"Unknown wind_measurements columns: {', '.join(sorted(unknown))}")
        try:
            with Session(self._engine) as session, session.begin():
                record = WindMeasurementRow(**row)
                session.add(record)
                session.flush()
                stored = _as_dict(record)
        except SQLAlchemyError as exc:
            raise StoreError(f"Insert into wind_measurements failed: {exc}") from exc
        _logger.debug("stored wind_measurements id=%s ts=%s", stored["id"], stored["timestamp"])
        return stored

    def fetch_since(self, since: str, limit: int) -> list[dict[str, Any]]:
        """Rows with ``timestamp >= since``, newest first, at most *limit*."""
        statement = (
            select(WindMeasurementRow)
            .where(WindMeasurementRow.timestamp >= since)
            .order_by(WindMeasurementRow.timestamp.desc(), WindMeasurementRow.id.desc())
            .limit(limit)
        )
        try:
            with Session(self._engine) as session:
                return [_as_dict(row) for row in session.scalars(statement)]
        except SQLAlchemyError as exc:
            raise StoreError(f"Read from wind_measurements failed: {exc}") from exc

    def dispose(self) -> None:
        self._engine.dispose()


def _make_engine(url: str) -> Engine:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every worker thread sees its own empty database.
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url)
