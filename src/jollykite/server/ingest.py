"""Scheduled ingestion: one station reading into one durable row."""

from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Any

from jollykite._api import WindSource
from jollykite.exceptions import AuthError
from jollykite.server.storage import MeasurementStore

_logger = logging.getLogger(__name__)

_BEARER = "Bearer "


def verify_bearer(authorization: str | None, secret: str | None) -> None:
    """Raise :class:`AuthError` unless *authorization* is ``Bearer <secret>``.

    The comparison runs in constant time. An unset secret rejects everything.
    """
    if not secret:
        raise AuthError("Ingestion secret is not configured")
    presented = (authorization or "").encode("utf-8")
    expected = f"{_BEARER}{secret}".encode("utf-8")
    if not secrets.compare_digest(presented, expected):
        raise AuthError("Unauthorized")


class IngestionService:
    """Verify the scheduler's credential, fetch, store.

    Parameters
    ----------
    source : WindSource
        Station the reading comes from.
    store : MeasurementStore
        Durable ``wind_measurements`` table.
    secret : str or None
        Shared secret the scheduler sends as ``Authorization: Bearer``.
        ``None`` (or empty) rejects every invocation.
    """

    def __init__(self, source: WindSource, store: MeasurementStore, secret: str | None) -> None:
        self._source = source
        self._store = store
        self._secret = secret or ""

    def verify(self, authorization: str | None) -> None:
        verify_bearer(authorization, self._secret)

    async def collect(self, authorization: str | None) -> dict[str, Any]:
        """Run one ingestion and return the inserted row.

        Source and store errors propagate unchanged; nothing is retried.
        Duplicate invocations for the same interval store duplicate rows.
        """
        self.verify(authorization)
        return await self.collect_unchecked()

    async def collect_unchecked(self) -> dict[str, Any]:
        """Fetch and store without a credential check (trusted callers only)."""
        measurement = await self._source.fetch_latest()
        stored = await asyncio.to_thread(self._store.insert, measurement.to_row())
        _logger.info(
            "Collected %s reading ts=%s speed=%.1fkt level=%s",
            measurement.source_id,
            stored.get("timestamp"),
            measurement.wind_speed_knots,
            measurement.safety.level.value,
        )
        return stored

