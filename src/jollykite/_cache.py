"""TTL cache with per-kind request coalescing (single-flight).

One entry per resource kind (e.g. ``"forecast"``). While a load for a kind
is pending, every other caller for that kind awaits the same task instead
of issuing another upstream request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached payload. Replaced wholesale, never patched."""

    payload: T
    fetched_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Whether the entry has reached its TTL."""
        return (now - self.fetched_at) >= self.ttl

    def age(self, now: float) -> float:
        return now - self.fetched_at


class SingleFlightCache:
    """Per-kind TTL cache whose loads are coalesced.

    * A valid entry (``now - fetched_at < ttl``) is served without a load.
    * ``force=True`` skips the validity check but still joins a pending load.
    * A failed load stores nothing; every waiter receives the error and the
      previous entry (if any) stays in place.
    * Cancelling one waiter does not cancel the shared load.
    """

    def __init__(self, time_func: Callable[[], float] = time.monotonic) -> None:
        self._time_func = time_func
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._inflight: dict[str, asyncio.Task[Any]] = {}

    async def get(
        self,
        kind: str,
        loader: Callable[[], Awaitable[T]],
        *,
        ttl: float,
        force: bool = False,
    ) -> T:
        if not force:
            entry = self._entries.get(kind)
            if entry is not None and not entry.is_expired(self._time_func()):
                return entry.payload

        task = self._inflight.get(kind)
        if task is None:
            task = asyncio.ensure_future(self._load(kind, loader, ttl))
            self._inflight[kind] = task
            task.add_done_callback(lambda done: self._finish(kind, done))
        else:
            _logger.debug("joining in-flight %s load", kind)

        result: T = await asyncio.shield(task)
        return result

    async def _load(self, kind: str, loader: Callable[[], Awaitable[T]], ttl: float) -> T:
        payload = await loader()
        self._entries[kind] = CacheEntry(payload=payload, fetched_at=self._time_func(), ttl=ttl)
        return payload

    def _finish(self, kind: str, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(kind) is task:
            del self._inflight[kind]
        if task.cancelled():
            return
        # Retrieve the exception so an unawaited failure is not reported at GC.
        exc = task.exception()
        if exc is not None:
            _logger.debug("%s load failed: %s", kind, exc)

    def entry(self, kind: str) -> CacheEntry[Any] | None:
        """The last successful entry for *kind*, valid or not."""
        return self._entries.get(kind)

    def is_valid(self, kind: str) -> bool:
        entry = self._entries.get(kind)
        return entry is not None and not entry.is_expired(self._time_func())

    def is_loading(self, kind: str) -> bool:
        return kind in self._inflight

    def invalidate(self, kind: str | None = None) -> None:
        """Drop one entry, or all entries when *kind* is ``None``."""
        if kind is None:
            self._entries.clear()
        else:
            self._entries.pop(kind, None)
