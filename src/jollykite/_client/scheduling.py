"""Generation tags and trailing debounce for :class:`jollykite.client.KiteClient`.

Every triggerable refresh takes a generation number when it starts. When it
completes it may only publish its result if no newer refresh of the same
kind has started since.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)


class GenerationCounter:
    """Monotonically increasing counter per operation kind."""

    def __init__(self) -> None:
        self._current: dict[str, int] = {}

    def next(self, kind: str) -> int:
        generation = self._current.get(kind, 0) + 1
        self._current[kind] = generation
        return generation

    def current(self, kind: str) -> int:
        return self._current.get(kind, 0)

    def is_current(self, kind: str, generation: int) -> bool:
        return self._current.get(kind, 0) == generation


class Debouncer:
    """Trailing debounce: only the last trigger within ``delay`` runs.

    Re-triggering cancels the pending call. The returned task resolves with
    the action's result, or is cancelled when superseded.
    """

    def __init__(self, delay: float) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._delay = delay
        self._pending: asyncio.Task[object] | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def trigger(self, action: Callable[[], Awaitable[object]]) -> asyncio.Task[object]:
        self.cancel()
        task = asyncio.ensure_future(self._run(action))
        task.add_done_callback(self._log_failure)
        self._pending = task
        return task

    @staticmethod
    def _log_failure(task: asyncio.Task[object]) -> None:
        # Retrieved here so a caller that drops the task still sees the error in the log.
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.warning("Debounced call failed: %s", exc)

    async def _run(self, action: Callable[[], Awaitable[object]]) -> object:
        await asyncio.sleep(self._delay)
        return await action()

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            _logger.debug("debounced call superseded")
            self._pending.cancel()
        self._pending = None
