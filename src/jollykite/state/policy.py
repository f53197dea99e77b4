"""Deterministic retention policy for locally retained measurements.

This module intentionally contains *no* storage logic; the stores ask it
how many of their oldest entries must go.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta


def retention_cutoff(now: datetime, max_age: timedelta | None) -> datetime | None:
    """Oldest timestamp still retained, or ``None`` when age is unlimited."""
    if max_age is None:
        return None
    return now - max_age


def is_expired(timestamp: datetime, cutoff: datetime | None) -> bool:
    return cutoff is not None and timestamp < cutoff


def evict_count(
    timestamps: Sequence[datetime],
    *,
    now: datetime,
    max_age: timedelta | None,
    max_count: int | None,
) -> int:
    """How many leading (oldest) entries of ascending *timestamps* to drop.

    Policy:
    - everything older than ``now - max_age`` goes;
    - then the oldest go until at most ``max_count`` remain.
    """
    cutoff = retention_cutoff(now, max_age)
    expired = 0
    for timestamp in timestamps:
        if not is_expired(timestamp, cutoff):
            break
        expired += 1

    overflow = 0
    if max_count is not None:
        overflow = max(0, len(timestamps) - max_count)
    return max(expired, overflow)
