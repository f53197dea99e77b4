"""Normalization helpers.

Centralizes lenient parsing of upstream values so the models only ever
see ``None`` (absent) or a real number.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

# Threshold to distinguish epoch seconds from milliseconds.
_MS_THRESHOLD = 1e11


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def normalize_direction(value: float) -> float:
    """Wrap a bearing into ``[0, 360)``."""
    wrapped = math.fmod(value, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    # fmod(-0.0) and float rounding can land exactly on 360.
    return 0.0 if wrapped >= 360.0 else wrapped + 0.0


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an epoch (seconds or milliseconds) or ISO-8601 value to a UTC datetime.

    Naive datetimes and ISO strings without an offset are taken as UTC.
    Returns ``None`` when the value cannot be interpreted.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        numeric = safe_float(text)
        if numeric is None:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
            return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
        value = numeric
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    if ts > _MS_THRESHOLD:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix.

    The fixed width keeps lexicographic order equal to time order, which the
    durable store relies on for its ``timestamp`` column.
    """
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
