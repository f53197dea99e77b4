"""Rider safety classification.

The rule is evaluated in priority order and the first match wins:

1. offshore window ``[225, 315]`` or speed above 30 knots -> danger
2. onshore window ``[45, 135]`` and speed within ``[12, 25]`` knots -> safe
3. anything else (sideshore, too light, strong onshore) -> caution

Offshore must be checked first: an offshore wind at a nominally perfect
speed is still dangerous.
"""

from __future__ import annotations

from jollykite._constants import (
    COLOR_CAUTION,
    COLOR_DANGER,
    COLOR_SAFE,
    DANGER_ABOVE_KNOTS,
    OFFSHORE_MAX_DEG,
    OFFSHORE_MIN_DEG,
    ONSHORE_MAX_DEG,
    ONSHORE_MIN_DEG,
    SAFE_MAX_KNOTS,
    SAFE_MIN_KNOTS,
)
from jollykite.ingestion.normalize import normalize_direction
from jollykite.models.safety import SafetyLevel, SafetyVerdict


def is_offshore(direction_deg: float) -> bool:
    return OFFSHORE_MIN_DEG <= normalize_direction(direction_deg) <= OFFSHORE_MAX_DEG


def is_onshore(direction_deg: float) -> bool:
    return ONSHORE_MIN_DEG <= normalize_direction(direction_deg) <= ONSHORE_MAX_DEG


def classify(direction_deg: float, speed_knots: float) -> SafetyVerdict:
    """Classify rider safety for a wind *direction_deg* (from) and *speed_knots*."""
    offshore = is_offshore(direction_deg)
    onshore = is_onshore(direction_deg)

    if offshore or speed_knots > DANGER_ABOVE_KNOTS:
        return SafetyVerdict(
            level=SafetyLevel.DANGER,
            label="Danger - offshore" if offshore else "Danger - too strong",
            color=COLOR_DANGER,
            is_offshore=offshore,
            is_onshore=onshore,
        )
    if onshore and SAFE_MIN_KNOTS <= speed_knots <= SAFE_MAX_KNOTS:
        return SafetyVerdict(
            level=SafetyLevel.SAFE,
            label="Safe - onshore",
            color=COLOR_SAFE,
            is_offshore=offshore,
            is_onshore=onshore,
        )
    return SafetyVerdict(
        level=SafetyLevel.CAUTION,
        label="Caution",
        color=COLOR_CAUTION,
        is_offshore=offshore,
        is_onshore=onshore,
    )
