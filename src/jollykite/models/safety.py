"""Rider safety verdict model."""

from __future__ import annotations

from enum import StrEnum

from jollykite.models._base import KiteBaseModel


class SafetyLevel(StrEnum):
    SAFE = "safe"
    CAUTION = "caution"
    DANGER = "danger"


class SafetyVerdict(KiteBaseModel):
    """Outcome of :func:`jollykite.safety.classify`.

    Parameters
    ----------
    level : SafetyLevel
        Overall verdict.
    label : str
        Short human-readable text for the verdict.
    color : str
        Hex colour used by displays.
    is_offshore : bool
        Direction lies in the offshore window.
    is_onshore : bool
        Direction lies in the onshore window.
    """

    level: SafetyLevel
    label: str
    color: str
    is_offshore: bool
    is_onshore: bool
