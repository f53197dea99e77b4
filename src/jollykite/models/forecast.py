"""Hourly wind forecast model."""

from __future__ import annotations

from pydantic import Field

from jollykite.models._base import KiteBaseModel, KiteTimestamp


class ForecastPoint(KiteBaseModel):
    """One forecast hour, already converted to knots.

    Parameters
    ----------
    date : datetime
        Start of the forecast hour in the spot timezone.
    hour_of_day : int
        Hour of the day ``0``-``23`` the point belongs to.
    speed_knots : float
        Sustained wind speed.
    direction_deg : float
        Direction the wind blows from.
    gust_knots : float or None
        Gust speed, ``None`` when the source has no value for the hour.
    """

    date: KiteTimestamp
    hour_of_day: int = Field(ge=0, le=23)
    speed_knots: float = Field(ge=0)
    direction_deg: float
    gust_knots: float | None = Field(default=None, ge=0)
