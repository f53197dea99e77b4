"""Locally retained history record model."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from jollykite.models._base import KiteBaseModel, KiteTimestamp
from jollykite.models.measurement import Measurement


class HistoryRecord(KiteBaseModel):
    """A measurement retained by :class:`jollykite.state.history.HistoryStore`."""

    record_id: str = Field(min_length=1)
    stored_at: KiteTimestamp
    measurement: Measurement

    @property
    def timestamp(self) -> datetime:
        return self.measurement.timestamp
