"""Base model shared by every jollykite data model.

Every model inherits from :class:`KiteBaseModel` which provides:

* immutability (``frozen=True``) so measurements can be shared freely
  between the trend window, the history and the display layer;
* ``populate_by_name`` so models validate from both field names and
  aliases (camelCase payloads, snake_case rows).

Timestamps use :data:`KiteTimestamp`, which accepts epoch seconds,
epoch milliseconds, ISO-8601 strings and datetimes and always yields an
aware UTC datetime.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

from jollykite.ingestion.normalize import parse_timestamp


def _coerce_timestamp(value: Any) -> Any:
    parsed = parse_timestamp(value)
    # Leave unparseable input untouched so pydantic reports it.
    return parsed if parsed is not None else value


KiteTimestamp = Annotated[datetime, BeforeValidator(_coerce_timestamp)]
"""Annotated type that coerces epoch ints (seconds or ms) and ISO strings to UTC datetimes."""


class KiteBaseModel(BaseModel):
    """Base for jollykite models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
