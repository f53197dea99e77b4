"""Shared pieces for the source adapters."""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import ValidationError

from jollykite.exceptions import UpstreamFormatError
from jollykite.models.measurement import Measurement


class WindSource(Protocol):
    """A live station that can produce the latest :class:`Measurement`.

    Implementations raise :class:`~jollykite.exceptions.NetworkError`,
    :class:`~jollykite.exceptions.UpstreamFormatError` or
    :class:`~jollykite.exceptions.NoDeviceError`; they never return a
    partially populated measurement.
    """

    source_id: str

    async def fetch_latest(self) -> Measurement:
        ...


def build_measurement(values: dict[str, Any], *, endpoint: str) -> Measurement:
    """Validate normalized values, mapping validation failures to :class:`UpstreamFormatError`."""
    try:
        return Measurement.model_validate(values)
    except ValidationError as exc:
        raise UpstreamFormatError(f"Unusable reading from {endpoint}: {exc}", endpoint=endpoint) from exc
