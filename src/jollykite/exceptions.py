"""Custom exception hierarchy for jollykite."""

from __future__ import annotations


class KiteError(Exception):
    """Base exception for all jollykite errors."""


class KiteConfigError(KiteError):
    """Invalid or missing configuration."""


class NetworkError(KiteError):
    """Transport-level failure (connection, timeout, non-200 status).

    Never retried within the same invocation; the next scheduled tick or
    an explicit refresh tries again.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class UpstreamFormatError(KiteError):
    """Upstream payload did not have the expected shape."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class NoDeviceError(KiteError):
    """The source answered but reported no station/device data."""


class ForecastUnavailable(KiteError):
    """The forecast could not be fetched or parsed."""


class AuthError(KiteError):
    """Ingestion credential mismatch. Fatal for that invocation."""


class StoreError(KiteError):
    """Durable store read or write failure."""


class SerializationError(KiteError):
    """A locally persisted blob could not be decoded.

    Recovered where a store loads its own blob (the store starts empty).
    Only an explicit import of foreign data surfaces it.
    """
