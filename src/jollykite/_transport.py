"""HTTP transport for upstream JSON APIs."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from jollykite._constants import USER_AGENT
from jollykite._redact import redact_for_log
from jollykite.exceptions import NetworkError, UpstreamFormatError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the source adapters.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, url: str, *, params: Mapping[str, Any] | None = None) -> Any:
        ...


class HttpTransport:
    """GET-and-decode transport over a shared :class:`aiohttp.ClientSession`.

    Failures are mapped onto the library taxonomy: connection problems,
    timeouts and non-200 statuses become :class:`NetworkError`, bodies that
    are not JSON become :class:`UpstreamFormatError`. Nothing is retried.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 10.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(self, url: str, *, params: Mapping[str, Any] | None = None) -> Any:
        headers = {
            "accept": "application/json",
            "cache-control": "no-cache",
            "user-agent": USER_AGENT,
        }
        query = {k: str(v) for k, v in (params or {}).items()}

        _logger.debug("GET %s params=%s", url, redact_for_log(query))

        try:
            async with self._http.get(url, params=query, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise NetworkError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except NetworkError:
            raise
        except TimeoutError as exc:
            raise NetworkError(f"Request to {url} timed out", endpoint=url) from exc
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}", endpoint=url) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise UpstreamFormatError(f"Invalid JSON from {url}: {text[:200]}", endpoint=url) from exc
