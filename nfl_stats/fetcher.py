# nfl_stats/fetcher.py
"""
HTTP transport for both upstream sources.

fetch() never raises: non-2xx responses and network errors come back as
Err(FetchFailure). Retrying is the caller's decision (see retry.py).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests

from .result import Err, FetchFailure, Malformed, Ok, Result

logger = logging.getLogger(__name__)

# Both sites serve blocking or stripped responses to non-browser clients.
BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class RawPayload:
    """A 2xx response body."""
    url: str
    status: int
    text: str

    def json(self) -> Result[Any, Malformed]:
        try:
            return Ok(json.loads(self.text))
        except ValueError as e:
            return Err(Malformed(source=self.url, reason=f"invalid JSON: {e}"))


class MarkupFetcher:
    """GET with browser-like headers and an explicit timeout on every call."""

    def __init__(
        self,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = dict(headers or BROWSER_HEADERS)

    def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Result[RawPayload, FetchFailure]:
        """
        Execute a GET request and return the body.

        Returns:
            Ok(RawPayload) on 2xx, Err(FetchFailure) otherwise. Timeouts are
            network failures (status None).
        """
        merged = {**self._headers, **(headers or {})}
        try:
            r = self._session.get(url, headers=merged, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("GET %s failed: %s", url, e)
            return Err(FetchFailure(url=url, status=None, reason=type(e).__name__))

        if not 200 <= r.status_code < 300:
            logger.warning("GET %s returned %s", url, r.status_code)
            return Err(FetchFailure(url=url, status=r.status_code, reason=r.reason or ""))

        return Ok(RawPayload(url=url, status=r.status_code, text=r.text))

    def close(self) -> None:
        self._session.close()
