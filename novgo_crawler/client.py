"""Async HTTP client for novgo pages, plus the retry wrapper.

``PageFetcher`` performs exactly one attempt per call.  Retrying lives in
:func:`fetch_with_retry` so callers choose the budget per target: list
pages and chapter pages share the same fetcher but not the same policy.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
from bs4 import BeautifulSoup

from .config import HEADERS, MAX_RETRIES, REQUEST_TIMEOUT, RETRY_DELAY
from .errors import FetchError, FetchTimeout, HttpStatusError, TransportError

log = logging.getLogger("crawler-novgo.client")

T = TypeVar("T")


class PageFetcher:
    """Single-attempt async fetcher sharing one httpx connection pool.

    Parameters
    ----------
    timeout:
        Hard deadline in seconds for one request, connect to last byte.
    max_connections:
        Size of the connection pool; the downloader never has more than
        ``concurrency`` requests in flight, so this only needs to cover that.
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        max_connections: int = 20,
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(
            headers=HEADERS,
            timeout=httpx.Timeout(timeout, connect=min(10.0, timeout)),
            follow_redirects=True,
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections,
            ),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> PageFetcher:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def get(self, url: str, timeout: float | None = None) -> httpx.Response:
        """Issue one GET. Raises a :class:`FetchError` subclass on any failure."""
        deadline = self.timeout if timeout is None else timeout
        try:
            r = await asyncio.wait_for(self._client.get(url), deadline)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise FetchTimeout(f"Timed out after {deadline:g}s: {url}", url) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Transport error: {exc}", url) from exc
        except httpx.HTTPError as exc:
            # redirect loops, undecodable bodies
            raise TransportError(f"{type(exc).__name__}: {exc}", url) from exc

        if not r.is_success:
            raise HttpStatusError(r.status_code, url)
        return r

    async def fetch(self, url: str, timeout: float | None = None) -> BeautifulSoup:
        """Fetch *url* and return a freshly parsed document."""
        r = await self.get(url, timeout=timeout)
        return BeautifulSoup(r.text, "lxml")

    async def fetch_bytes(self, url: str, timeout: float | None = None) -> bytes:
        return (await self.get(url, timeout=timeout)).content


async def fetch_with_retry(
    fetch: Callable[[str], Awaitable[T]],
    url: str,
    retries: int = MAX_RETRIES,
    delay: float = RETRY_DELAY,
) -> T:
    """Call ``fetch(url)`` up to ``retries + 1`` times.

    Waits a constant *delay* between attempts.  Every :class:`FetchError`
    is retried, 404 included; the last one is re-raised once the budget
    is spent.  Anything that is not a ``FetchError`` propagates at once.
    """
    if retries < 0:
        raise ValueError("retries must be >= 0")

    attempts = retries + 1
    for attempt in range(1, attempts):
        try:
            return await fetch(url)
        except FetchError as exc:
            log.warning(
                "Attempt %d/%d failed for %s: %s (retrying in %.1fs)",
                attempt, attempts, url, exc, delay,
            )
            await asyncio.sleep(delay)

    # last attempt: its error goes to the caller
    return await fetch(url)
