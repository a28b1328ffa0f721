"""Bounded-concurrency chapter downloader.

Chapters are fetched in consecutive batches of ``concurrency``.  Within a
batch every chapter runs concurrently; the next batch starts only once the
whole batch is done, so there are never more than ``concurrency`` requests
in flight and never more than one batch of documents in memory.

Results are collected from ``asyncio.gather`` (which preserves argument
order) and written into a pre-sized list by input index, so completion
order never affects output order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from bs4 import BeautifulSoup

from .client import fetch_with_retry
from .config import DEFAULT_CONCURRENCY, MAX_RETRIES, REQUEST_DELAY, RETRY_DELAY
from .errors import CrawlCancelled, ExtractionMissing, FetchError
from .models import ChapterRecord, ChapterStub
from .parser import parse_chapter

log = logging.getLogger("crawler-novgo.downloader")

# (position, total, record) -- position is 1-based
ProgressCallback = Callable[[int, int, ChapterRecord], None]


async def download_all(
    fetch: Callable[[str], Awaitable[BeautifulSoup]],
    stubs: Sequence[ChapterStub],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    retries: int = MAX_RETRIES,
    request_delay: float = REQUEST_DELAY,
    retry_delay: float = RETRY_DELAY,
    on_progress: ProgressCallback | None = None,
    cancel: asyncio.Event | None = None,
) -> list[ChapterRecord]:
    """Fetch every chapter in *stubs*; return one record per stub, in order.

    A chapter that cannot be fetched or parsed is replaced by a placeholder
    record and logged; it never aborts the run.  If *cancel* is set between
    batches, :class:`CrawlCancelled` is raised instead of returning a
    partial list.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    total = len(stubs)
    records: list[ChapterRecord | None] = [None] * total
    if total == 0:
        return []

    n_batches = (total + concurrency - 1) // concurrency

    async def _fetch_one(index: int, stub: ChapterStub) -> ChapterRecord:
        record = await _download_chapter(index, total, stub, fetch, retries, retry_delay)
        # Throttle: the slot is held for request_delay after every attempt,
        # successful or not.
        if request_delay > 0:
            await asyncio.sleep(request_delay)
        if on_progress is not None:
            on_progress(index + 1, total, record)
        return record

    for batch_no, batch_start in enumerate(range(0, total, concurrency), 1):
        if cancel is not None and cancel.is_set():
            raise CrawlCancelled(
                f"Cancelled before batch {batch_no}/{n_batches} "
                f"({batch_start}/{total} chapters done)"
            )

        batch = stubs[batch_start : batch_start + concurrency]
        results = await asyncio.gather(
            *[_fetch_one(batch_start + i, stub) for i, stub in enumerate(batch)]
        )
        for i, record in enumerate(results):
            records[batch_start + i] = record

        failed = sum(1 for r in results if r.failed)
        log.debug(
            "Batch %d/%d: %d chapters, %d failed", batch_no, n_batches, len(batch), failed
        )

    return [r for r in records if r is not None]


async def _download_chapter(
    index: int,
    total: int,
    stub: ChapterStub,
    fetch: Callable[[str], Awaitable[BeautifulSoup]],
    retries: int,
    retry_delay: float,
) -> ChapterRecord:
    try:
        soup = await fetch_with_retry(fetch, stub.url, retries, retry_delay)
        parsed = parse_chapter(soup, stub.url)
    except FetchError as exc:
        log.warning("[%d/%d] %s: giving up after %d attempts: %s",
                    index + 1, total, stub.title or stub.url, retries + 1, exc)
        return ChapterRecord.placeholder(stub)
    except ExtractionMissing as exc:
        log.warning("[%d/%d] %s: %s", index + 1, total, stub.title or stub.url, exc)
        return ChapterRecord.placeholder(stub)
    except Exception as exc:
        log.warning("[%d/%d] %s: unexpected error: %r",
                    index + 1, total, stub.title or stub.url, exc, exc_info=True)
        return ChapterRecord.placeholder(stub)

    if not parsed.title:
        return ChapterRecord(title=stub.title, content=parsed.content)
    return parsed
