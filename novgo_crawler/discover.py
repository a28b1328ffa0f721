"""Chapter list discovery: walk the paginated chapter list of a novel."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from bs4 import BeautifulSoup

from .client import fetch_with_retry
from .config import MAX_RETRIES, RETRY_DELAY
from .models import ChapterStub
from .parser import parse_chapter_list

log = logging.getLogger("crawler-novgo.discover")


async def discover_chapters(
    fetch: Callable[[str], Awaitable[BeautifulSoup]],
    start_url: str,
    *,
    retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY,
) -> list[ChapterStub]:
    """Follow "next page" links from *start_url* and collect every stub.

    Stubs keep page order, then document order within a page.  A list page
    that still fails after retries aborts discovery: a chapter list with a
    hole in it would silently produce a wrong book.
    """
    stubs: list[ChapterStub] = []
    visited: set[str] = set()
    page_url: str | None = start_url
    page_no = 0

    while page_url is not None:
        visited.add(page_url)
        page_no += 1

        soup = await fetch_with_retry(fetch, page_url, retries, retry_delay)
        found, next_url = parse_chapter_list(soup, page_url)
        stubs.extend(found)
        log.debug("List page %d (%s): %d chapters", page_no, page_url, len(found))

        if next_url is not None and next_url in visited:
            log.warning("Pagination loops back to %s, stopping", next_url)
            break
        page_url = next_url

    log.info("Discovered %d chapters across %d list pages", len(stubs), page_no)
    return stubs
