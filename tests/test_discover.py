"""Tests for chapter-list discovery across paginated list pages."""

from __future__ import annotations

import unittest

from novgo_crawler.discover import discover_chapters
from novgo_crawler.errors import HttpStatusError
from tests.pages import BASE, FakeFetcher, landing_page, list_page

NOVEL_URL = f"{BASE}/test-novel.html"
PAGE_2 = f"{NOVEL_URL}?page=2"
PAGE_3 = f"{NOVEL_URL}?page=3"


def _three_pages() -> dict[str, str]:
    return {
        NOVEL_URL: landing_page(
            chapters=[("Chapter 1", "/c1.html"), ("Chapter 2", "/c2.html")],
            next_href="?page=2",
        ),
        PAGE_2: list_page([("Chapter 3", "/c3.html")], next_href="?page=3"),
        PAGE_3: list_page([("Chapter 4", "/c4.html"), ("Chapter 5", "/c5.html")]),
    }


class TestDiscoverChapters(unittest.IsolatedAsyncioTestCase):

    async def test_follows_pagination_in_order(self):
        fetcher = FakeFetcher(_three_pages())
        stubs = await discover_chapters(fetcher.fetch, NOVEL_URL, retries=0, retry_delay=0)

        self.assertEqual(
            [s.title for s in stubs],
            ["Chapter 1", "Chapter 2", "Chapter 3", "Chapter 4", "Chapter 5"],
        )
        self.assertEqual(stubs[2].url, f"{BASE}/c3.html")
        self.assertEqual(fetcher.calls, [NOVEL_URL, PAGE_2, PAGE_3])

    async def test_single_page_without_pagination(self):
        pages = {NOVEL_URL: landing_page(chapters=[("Only", "/only.html")])}
        fetcher = FakeFetcher(pages)
        stubs = await discover_chapters(fetcher.fetch, NOVEL_URL, retries=0, retry_delay=0)
        self.assertEqual(len(stubs), 1)
        self.assertEqual(fetcher.calls, [NOVEL_URL])

    async def test_no_chapters(self):
        fetcher = FakeFetcher({NOVEL_URL: landing_page(chapters=[])})
        stubs = await discover_chapters(fetcher.fetch, NOVEL_URL, retries=0, retry_delay=0)
        self.assertEqual(stubs, [])

    async def test_transient_list_failure_is_retried(self):
        fetcher = FakeFetcher(_three_pages(), failures={PAGE_2: 2})
        stubs = await discover_chapters(fetcher.fetch, NOVEL_URL, retries=2, retry_delay=0)
        self.assertEqual(len(stubs), 5)
        self.assertEqual(fetcher.attempts(PAGE_2), 3)

    async def test_persistent_list_failure_propagates(self):
        fetcher = FakeFetcher(_three_pages(), failures={PAGE_2: -1})
        with self.assertRaises(HttpStatusError):
            await discover_chapters(fetcher.fetch, NOVEL_URL, retries=1, retry_delay=0)
        self.assertEqual(fetcher.attempts(PAGE_2), 2)
        self.assertNotIn(PAGE_3, fetcher.calls)

    async def test_pagination_cycle_stops(self):
        pages = {
            NOVEL_URL: landing_page(chapters=[("Chapter 1", "/c1.html")], next_href="?page=2"),
            PAGE_2: list_page([("Chapter 2", "/c2.html")], next_href=NOVEL_URL),
        }
        fetcher = FakeFetcher(pages)
        with self.assertLogs("crawler-novgo.discover", level="WARNING"):
            stubs = await discover_chapters(fetcher.fetch, NOVEL_URL, retries=0, retry_delay=0)
        self.assertEqual([s.title for s in stubs], ["Chapter 1", "Chapter 2"])
        self.assertEqual(fetcher.calls, [NOVEL_URL, PAGE_2])


if __name__ == "__main__":
    unittest.main()
