"""HTML builders and an in-memory fetcher shared by the test modules."""

from __future__ import annotations

import asyncio
from html import escape

from bs4 import BeautifulSoup

from novgo_crawler.errors import HttpStatusError

BASE = "https://novgo.net"


def landing_page(
    title: str = "Test Novel",
    author: str = "A",
    genres: tuple[str, ...] = ("Action", "Fantasy"),
    status: str = "Ongoing",
    source: str = "Web Novel",
    cover: str = "/uploads/test-novel.jpg",
    chapters: list[tuple[str, str]] | None = None,
    next_href: str | None = None,
) -> str:
    genre_links = ", ".join(f'<a href="/genre/{g.lower()}">{escape(g)}</a>' for g in genres)
    title_html = f'<h3 class="title">{escape(title)}</h3>' if title else ""
    return f"""
<html><body>
<div class="col-xs-12 col-sm-4 col-md-4 info-holder">
  <div class="book"><img src="{cover}" alt="{escape(title)}"></div>
  <div class="info">
    <div><h3>Author:</h3><a href="/author/{author.lower()}">{escape(author)}</a></div>
    <div><h3>Genre:</h3>{genre_links}</div>
    <div><h3>Source:</h3>{escape(source)}</div>
    <div><h3>Status:</h3><a href="/status/{status.lower()}">{escape(status)}</a></div>
  </div>
</div>
<div class="col-xs-12 col-sm-8 col-md-8 desc">
  {title_html}
  <div class="desc-text"><p>A story about testing.</p><p>Second paragraph.</p></div>
</div>
{chapter_list(chapters or [], next_href)}
</body></html>
"""


def chapter_list(chapters: list[tuple[str, str]], next_href: str | None = None) -> str:
    items = "\n".join(
        f'<li><a href="{href}" title="{escape(title)}">'
        f'<span class="chapter-text">{escape(title)}</span></a></li>'
        for title, href in chapters
    )
    pagination = ""
    if next_href is not None:
        pagination = (
            '<ul class="pagination">'
            '<li class="first"><a href="?page=1">First</a></li>'
            f'<li class="next"><a href="{next_href}">Next</a></li>'
            "</ul>"
        )
    return f"""
<div id="list-chapter">
  <ul class="list-chapter">
{items}
  </ul>
  {pagination}
</div>
"""


def list_page(chapters: list[tuple[str, str]], next_href: str | None = None) -> str:
    return f"<html><body>{chapter_list(chapters, next_href)}</body></html>"


def chapter_page(novel: str, heading: str, body: str) -> str:
    return f"""
<html><body>
<div class="container"><div class="row"><div class="col-xs-12">
  <a class="truyen-title" href="/test-novel.html">{escape(novel)}</a>
  <h2><a class="chapter-title" href="#">{escape(heading)}</a></h2>
  <div class="cha-content"><div class="cha-words">{body}</div></div>
</div></div></div>
</body></html>
"""


class FakeFetcher:
    """Serves canned HTML by URL and records every request.

    ``failures[url] = n`` makes the first *n* requests for *url* fail with
    HTTP 503; ``n = -1`` makes it fail forever.  ``delays[url]`` adds
    latency so completion order can be shuffled.
    """

    def __init__(
        self,
        pages: dict[str, str],
        *,
        failures: dict[str, int] | None = None,
        delays: dict[str, float] | None = None,
        binaries: dict[str, bytes] | None = None,
    ):
        self.pages = pages
        self.failures = dict(failures or {})
        self.delays = delays or {}
        self.binaries = binaries or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    def attempts(self, url: str) -> int:
        return self.calls.count(url)

    async def fetch(self, url: str) -> BeautifulSoup:
        self.calls.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            remaining = self.failures.get(url, 0)
            if remaining != 0:
                if remaining > 0:
                    self.failures[url] = remaining - 1
                raise HttpStatusError(503, url)
            if url not in self.pages:
                raise HttpStatusError(404, url)
            return BeautifulSoup(self.pages[url], "lxml")
        finally:
            self.in_flight -= 1

    async def fetch_bytes(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.binaries:
            raise HttpStatusError(404, url)
        return self.binaries[url]
