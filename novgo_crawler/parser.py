"""HTML parsers for novgo pages.

All functions are synchronous and pure: they take an already parsed
document and never touch the network.  Relative links are resolved against
the URL of the page they were found on.
"""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .errors import ExtractionMissing
from .models import ChapterRecord, ChapterStub, NovelMetadata

# Tags dropped from chapter bodies wholesale.
_STRIP_TAGS = ("script", "style", "iframe", "noscript", "ins", "form", "button")

# class / id fragments that mark injected ad containers
_AD_MARKERS = frozenset(
    {"ad", "ads", "adsbygoogle", "advert", "advertisement", "banner", "sponsor"}
)

_EMPTY_CANDIDATES = ("p", "div", "span")


# ---------------------------------------------------------------------------
# Novel landing page
# ---------------------------------------------------------------------------


def parse_metadata(soup: BeautifulSoup, page_url: str) -> NovelMetadata:
    """Parse the novel landing page.

    Raises :class:`ExtractionMissing` when the title is absent: without it
    there is nothing to name the output file after.
    """
    title_el = soup.select_one("div.desc h3.title")
    title = title_el.get_text(strip=True) if title_el else ""
    if not title:
        raise ExtractionMissing("title", page_url)

    desc_el = soup.select_one("div.desc .desc-text")
    description = desc_el.get_text("\n", strip=True) if desc_el else ""

    cover_img = soup.select_one(".info-holder .book img[src]")
    cover_url = urljoin(page_url, cover_img["src"]) if cover_img else ""

    authors = _info_links(soup, "Author:")
    genres = tuple(dict.fromkeys(_info_links(soup, "Genre:")))
    status = ", ".join(_info_links(soup, "Status:"))

    source = ""
    source_div = _info_section(soup, "Source:")
    if source_div is not None:
        source = "".join(
            str(s)
            for s in source_div.find_all(string=True, recursive=False)
            if isinstance(s, NavigableString) and not isinstance(s, Comment)
        ).strip()

    return NovelMetadata(
        title=title,
        description=description,
        cover_url=cover_url,
        author=", ".join(authors),
        genres=genres,
        status=status,
        source=source,
        url=page_url,
    )


def _info_section(soup: BeautifulSoup, label: str) -> Tag | None:
    """Return the block whose ``<h3>`` heading contains *label*."""
    for h3 in soup.select(".info h3"):
        if label in h3.get_text():
            return h3.parent
    return None


def _info_links(soup: BeautifulSoup, label: str) -> list[str]:
    section = _info_section(soup, label)
    if section is None:
        return []
    names = (a.get_text(strip=True) for a in section.find_all("a"))
    return [n for n in names if n]


# ---------------------------------------------------------------------------
# Chapter list page
# ---------------------------------------------------------------------------


def parse_chapter_list(
    soup: BeautifulSoup, page_url: str
) -> tuple[list[ChapterStub], str | None]:
    """Return the chapter stubs on this page and the next page URL, if any."""
    stubs: list[ChapterStub] = []
    for a in soup.select(".list-chapter li a"):
        href = a.get("href")
        if not href:
            continue
        text_el = a.select_one(".chapter-text")
        title = text_el.get_text(strip=True) if text_el else ""
        if not title:
            title = (a.get("title") or "").strip()
        stubs.append(ChapterStub(title=title, url=urljoin(page_url, href)))

    next_url = None
    next_a = soup.select_one(".pagination li.next a[href]")
    if next_a is not None:
        href = next_a["href"].strip()
        if href and not href.startswith(("#", "javascript:")):
            next_url = urljoin(page_url, href)

    return stubs, next_url


# ---------------------------------------------------------------------------
# Chapter page
# ---------------------------------------------------------------------------


def parse_chapter(soup: BeautifulSoup, page_url: str = "") -> ChapterRecord:
    """Parse a chapter page into a record holding cleaned body HTML.

    The title is ``"<novel title> - <chapter heading>"``; either half may be
    missing, in which case the other is used alone (and an empty title is
    left for the caller to fill from the stub).
    """
    novel_el = soup.select_one(".col-xs-12 a.truyen-title")
    heading_el = soup.select_one(".col-xs-12 h2")
    parts = [
        el.get_text(strip=True) for el in (novel_el, heading_el) if el is not None
    ]
    title = " - ".join(p for p in parts if p)

    body = soup.select_one(".cha-content .cha-words")
    if body is None:
        raise ExtractionMissing("content", page_url)

    clean_content(body)
    content = body.decode_contents().strip()
    if not content:
        raise ExtractionMissing("content", page_url)

    return ChapterRecord(title=title, content=content)


def clean_content(node: Tag) -> Tag:
    """Remove scripts, ads, comments and empty wrappers from *node* in place."""
    for comment in node.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for el in node.find_all(_STRIP_TAGS):
        if not el.decomposed:
            el.decompose()

    for el in node.find_all(_is_ad):
        if not el.decomposed:
            el.decompose()

    # Innermost first, so a wrapper emptied by removing its children goes too.
    for el in reversed(node.find_all(_EMPTY_CANDIDATES)):
        if el.decomposed:
            continue
        if not el.get_text(strip=True) and el.find("img") is None:
            el.decompose()

    return node


def _is_ad(tag: Tag) -> bool:
    tokens = list(tag.get("class") or [])
    if tag.get("id"):
        tokens.append(tag["id"])
    for token in tokens:
        parts = token.lower().replace("_", "-").split("-")
        if any(p in _AD_MARKERS for p in parts):
            return True
    return False
