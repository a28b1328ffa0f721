"""
Core EPUB building logic.

Turns a :class:`RunResult` into an EPUB 3 file with ebooklib.  Reading order
and table of contents are: cover page (when a valid local cover exists),
a metadata page, then the chapters in run order.
"""

from __future__ import annotations

import re
from html import escape
from pathlib import Path

from ebooklib import epub
from PIL import Image

from .models import RunResult
from .utils import atomic_write, sanitize_title

# ── Constants ────────────────────────────────────────────────────────────────

BOOK_CSS = """\
@charset "UTF-8";
body {
    font-family: "Noto Serif", "Times New Roman", serif;
    line-height: 1.8;
    margin: 1em;
    padding: 0;
    color: #1a1a1a;
}
h1 {
    font-size: 1.6em;
    text-align: center;
    margin: 1.5em 0 1em;
    color: #2c3e50;
}
h2 {
    font-size: 1.3em;
    text-align: center;
    margin: 1.2em 0 0.8em;
    color: #34495e;
}
p {
    text-indent: 1.5em;
    margin: 0.4em 0;
    text-align: justify;
}
.meta-page p {
    text-indent: 0;
}
.cover-page {
    text-align: center;
    padding: 0;
    margin: 0;
}
.cover-page img {
    max-width: 100%;
    max-height: 100%;
}
"""

LANGUAGE = "en"


# ── Text helpers ─────────────────────────────────────────────────────────────


def _text_to_html(text: str) -> str:
    """Convert plain text to HTML paragraphs (blank line = new paragraph)."""
    html_parts: list[str] = []
    for para in re.split(r"\n\s*\n", text):
        para = para.strip()
        if para:
            html_parts.append(f"<p>{escape(para).replace(chr(10), '<br/>')}</p>")
    return "\n".join(html_parts)


def _metadata_page_html(result: RunResult) -> str:
    meta = result.metadata
    parts = [f"<h1>{escape(meta.title)}</h1>"]
    if meta.author:
        parts.append(f"<h2>by {escape(meta.author)}</h2>")
    parts.append(f"<p><strong>Status:</strong> {escape(meta.status)}</p>")
    parts.append(f"<p><strong>Genres:</strong> {escape(', '.join(meta.genres))}</p>")
    parts.append(f"<p><strong>Source:</strong> {escape(meta.source)}</p>")
    if meta.url:
        parts.append(f"<p><strong>URL:</strong> {escape(meta.url)}</p>")
    if meta.description:
        parts.append("<h3>Description</h3>")
        parts.append(_text_to_html(meta.description))
    return "\n".join(parts)


# ── Cover helpers ────────────────────────────────────────────────────────────


def validate_cover(cover_path: Path) -> bool:
    """Check the cover image is a non-empty file Pillow can read."""
    if not cover_path.is_file() or cover_path.stat().st_size == 0:
        return False
    try:
        with Image.open(cover_path) as img:
            img.verify()
        return True
    except Exception:
        return False


# ── EPUB builder ─────────────────────────────────────────────────────────────


def build_epub(result: RunResult, output_path: Path) -> Path:
    """Build an EPUB file from *result* and write it atomically to *output_path*.

    Uses ``result.metadata.cover_path`` as the cover when it points to a
    valid image; otherwise the book is produced without a cover.

    Returns:
        Path to the created EPUB file.
    """
    meta = result.metadata

    book = epub.EpubBook()
    book.set_identifier(f"novgo-{sanitize_title(meta.title).lower()}")
    book.set_title(meta.title)
    book.set_language(LANGUAGE)

    if meta.author:
        book.add_author(meta.author)
    if meta.description:
        book.add_metadata("DC", "description", meta.description)
    if meta.source:
        book.add_metadata("DC", "publisher", meta.source)
    for genre in meta.genres:
        book.add_metadata("DC", "subject", genre)

    style = epub.EpubItem(
        uid="book_style",
        file_name="style/book.css",
        media_type="text/css",
        content=BOOK_CSS.encode("utf-8"),
    )
    book.add_item(style)

    toc: list = []
    spine_items: list = []

    cover_path = Path(meta.cover_path) if meta.cover_path else None
    if cover_path is not None and validate_cover(cover_path):
        cover_name = f"images/cover{cover_path.suffix.lower() or '.jpg'}"
        book.set_cover(cover_name, cover_path.read_bytes(), create_page=True)
        spine_items.append("cover")
        toc.append(epub.Link("cover.xhtml", "Cover", "cover"))

    meta_page = epub.EpubHtml(title="Metadata", file_name="metadata.xhtml", lang=LANGUAGE)
    meta_page.content = (
        f'<div class="meta-page">\n{_metadata_page_html(result)}\n</div>'
    ).encode("utf-8")
    meta_page.add_item(style)
    book.add_item(meta_page)
    toc.append(meta_page)
    spine_items.append(meta_page)

    spine_items.append("nav")

    for idx, chapter in enumerate(result.chapters, 1):
        title = chapter.title or f"Chapter {idx}"
        epub_ch = epub.EpubHtml(
            title=title,
            file_name=f"chapter_{idx:05d}.xhtml",
            lang=LANGUAGE,
        )
        epub_ch.content = f"<h2>{escape(title)}</h2>\n{chapter.content}".encode("utf-8")
        epub_ch.add_item(style)

        book.add_item(epub_ch)
        toc.append(epub_ch)
        spine_items.append(epub_ch)

    book.toc = toc

    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())

    book.spine = spine_items

    return atomic_write(Path(output_path), lambda tmp: epub.write_epub(tmp, book, {}))
