"""Data types shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

# Substituted for the body of a chapter whose every fetch attempt failed.
PLACEHOLDER_CONTENT = "<p><em>[This chapter could not be downloaded.]</em></p>"


@dataclass(frozen=True)
class ChapterStub:
    """A chapter found on a list page, before its content is fetched."""

    title: str
    url: str


@dataclass(frozen=True)
class ChapterRecord:
    """A chapter with resolved content (or the placeholder)."""

    title: str
    content: str

    @property
    def failed(self) -> bool:
        return self.content == PLACEHOLDER_CONTENT

    @classmethod
    def placeholder(cls, stub: ChapterStub) -> ChapterRecord:
        return cls(title=stub.title, content=PLACEHOLDER_CONTENT)


@dataclass(frozen=True)
class NovelMetadata:
    title: str
    description: str = ""
    cover_url: str = ""
    author: str = ""
    genres: tuple[str, ...] = ()
    status: str = ""
    source: str = ""
    url: str = ""
    # Local copy of the cover, filled in just before the EPUB is built.
    cover_path: str | None = None


@dataclass(frozen=True)
class RunResult:
    metadata: NovelMetadata
    chapters: tuple[ChapterRecord, ...] = field(default_factory=tuple)

    @property
    def failed_chapters(self) -> list[int]:
        """1-based positions of chapters that hold the placeholder."""
        return [i for i, ch in enumerate(self.chapters, 1) if ch.failed]

    def to_dict(self) -> dict:
        meta = self.metadata
        return {
            "title": meta.title,
            "description": meta.description,
            "cover": meta.cover_url,
            "author": meta.author,
            "genres": list(meta.genres),
            "status": meta.status,
            "source": meta.source,
            "url": meta.url,
            "chapters": [
                {"title": ch.title, "content": ch.content} for ch in self.chapters
            ],
        }
