"""Combine metadata and downloaded chapters into the final run result."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ChapterRecord, NovelMetadata, RunResult


def assemble(metadata: NovelMetadata, chapters: Iterable[ChapterRecord]) -> RunResult:
    """Build a :class:`RunResult`. No I/O; placeholder chapters pass through as-is."""
    return RunResult(metadata=metadata, chapters=tuple(chapters))
