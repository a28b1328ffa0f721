"""Run orchestrator: sequence metadata, discovery, download, assembly and writing.

A run moves through :class:`RunState` in a fixed order.  Metadata and
chapter-list failures are fatal and end in ``FAILED``; individual chapter
failures are absorbed as placeholders by the downloader, so once discovery
succeeds the run always reaches ``ASSEMBLING``.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
from collections.abc import Callable
from pathlib import Path

from .assembler import assemble
from .client import PageFetcher, fetch_with_retry
from .config import (
    DEFAULT_CONCURRENCY,
    MAX_RETRIES,
    OUTPUT_DIR,
    OUTPUT_FORMATS,
    REQUEST_DELAY,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
)
from .cover import download_cover
from .discover import discover_chapters
from .downloader import ProgressCallback, download_all
from .models import ChapterRecord, ChapterStub, NovelMetadata, RunResult
from .parser import parse_metadata
from .utils import sanitize_title
from .writer import write_output

log = logging.getLogger("crawler-novgo.crawler")

# writer(result, output_dir, fmt) -> path
Writer = Callable[..., Path]


class RunState(enum.Enum):
    IDLE = "idle"
    FETCHING_METADATA = "fetching_metadata"
    DISCOVERING_CHAPTERS = "discovering_chapters"
    DOWNLOADING_CHAPTERS = "downloading_chapters"
    ASSEMBLING = "assembling"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class NovelCrawler:
    """Crawl one novel and write it to a single output file.

    Parameters
    ----------
    novel_url:
        Landing page of the novel; page 1 of the chapter list is served on
        the same URL.
    fetcher:
        Object with async ``fetch(url)`` and ``fetch_bytes(url)``.  When
        omitted the crawler creates (and closes) its own :class:`PageFetcher`.
    writer:
        ``writer(result, output_dir, fmt) -> Path``; defaults to
        :func:`write_output`.
    cancel:
        Optional event; once set, the download stops before the next batch
        and the run fails with :class:`CrawlCancelled`.
    """

    def __init__(
        self,
        novel_url: str,
        *,
        fetcher: PageFetcher | None = None,
        output_format: str = "epub",
        output_dir: str | Path = OUTPUT_DIR,
        concurrency: int = DEFAULT_CONCURRENCY,
        retries: int = MAX_RETRIES,
        request_delay: float = REQUEST_DELAY,
        retry_delay: float = RETRY_DELAY,
        timeout: float = REQUEST_TIMEOUT,
        writer: Writer | None = None,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ):
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unknown output format {output_format!r}. "
                f"Valid formats: {', '.join(OUTPUT_FORMATS)}"
            )
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if retries < 0:
            raise ValueError("retries must be >= 0")

        self.novel_url = novel_url
        self.output_format = output_format
        self.output_dir = Path(output_dir)
        self.concurrency = concurrency
        self.retries = retries
        self.request_delay = request_delay
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.on_progress = on_progress
        self.cancel = cancel
        self._fetcher = fetcher
        self._writer = writer or write_output

        self.state = RunState.IDLE
        self.history: list[RunState] = [RunState.IDLE]
        self.metadata: NovelMetadata | None = None
        self.stubs: list[ChapterStub] = []
        self.chapters: list[ChapterRecord] = []
        self.result: RunResult | None = None
        self.output_path: Path | None = None

    def _enter(self, state: RunState) -> None:
        log.info("State: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    async def run(self) -> Path:
        """Execute the whole run and return the path of the written file."""
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Crawler already used (state={self.state.value})")

        owns_fetcher = self._fetcher is None
        fetcher = self._fetcher or PageFetcher(timeout=self.timeout)
        try:
            return await self._run(fetcher)
        except BaseException:
            self._enter(RunState.FAILED)
            raise
        finally:
            if owns_fetcher:
                await fetcher.close()

    async def _run(self, fetcher: PageFetcher) -> Path:
        self._enter(RunState.FETCHING_METADATA)
        soup = await fetch_with_retry(
            fetcher.fetch, self.novel_url, self.retries, self.retry_delay
        )
        self.metadata = parse_metadata(soup, self.novel_url)
        log.info("Novel: %s by %s", self.metadata.title, self.metadata.author or "?")

        self._enter(RunState.DISCOVERING_CHAPTERS)
        self.stubs = await discover_chapters(
            fetcher.fetch,
            self.novel_url,
            retries=self.retries,
            retry_delay=self.retry_delay,
        )

        self._enter(RunState.DOWNLOADING_CHAPTERS)
        self.chapters = await download_all(
            fetcher.fetch,
            self.stubs,
            concurrency=self.concurrency,
            retries=self.retries,
            request_delay=self.request_delay,
            retry_delay=self.retry_delay,
            on_progress=self.on_progress,
            cancel=self.cancel,
        )

        self._enter(RunState.ASSEMBLING)
        metadata = self.metadata
        if self.output_format == "epub" and metadata.cover_url:
            cover_path = await download_cover(
                fetcher,
                metadata.cover_url,
                self.output_dir / "covers" / sanitize_title(metadata.title),
                retries=self.retries,
                retry_delay=self.retry_delay,
            )
            metadata = dataclasses.replace(metadata, cover_path=cover_path)
        self.result = assemble(metadata, self.chapters)

        failed = self.result.failed_chapters
        if failed:
            log.warning(
                "%d of %d chapters fell back to the placeholder: %s",
                len(failed), len(self.chapters), failed,
            )

        self._enter(RunState.WRITING)
        self.output_path = self._writer(self.result, self.output_dir, self.output_format)

        self._enter(RunState.DONE)
        return self.output_path
