"""Exception hierarchy for crawler-novgo.

Fatal vs non-fatal is decided by the caller, not by the exception type:
a ``FetchError`` on a list page aborts the run, the same error on a chapter
page degrades to a placeholder.
"""

from __future__ import annotations


class CrawlError(Exception):
    """Base for every error the crawler raises on purpose.

    The CLI catches this and prints a one-line message without a traceback.
    """


class FetchError(CrawlError):
    """A single page request failed."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class FetchTimeout(FetchError):
    """The request did not finish within its deadline."""


class HttpStatusError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str = ""):
        super().__init__(f"HTTP {status_code}: {url}", url)
        self.status_code = status_code


class TransportError(FetchError):
    """DNS failure, refused or reset connection, protocol error."""


class ExtractionMissing(CrawlError):
    """A required element was not found on a page."""

    def __init__(self, field: str, url: str = ""):
        where = f" on {url}" if url else ""
        super().__init__(f"Could not extract {field!r}{where}")
        self.field = field
        self.url = url


class WriteFailure(CrawlError):
    """The output file could not be written."""


class CrawlCancelled(CrawlError):
    """The run was cancelled between batches."""
