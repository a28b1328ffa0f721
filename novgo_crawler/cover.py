"""Cover image download with post-write verification.

Failure here is never fatal: every error path logs a warning and returns
``None`` so the EPUB is built without a cover.
"""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path

from PIL import Image

from .client import PageFetcher, fetch_with_retry
from .config import MAX_RETRIES, RETRY_DELAY
from .epub_builder import validate_cover
from .errors import FetchError

log = logging.getLogger("crawler-novgo.cover")

_EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "GIF": ".gif", "WEBP": ".webp"}


async def download_cover(
    fetcher: PageFetcher,
    cover_url: str,
    dest: Path,
    *,
    retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY,
) -> str | None:
    """Download *cover_url* next to *dest*, with the suffix set from the image type.

    Returns the local path on success, ``None`` on any failure.
    """
    if not cover_url:
        return None

    try:
        data = await fetch_with_retry(fetcher.fetch_bytes, cover_url, retries, retry_delay)
    except FetchError as exc:
        log.warning("Cover download failed: %s", exc)
        return None

    if not data:
        log.warning("Cover download returned 0 bytes: %s", cover_url)
        return None

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format or ""
    except Exception as exc:
        log.warning("Cover is not a readable image (%s): %s", cover_url, exc)
        return None

    path = Path(dest).with_suffix(_EXTENSIONS.get(fmt, ".jpg"))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        log.warning("Could not save cover to %s: %s", path, exc)
        return None

    try:
        verified = path.stat().st_size == len(data) and validate_cover(path)
    except OSError:
        verified = False

    if not verified:
        log.warning("Cover failed verification after write: %s", path)
        try:
            os.remove(path)
        except OSError:
            pass
        return None

    log.info("Cover saved to %s", path)
    return str(path)
