"""Output writers: JSON serialization and format dispatch."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .epub_builder import build_epub
from .errors import WriteFailure
from .models import RunResult
from .utils import atomic_write, output_path_for

log = logging.getLogger("crawler-novgo.writer")


def write_json(result: RunResult, output_path: Path) -> Path:
    """Serialize *result* as UTF-8 JSON, written atomically."""
    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    def _write(tmp_path: str) -> None:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(payload)

    return atomic_write(Path(output_path), _write)


_WRITERS = {
    "epub": build_epub,
    "json": write_json,
}


def write_output(result: RunResult, output_dir: str | Path, fmt: str = "epub") -> Path:
    """Write *result* to ``<output_dir>/<sanitized-title>.<fmt>``.

    Raises
    ------
    ValueError
        If *fmt* is not a known format.
    WriteFailure
        If the file could not be produced; no partial file is left behind.
    """
    if fmt not in _WRITERS:
        valid = ", ".join(sorted(_WRITERS))
        raise ValueError(f"Unknown output format {fmt!r}. Valid formats: {valid}")

    path = output_path_for(result.metadata.title, output_dir, fmt)
    try:
        _WRITERS[fmt](result, path)
    except Exception as exc:
        raise WriteFailure(f"Could not write {path}: {exc}") from exc

    log.info("Wrote %s (%d chapters)", path, len(result.chapters))
    return path
