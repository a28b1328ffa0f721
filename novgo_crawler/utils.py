"""Shared utilities for crawler-novgo (output paths and atomic writes)."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path


def sanitize_title(title: str) -> str:
    """Make *title* filename-safe: everything outside ``[A-Za-z0-9]`` becomes ``_``."""
    return re.sub(r"[^A-Za-z0-9]", "_", title) or "untitled"


def output_path_for(title: str, output_dir: str | Path, ext: str) -> Path:
    """``results/<sanitized-title>.<ext>``"""
    return Path(output_dir) / f"{sanitize_title(title)}.{ext}"


def atomic_write(path: Path, write) -> Path:
    """Call ``write(tmp_path)`` then move the temp file onto *path*.

    The temp file lives in the destination directory so the final
    ``os.replace`` is a rename on the same filesystem.  On any error the
    temp file is removed and the error re-raised; *path* is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    os.close(fd)
    try:
        write(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return path
