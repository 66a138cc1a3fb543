"""Filesystem utilities for podcast_transcriber."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Set

from platformdirs import user_cache_dir, user_data_dir

from . import config_constants

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "podcast_transcriber_"
MAX_FILENAME_CHARS = 200
_PLATFORMDIR_APP_NAMES = ("podcast_transcriber", "podcast-transcriber")


def _platformdirs_safe_roots() -> set[Path]:
    """Return resolved platformdirs locations considered safe for outputs."""

    roots: set[Path] = set()
    for getter in (user_data_dir, user_cache_dir):
        for app_name in _PLATFORMDIR_APP_NAMES:
            location = getter(app_name)
            if not location:
                continue
            try:
                resolved = Path(location).expanduser().resolve()
            except (OSError, RuntimeError):
                continue
            roots.add(resolved)
    return roots


_PLATFORMDIR_SAFE_ROOTS = _platformdirs_safe_roots()


def sanitize_filename(name: str) -> str:
    """Sanitize strings for safe filename usage.

    Keeps alphanumerics, ``-`` and ``.``; whitespace runs become one
    underscore and everything else is dropped.

    Example:
        >>> sanitize_filename("Episode 12: What's Next?")
        'Episode_12_Whats_Next'
    """
    words = name.split()
    safe_words = ["".join(ch for ch in word if ch.isalnum() or ch in {"-", "."}) for word in words]
    safe = "_".join(word for word in safe_words if word).strip("._")
    if not safe:
        return "untitled"
    return safe[:MAX_FILENAME_CHARS]


def validate_and_normalize_output_dir(path: str) -> str:
    """Validate an output directory path and return an absolute, normalized version."""
    if not path or not path.strip():
        raise ValueError("Output directory path cannot be empty")

    path_obj = Path(path).expanduser()
    try:
        resolved = path_obj.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid output directory path: {path} ({exc})") from exc

    safe_roots = {
        Path.cwd().resolve(),
        Path.home().resolve(),
        Path(tempfile.gettempdir()).resolve(),
        *_PLATFORMDIR_SAFE_ROOTS,
    }
    if not any(resolved == root or resolved.is_relative_to(root) for root in safe_roots):
        logger.warning(
            "Output directory %s is outside recommended locations (home or app data).", resolved
        )
    return str(resolved)


def source_output_dir(output_dir: str, source_title: str) -> str:
    """Return ``<output_dir>/<sanitized source title>``."""
    return os.path.join(output_dir, sanitize_filename(source_title))


def transcript_path(
    source_dir: str, item_title: str, claimed: Optional[Set[str]] = None
) -> str:
    """Return the transcript file path for an item inside ``source_dir``.

    When ``claimed`` is given, a path already in it gets a ``_2``, ``_3``...
    suffix so items with the same sanitized title never share a file. The
    chosen path is added to ``claimed``.
    """
    stem = sanitize_filename(item_title)
    ext = config_constants.DEFAULT_TRANSCRIPT_EXTENSION
    path = os.path.join(source_dir, stem + ext)
    if claimed is None:
        return path
    counter = 2
    while path in claimed:
        path = os.path.join(source_dir, f"{stem}_{counter}{ext}")
        counter += 1
    claimed.add(path)
    return path


def write_text_file(path: str, text: str) -> None:
    """Write ``text`` to ``path`` atomically, creating parent directories.

    The content goes to a temporary file in the same directory first and is
    moved into place, so a reader never sees a half-written transcript.
    """
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp_", suffix=".part")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


@contextmanager
def scratch_directory(parent: Optional[str] = None) -> Iterator[str]:
    """Yield a fresh scratch directory that is removed on exit, success or not."""
    path = tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=parent)
    logger.debug("Created scratch directory %s", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed scratch directory %s", path)
