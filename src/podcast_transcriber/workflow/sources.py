"""Resolution of configured sources into batches of items."""

from __future__ import annotations

import logging
import os
from typing import List, Sequence

from .. import config, config_constants, filesystem, rss_parser
from ..models import SourceItem
from .types import SourceBatch

logger = logging.getLogger(__name__)


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_sources_file(path: str) -> List[str]:
    """Return the sources listed in ``path``, one per line.

    Blank lines and lines starting with ``#`` are ignored.

    Raises:
        ValueError: If the file cannot be read
    """
    try:
        with open(os.path.expanduser(path), encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    except OSError as exc:
        raise ValueError(f"Failed to read sources file {path}: {exc}") from exc
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


def collect_sources(cfg: config.Config) -> List[str]:
    """Return configured sources followed by those from ``sources_file``, without duplicates."""
    sources = list(cfg.sources)
    if cfg.sources_file:
        sources.extend(read_sources_file(cfg.sources_file))
    unique: List[str] = []
    for source in sources:
        if source not in unique:
            unique.append(source)
    return unique


def feed_batch(feed_url: str, cfg: config.Config, output_dir: str) -> SourceBatch:
    """Fetch a feed and return its newest items (up to ``cfg.limit``).

    Raises:
        DownloadError: If the feed cannot be fetched
        ValueError: If the feed cannot be parsed
    """
    feed = rss_parser.fetch_feed(feed_url, cfg)
    items = rss_parser.select_items(feed.items, cfg.limit)
    logger.info("Feed %r: %d item(s) selected of %d", feed.title, len(items), len(feed.items))
    return SourceBatch(
        title=feed.title,
        url=feed_url,
        output_dir=filesystem.source_output_dir(output_dir, feed.title),
        items=items,
    )


def local_batch(paths: Sequence[str], output_dir: str) -> SourceBatch:
    """Group local audio files into one batch titled after the local files directory."""
    items = [
        SourceItem(
            title=os.path.splitext(os.path.basename(path))[0] or path,
            media_url=path,
            source_url=path,
        )
        for path in paths
    ]
    return SourceBatch(
        title=config_constants.LOCAL_FILES_DIRNAME,
        url=", ".join(paths),
        output_dir=os.path.join(output_dir, config_constants.LOCAL_FILES_DIRNAME),
        items=items,
    )
