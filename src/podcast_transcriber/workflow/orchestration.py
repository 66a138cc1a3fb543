"""Pipeline orchestration: sources in, transcripts and a summary out."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set, Tuple

from .. import config, filesystem
from ..exceptions import TranscriberError, TransportError
from . import helpers, metrics, sources
from .item_processor import ItemProcessor
from .types import ItemOutcome, SourceBatch, SourceFailure

logger = logging.getLogger(__name__)

NOISY_LOGGERS = ("openai", "httpx", "httpcore", "urllib3")


def apply_log_level(level: str, log_file: Optional[str] = None) -> None:
    """Apply logging level to root logger and configure handlers.

    Args:
        level: Log level string (e.g., 'DEBUG', 'INFO', 'WARNING')
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Raises:
        ValueError: If log level is invalid
        OSError: If log file cannot be created or written to
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    else:
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)
            handler.setFormatter(formatter)
    root_logger.setLevel(numeric_level)

    if log_file:
        file_handler_exists = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root_logger.handlers
        )
        if not file_handler_exists:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logger.info("Logging to file: %s", log_file)

    # HTTP client libraries log every request at DEBUG
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def resolve_batches(
    cfg: config.Config, output_dir: str
) -> Tuple[List[SourceBatch], List[SourceFailure]]:
    """Turn configured sources into batches; unreachable feeds become failures.

    Local files are grouped into one batch placed after the feeds.

    Raises:
        ValueError: If no sources are configured
    """
    all_sources = sources.collect_sources(cfg)
    if not all_sources:
        raise ValueError("No sources given. Pass feed URLs or audio files, or use --sources-file.")

    batches: List[SourceBatch] = []
    failures: List[SourceFailure] = []
    local_paths: List[str] = []
    for source in all_sources:
        if not sources.is_remote(source):
            local_paths.append(source)
            continue
        try:
            batches.append(sources.feed_batch(source, cfg, output_dir))
        except (TranscriberError, ValueError) as exc:
            kind = exc.kind if isinstance(exc, TranscriberError) else type(exc).__name__
            logger.error("Could not read feed %s (%s): %s", source, kind, exc)
            failures.append(SourceFailure(source=source, error_kind=kind, error_message=str(exc)))
    if local_paths:
        batches.append(sources.local_batch(local_paths, output_dir))
    return batches, failures


def run_pipeline(
    cfg: config.Config,
    processor: Optional[ItemProcessor] = None,
) -> Tuple[int, str]:
    """Execute the chunked transcription pipeline.

    This is the primary entry point for programmatic use. For each source it
    selects the items to process (feeds: newest first, up to ``cfg.limit``),
    runs every item through the per-item state machine, and writes the
    source's sidecar metadata. A failing item or source is recorded and the
    run moves on to the next one.

    Args:
        cfg: Configuration object with all pipeline settings.
        processor: Optional preconfigured ItemProcessor (defaults to one built from ``cfg``).

    Returns:
        Tuple[int, str]: A tuple containing:

            - count (int): Number of transcripts persisted in this run
            - summary (str): Human-readable summary message describing the run

    Raises:
        ValueError: If no sources are configured or the output directory is invalid
        OSError: If the output directory cannot be written

    Example:
        >>> from podcast_transcriber import Config, run_pipeline
        >>> cfg = Config(sources=["https://example.com/feed.xml"], limit=2)
        >>> count, summary = run_pipeline(cfg)
        >>> print(summary)
    """
    output_dir = filesystem.validate_and_normalize_output_dir(cfg.output_dir)
    pipeline_metrics = metrics.Metrics()
    batches, source_failures = resolve_batches(cfg, output_dir)
    pipeline_metrics.sources_failed = len(source_failures)
    processor = processor or ItemProcessor(cfg)

    outcomes: List[ItemOutcome] = []
    position = 0
    for batch in batches:
        logger.info("Processing %r (%d item(s))", batch.title, len(batch.items))
        batch_outcomes: List[ItemOutcome] = []
        claimed_paths: Set[str] = set()
        for item in batch.items:
            position += 1
            output_path = filesystem.transcript_path(batch.output_dir, item.title, claimed_paths)
            outcome = processor.process(item, output_path, position)
            pipeline_metrics.record_outcome(outcome)
            batch_outcomes.append(outcome)
        outcomes.extend(batch_outcomes)
        if not batch.items:
            continue
        try:
            helpers.write_source_metadata(cfg, batch, batch_outcomes, datetime.now().astimezone())
        except OSError as exc:
            logger.error("Could not write metadata for %r: %s", batch.title, exc)
            source_failures.append(
                SourceFailure(
                    source=batch.url, error_kind=TransportError.__name__, error_message=str(exc)
                )
            )
            pipeline_metrics.sources_failed += 1

    summary = helpers.generate_pipeline_summary(
        outcomes, source_failures, pipeline_metrics, output_dir
    )
    return pipeline_metrics.items_persisted, summary
