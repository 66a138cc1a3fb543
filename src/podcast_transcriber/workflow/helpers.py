"""Helper utilities for the workflow pipeline."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import List, Sequence

import yaml

from .. import config, config_constants, filesystem
from ..models import SourceMetadata
from . import metrics
from .types import ItemOutcome, ItemState, SourceBatch, SourceFailure

logger = logging.getLogger(__name__)


def build_source_metadata(
    cfg: config.Config,
    batch: SourceBatch,
    outcomes: Sequence[ItemOutcome],
    processed_at: datetime,
) -> SourceMetadata:
    return SourceMetadata(
        title=batch.title,
        url=batch.url,
        item_count=len(batch.items),
        persisted_count=sum(1 for o in outcomes if o.state is ItemState.PERSISTED),
        language=cfg.language,
        prompt=cfg.prompt,
        transcription_model=cfg.transcription_model,
        processed_at=processed_at,
    )


def source_metadata_path(cfg: config.Config, batch: SourceBatch) -> str:
    filename = f"{config_constants.SOURCE_INFO_BASENAME}.{cfg.metadata_format}"
    return os.path.join(batch.output_dir, filename)


def write_source_metadata(
    cfg: config.Config,
    batch: SourceBatch,
    outcomes: Sequence[ItemOutcome],
    processed_at: datetime,
) -> str:
    """Write the sidecar metadata file for ``batch``, replacing any earlier one.

    Returns:
        Path of the written file
    """
    metadata = build_source_metadata(cfg, batch, outcomes, processed_at)
    path = source_metadata_path(cfg, batch)
    if cfg.metadata_format == "yaml":
        content = yaml.safe_dump(
            json.loads(metadata.model_dump_json()), sort_keys=False, allow_unicode=True
        )
    else:
        content = metadata.model_dump_json(indent=2) + "\n"
    filesystem.write_text_file(path, content)
    logger.debug("Wrote source metadata to %s", path)
    return path


def generate_pipeline_summary(
    outcomes: Sequence[ItemOutcome],
    source_failures: Sequence[SourceFailure],
    pipeline_metrics: metrics.Metrics,
    effective_output_dir: str,
) -> str:
    """Generate the batch summary message.

    Lists persisted/skipped/failed counts, followed by one line per failed
    item or source naming the source and the error kind.
    """
    metrics_dict = pipeline_metrics.finish()
    summary_lines = [f"Done. transcripts_saved={pipeline_metrics.items_persisted}"]
    summary_lines.append(f"  - Persisted: {pipeline_metrics.items_persisted}")
    summary_lines.append(f"  - Skipped: {pipeline_metrics.items_skipped}")
    summary_lines.append(f"  - Failed: {pipeline_metrics.items_failed}")
    if pipeline_metrics.chunked_items > 0:
        summary_lines.append(
            f"  - Chunked items: {pipeline_metrics.chunked_items} "
            f"({pipeline_metrics.chunks_transcribed} parts transcribed)"
        )
    if pipeline_metrics.relevance_retries > 0:
        summary_lines.append(f"  - Relevance retries: {pipeline_metrics.relevance_retries}")
    if pipeline_metrics.possibly_irrelevant > 0:
        summary_lines.append(
            f"  - Possibly irrelevant transcripts kept: {pipeline_metrics.possibly_irrelevant}"
        )
    summary_lines.append(f"  - Run time: {metrics_dict['run_duration_seconds']:.1f}s")
    summary_lines.append(f"  - Output directory: {effective_output_dir}")

    failures: List[str] = [
        f"    {failure.source}: {failure.error_kind}: {failure.error_message}"
        for failure in source_failures
    ]
    failures.extend(
        f"    {outcome.source_id}: {outcome.error_kind}: {outcome.error_message}"
        for outcome in outcomes
        if outcome.state is ItemState.FAILED
    )
    if failures:
        summary_lines.append("  - Failures:")
        summary_lines.extend(failures)

    return "\n".join(summary_lines)
