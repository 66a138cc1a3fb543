"""Workflow orchestration and pipeline execution.

This package provides:
- Pipeline orchestration (orchestration.py)
- The per-item state machine (item_processor.py)
- Source resolution (sources.py)
- Metrics collection and run summaries
"""

from __future__ import annotations

from . import metrics
from .item_processor import ItemProcessor
from .orchestration import apply_log_level, run_pipeline
from .types import ItemOutcome, ItemState, SourceBatch, SourceFailure

__all__ = [
    "ItemOutcome",
    "ItemProcessor",
    "ItemState",
    "SourceBatch",
    "SourceFailure",
    "apply_log_level",
    "metrics",
    "run_pipeline",
]
