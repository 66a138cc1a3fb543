"""Simple in-memory metrics collector for pipeline runs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from .types import ItemOutcome, ItemState

logger = logging.getLogger(__name__)


@dataclass
class Metrics:
    """In-memory metrics collector for one pipeline run."""

    items_persisted: int = 0
    items_skipped: int = 0
    items_failed: int = 0
    sources_failed: int = 0
    chunks_transcribed: int = 0
    chunked_items: int = 0
    relevance_retries: int = 0
    possibly_irrelevant: int = 0
    run_duration_seconds: float = 0.0
    _start_time: float = field(default_factory=time.time, repr=False)

    def record_outcome(self, outcome: ItemOutcome) -> None:
        if outcome.state is ItemState.PERSISTED:
            self.items_persisted += 1
            self.chunks_transcribed += outcome.chunk_count
        elif outcome.state is ItemState.SKIPPED:
            self.items_skipped += 1
        elif outcome.state is ItemState.FAILED:
            self.items_failed += 1
        if ItemState.CHUNKING in outcome.history:
            self.chunked_items += 1
        if outcome.relevance_retried:
            self.relevance_retries += 1
        if outcome.possibly_irrelevant:
            self.possibly_irrelevant += 1

    def finish(self) -> Dict[str, Any]:
        """Stop the clock and return the metrics as a dictionary."""
        self.run_duration_seconds = time.time() - self._start_time
        return {
            "run_duration_seconds": round(self.run_duration_seconds, 2),
            "items_persisted": self.items_persisted,
            "items_skipped": self.items_skipped,
            "items_failed": self.items_failed,
            "sources_failed": self.sources_failed,
            "chunks_transcribed": self.chunks_transcribed,
            "chunked_items": self.chunked_items,
            "relevance_retries": self.relevance_retries,
            "possibly_irrelevant": self.possibly_irrelevant,
        }
