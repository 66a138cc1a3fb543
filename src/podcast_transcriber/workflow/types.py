"""Types shared across the workflow package."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .. import models


class ItemState(str, Enum):
    """Processing state of one source item.

    pending -> downloading -> (direct | chunking) -> transcribing -> assembling
    -> verifying -> persisted. ``skipped`` and ``failed`` are the other
    terminal states.
    """

    PENDING = "pending"
    DOWNLOADING = "downloading"
    DIRECT = "direct"
    CHUNKING = "chunking"
    TRANSCRIBING = "transcribing"
    ASSEMBLING = "assembling"
    VERIFYING = "verifying"
    PERSISTED = "persisted"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemState.PERSISTED, ItemState.SKIPPED, ItemState.FAILED)


@dataclass
class ItemOutcome:
    """Result of processing one item.

    Attributes:
        item: The processed item.
        output_path: Transcript destination.
        position: 1-based position of the item in the batch (used in log prefixes).
        state: Current (at the end: terminal) state.
        history: Every state the item went through, in order.
        error_kind: Error taxonomy name when ``state`` is FAILED.
        error_message: Error message when ``state`` is FAILED.
        chunk_count: Number of parts the final transcript was assembled from.
        relevance_retried: Whether a retranscription was triggered.
        possibly_irrelevant: Whether the persisted transcript still failed the check.
    """

    item: models.SourceItem
    output_path: str
    position: int = 1
    state: ItemState = ItemState.PENDING
    history: List[ItemState] = field(default_factory=lambda: [ItemState.PENDING])
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    chunk_count: int = 0
    relevance_retried: bool = False
    possibly_irrelevant: bool = False

    def transition(self, state: ItemState) -> None:
        self.state = state
        self.history.append(state)

    @property
    def source_id(self) -> str:
        return self.item.media_url


@dataclass
class SourceBatch:
    """Items of one logical source, ready for processing.

    Attributes:
        title: Source title (feed title, or the local files group name).
        url: Feed URL, or the local path(s) the batch came from.
        output_dir: Directory receiving transcripts and sidecar metadata.
        items: Items in processing order.
    """

    title: str
    url: str
    output_dir: str
    items: List[models.SourceItem] = field(default_factory=list)


@dataclass
class SourceFailure:
    """A source that could not be resolved into items (e.g. unreachable feed)."""

    source: str
    error_kind: str
    error_message: str
