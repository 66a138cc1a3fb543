from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, field_serializer

from . import config_constants


@dataclass(frozen=True)
class SourceItem:
    """One transcribable item: a feed episode or a local audio file.

    Attributes:
        title: Item title (episode title, or file stem for local files).
        media_url: Remote URL or local path of the audio.
        publish_date: Publication date when the feed provides one.
        source_url: Feed URL (or local path) the item was discovered from.

    Example:
        >>> item = SourceItem(
        ...     title="Episode 1: Introduction",
        ...     media_url="https://example.com/ep1.mp3",
        ...     publish_date=datetime(2024, 1, 1),
        ... )
    """

    title: str
    media_url: str
    publish_date: Optional[datetime] = None
    source_url: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return not self.media_url.startswith(("http://", "https://"))


@dataclass
class Feed:
    """Parsed feed: channel title plus items in document order.

    Attributes:
        title: Channel title (from <channel><title>).
        url: URL the feed was fetched from.
        items: Items as they appear in the feed.
    """

    title: str
    url: str
    items: List[SourceItem] = field(default_factory=list)


@dataclass
class AudioAsset:
    """A concrete audio file resolved for one item.

    Lives inside the item's scratch directory (or points at a local source
    file) and is discarded once the item is finished.

    Attributes:
        source: Original URL or local path.
        path: Local file path of the audio.
        size_bytes: File size in bytes.
        duration_seconds: Duration from ffprobe, None until probed.
        encoding: File suffix without the dot (e.g., "mp3").
    """

    source: str
    path: str
    size_bytes: int
    duration_seconds: Optional[float] = None
    encoding: str = config_constants.DEFAULT_MEDIA_EXTENSION.lstrip(".")


@dataclass(frozen=True)
class Chunk:
    """A contiguous time range ``[start, start + duration)`` of an asset.

    ``index`` runs 1..N in emission order, which is also time order. When
    ``open_ended`` is set the chunk is cut until the end of the stream instead
    of for ``duration`` seconds, which absorbs rounding at the tail.
    """

    index: int
    start: float
    duration: float
    open_ended: bool = False

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass(frozen=True)
class TranscriptionRequest:
    """Parameters for one transcription call.

    Attributes:
        model: STT model identifier (e.g., "whisper-1").
        response_format: One of json, text, srt, verbose_json, vtt.
        language: Optional ISO language code.
        prompt: Optional context prompt.
        temperature: Sampling temperature, must be within [0, 1].

    Raises:
        ValueError: On a temperature outside [0, 1] or an unknown response format.
    """

    model: str = config_constants.DEFAULT_OPENAI_TRANSCRIPTION_MODEL
    response_format: str = config_constants.DEFAULT_RESPONSE_FORMAT
    language: Optional[str] = None
    prompt: Optional[str] = None
    temperature: float = config_constants.DEFAULT_TEMPERATURE

    def __post_init__(self) -> None:
        if not (
            config_constants.MIN_TEMPERATURE <= self.temperature <= config_constants.MAX_TEMPERATURE
        ):
            raise ValueError(
                f"temperature must be between {config_constants.MIN_TEMPERATURE} and "
                f"{config_constants.MAX_TEMPERATURE}, got {self.temperature}"
            )
        if self.response_format not in config_constants.VALID_RESPONSE_FORMATS:
            raise ValueError(
                f"response_format must be one of {config_constants.VALID_RESPONSE_FORMATS}, "
                f"got: {self.response_format}"
            )

    @property
    def is_structured(self) -> bool:
        """True when the provider answers this format with JSON."""
        return self.response_format in config_constants.JSON_RESPONSE_FORMATS


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    response_format: str


@dataclass(frozen=True)
class ChunkTranscript:
    """A transcription result tagged with the chunk it came from."""

    index: int
    result: TranscriptionResult

    @property
    def text(self) -> str:
        return self.result.text


@dataclass(frozen=True)
class TranscriptMetadata:
    """Provenance written in the transcript header.

    ``processed_at`` is supplied by the caller so that assembling the same
    inputs twice produces identical output.
    """

    title: str
    publication_date: str
    source_url: str
    processed_at: str


@dataclass(frozen=True)
class Transcript:
    """An assembled transcript.

    Attributes:
        parts: Chunk transcripts in index order, as received.
        metadata: Header metadata.
        body: Transcript text after repair rules ran.
        dropped_parts: Indexes of parts removed by repair rules.
    """

    parts: Tuple[ChunkTranscript, ...]
    metadata: TranscriptMetadata
    body: str
    dropped_parts: Tuple[int, ...] = ()

    @property
    def text(self) -> str:
        """Header block, blank line, body."""
        from .assembler import format_header

        return format_header(self.metadata) + "\n" + self.body


class SourceMetadata(BaseModel):
    """Sidecar metadata for one logical source (a show, or the local files set).

    Written once per source and run, replacing any previous file.
    """

    title: str
    url: str
    item_count: int
    persisted_count: int = 0
    language: Optional[str] = None
    prompt: Optional[str] = None
    transcription_model: str = config_constants.DEFAULT_OPENAI_TRANSCRIPTION_MODEL
    processed_at: datetime

    @field_serializer("processed_at")
    def serialize_processed_at(self, value: datetime) -> str:
        """Serialize datetime as ISO 8601 string."""
        return value.isoformat()
