"""Chunk planning for audio files above the provider's upload limit.

A file of ``size_bytes`` that exceeds the limit ``L`` is split into

    N = floor(size_bytes / (safety_factor * L)) + 1

chunks of equal duration. The safety factor leaves headroom because
re-encoding at a fixed bitrate does not preserve exact byte counts. Files
at or below the limit are sent whole (N = 1, no re-encoding).
"""

from __future__ import annotations

import logging
import math
from typing import Iterator, Optional

from . import config_constants
from .audio_preprocessing.base import AudioChunker
from .exceptions import ProbeError
from .models import AudioAsset, Chunk

logger = logging.getLogger(__name__)


def needs_chunking(size_bytes: int, limit_bytes: int) -> bool:
    return size_bytes > limit_bytes


def compute_chunk_count(
    size_bytes: int,
    limit_bytes: int = config_constants.DEFAULT_PROVIDER_LIMIT_BYTES,
    safety_factor: float = config_constants.DEFAULT_CHUNK_SAFETY_FACTOR,
) -> int:
    """Return the number of chunks needed for a file of ``size_bytes``.

    Raises:
        ValueError: If ``limit_bytes`` or ``safety_factor`` is not positive
    """
    if limit_bytes <= 0:
        raise ValueError("limit_bytes must be positive")
    if safety_factor <= 0:
        raise ValueError("safety_factor must be positive")
    if not needs_chunking(size_bytes, limit_bytes):
        return 1
    return math.floor(size_bytes / (safety_factor * limit_bytes)) + 1


def plan_chunks(
    size_bytes: int,
    duration_seconds: float,
    limit_bytes: int = config_constants.DEFAULT_PROVIDER_LIMIT_BYTES,
    safety_factor: float = config_constants.DEFAULT_CHUNK_SAFETY_FACTOR,
) -> Iterator[Chunk]:
    """Yield the chunks covering ``[0, duration_seconds)`` in index order.

    Every chunk but the last spans ``duration_seconds / N``; the last one
    covers the remainder and is open ended so extraction runs to the end of
    the stream.

    Raises:
        ProbeError: If ``duration_seconds`` is not positive
    """
    if duration_seconds is None or duration_seconds <= 0:
        raise ProbeError(f"Cannot plan chunks for duration {duration_seconds!r}")

    count = compute_chunk_count(size_bytes, limit_bytes, safety_factor)
    if count == 1:
        yield Chunk(index=1, start=0.0, duration=duration_seconds, open_ended=False)
        return

    chunk_duration = duration_seconds / count
    for i in range(1, count + 1):
        start = (i - 1) * chunk_duration
        if i == count:
            yield Chunk(index=i, start=start, duration=duration_seconds - start, open_ended=True)
        else:
            yield Chunk(index=i, start=start, duration=chunk_duration)


class Segmenter:
    """Decides direct vs chunked transcription and plans the chunks."""

    def __init__(
        self,
        chunker: AudioChunker,
        limit_bytes: int = config_constants.DEFAULT_PROVIDER_LIMIT_BYTES,
        safety_factor: float = config_constants.DEFAULT_CHUNK_SAFETY_FACTOR,
    ):
        self.chunker = chunker
        self.limit_bytes = limit_bytes
        self.safety_factor = safety_factor

    def needs_chunking(self, asset: AudioAsset) -> bool:
        return needs_chunking(asset.size_bytes, self.limit_bytes)

    def chunk_count(self, asset: AudioAsset) -> int:
        return compute_chunk_count(asset.size_bytes, self.limit_bytes, self.safety_factor)

    def plan(self, asset: AudioAsset) -> Iterator[Chunk]:
        """Return the chunk plan for ``asset``, probing its duration if unknown.

        Raises:
            ProbeError: If the duration cannot be determined
        """
        duration: Optional[float] = asset.duration_seconds
        if duration is None:
            duration = self.chunker.probe_duration(asset.path)
            asset.duration_seconds = duration
        logger.debug(
            "Planning %d chunk(s) for %s (%d bytes, %.1fs)",
            self.chunk_count(asset),
            asset.source,
            asset.size_bytes,
            duration,
        )
        return plan_chunks(asset.size_bytes, duration, self.limit_bytes, self.safety_factor)
