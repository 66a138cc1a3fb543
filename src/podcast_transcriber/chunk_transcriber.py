"""Sequential transcription of one audio asset, chunk by chunk."""

from __future__ import annotations

import logging
import os
from typing import List

from . import config_constants
from .audio_preprocessing.base import AudioChunker
from .models import AudioAsset, ChunkTranscript, TranscriptionRequest
from .progress import progress_context
from .segmenter import Segmenter
from .transcription.base import TranscriptionClient

logger = logging.getLogger(__name__)

PROGRESS_DESCRIPTION = "Transcribing chunks"


def chunk_filename(index: int) -> str:
    return f"chunk_{index}{config_constants.DEFAULT_MEDIA_EXTENSION}"


class ChunkTranscriber:
    """Drives the segmenter and a transcription client over one asset.

    Chunks are extracted and uploaded strictly one after another, and each
    chunk file is removed as soon as it has been transcribed, so at most one
    chunk sits in the scratch directory at a time. Any failure propagates to
    the caller: an asset is transcribed completely or not at all.
    """

    def __init__(
        self,
        segmenter: Segmenter,
        chunker: AudioChunker,
        client: TranscriptionClient,
    ):
        self.segmenter = segmenter
        self.chunker = chunker
        self.client = client

    def transcribe(
        self,
        asset: AudioAsset,
        request: TranscriptionRequest,
        work_dir: str,
    ) -> List[ChunkTranscript]:
        """Transcribe ``asset`` and return the chunk transcripts in index order.

        Args:
            asset: The downloaded (or local) audio
            request: Transcription parameters shared by every chunk
            work_dir: Scratch directory for extracted chunks

        Returns:
            One ChunkTranscript per chunk; a single entry on the direct path

        Raises:
            ProbeError: If a split is needed but the duration is unknown
            TranscriberError: If extracting or transcribing any chunk fails
        """
        self.client.initialize()

        if not self.segmenter.needs_chunking(asset):
            logger.debug("Transcribing %s directly (%d bytes)", asset.source, asset.size_bytes)
            result = self.client.transcribe(asset.path, request)
            return [ChunkTranscript(index=1, result=result)]

        plan = self.segmenter.plan(asset)
        total = self.segmenter.chunk_count(asset)
        logger.info("Splitting %s into %d chunks", asset.source, total)

        results: List[ChunkTranscript] = []
        with progress_context(total, PROGRESS_DESCRIPTION) as reporter:
            for chunk in plan:
                chunk_path = os.path.join(work_dir, chunk_filename(chunk.index))
                logger.debug(
                    "Chunk %d/%d: start=%.2fs duration=%s",
                    chunk.index,
                    total,
                    chunk.start,
                    "to end" if chunk.open_ended else f"{chunk.duration:.2f}s",
                )
                self.chunker.extract_chunk(asset.path, chunk, chunk_path)
                try:
                    result = self.client.transcribe(chunk_path, request)
                finally:
                    if os.path.exists(chunk_path):
                        os.remove(chunk_path)
                results.append(ChunkTranscript(index=chunk.index, result=result))
                reporter.update(1)

        return results
