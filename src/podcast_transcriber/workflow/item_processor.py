"""Per-item processing: download, transcribe, assemble, verify, persist."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Callable, List, Optional

from .. import config, filesystem
from ..assembler import assemble
from ..audio_preprocessing import create_audio_chunker
from ..audio_preprocessing.base import AudioChunker
from ..chunk_transcriber import ChunkTranscriber
from ..exceptions import TranscriberError, TransportError
from ..media import MediaDownloader
from ..models import ChunkTranscript, SourceItem, Transcript, TranscriptionRequest, TranscriptMetadata
from ..relevance import RelevanceVerifier
from ..segmenter import Segmenter
from ..transcription import create_transcription_client
from ..transcription.base import TranscriptionClient
from .types import ItemOutcome, ItemState

logger = logging.getLogger(__name__)

UNKNOWN_DATE = "Unknown"

ClientFactory = Callable[[config.Config], TranscriptionClient]


def format_publish_date(value: Optional[datetime]) -> str:
    if value is None:
        return UNKNOWN_DATE
    return value.strftime("%Y-%m-%d")


def _now() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


class ItemProcessor:
    """Runs the per-item state machine.

    Collaborators are created from the configuration unless injected; the
    transcription client is created per attempt through ``client_factory``
    so items that are skipped never build one.
    """

    def __init__(
        self,
        cfg: config.Config,
        *,
        media_downloader: Optional[MediaDownloader] = None,
        chunker: Optional[AudioChunker] = None,
        client_factory: Optional[ClientFactory] = None,
        verifier: Optional[RelevanceVerifier] = None,
        clock: Callable[[], str] = _now,
    ):
        self.cfg = cfg
        self.media_downloader = media_downloader or MediaDownloader(cfg)
        self.chunker = chunker or create_audio_chunker(cfg)
        self.segmenter = Segmenter(self.chunker, cfg.provider_limit_bytes, cfg.chunk_safety_factor)
        self.client_factory: ClientFactory = client_factory or create_transcription_client
        self.verifier = verifier or RelevanceVerifier(cfg.relevance_lines)
        self.clock = clock

    def build_request(self, temperature: float) -> TranscriptionRequest:
        return TranscriptionRequest(
            model=self.cfg.transcription_model,
            response_format=self.cfg.response_format,
            language=self.cfg.language,
            prompt=self.cfg.prompt,
            temperature=temperature,
        )

    def process(self, item: SourceItem, output_path: str, position: int = 1) -> ItemOutcome:
        """Process one item and return its outcome.

        Per-item errors are recorded on the outcome, never raised.
        """
        outcome = ItemOutcome(item=item, output_path=output_path, position=position)

        if self.cfg.skip_existing and os.path.exists(output_path):
            self._enter(outcome, ItemState.SKIPPED)
            logger.info("[%s] Skipping %r: transcript exists at %s", position, item.title, output_path)
            return outcome

        processed_at = self.clock()
        try:
            transcript = self._attempt(item, outcome, self.cfg.temperature, processed_at)
            self._enter(outcome, ItemState.VERIFYING)
            if not self.verifier.verify(item.title, transcript.body):
                transcript = self._retry_irrelevant(item, outcome, transcript, processed_at)
            filesystem.write_text_file(output_path, transcript.text)
        except TranscriberError as exc:
            return self._fail(outcome, exc.kind, str(exc))
        except OSError as exc:
            return self._fail(outcome, TransportError.__name__, str(exc))

        outcome.chunk_count = len(transcript.parts)
        self._enter(outcome, ItemState.PERSISTED)
        logger.info("[%s] Saved transcript for %r to %s", position, item.title, output_path)
        return outcome

    def _attempt(
        self,
        item: SourceItem,
        outcome: ItemOutcome,
        temperature: float,
        processed_at: str,
    ) -> Transcript:
        """Download, transcribe and assemble ``item`` once."""
        request = self.build_request(temperature)
        parts: List[ChunkTranscript]
        with filesystem.scratch_directory() as scratch:
            self._enter(outcome, ItemState.DOWNLOADING)
            asset = self.media_downloader.fetch(item, scratch)

            if self.segmenter.needs_chunking(asset):
                self._enter(outcome, ItemState.CHUNKING)
            else:
                self._enter(outcome, ItemState.DIRECT)

            client = self.client_factory(self.cfg)
            try:
                self._enter(outcome, ItemState.TRANSCRIBING)
                parts = ChunkTranscriber(self.segmenter, self.chunker, client).transcribe(
                    asset, request, scratch
                )
            finally:
                client.cleanup()

        self._enter(outcome, ItemState.ASSEMBLING)
        metadata = TranscriptMetadata(
            title=item.title,
            publication_date=format_publish_date(item.publish_date),
            source_url=item.media_url,
            processed_at=processed_at,
        )
        transcript = assemble(parts, metadata)
        if transcript.dropped_parts:
            logger.warning(
                "[%s] Dropped corrupted part(s) %s of %r",
                outcome.position,
                ", ".join(str(i) for i in transcript.dropped_parts),
                item.title,
            )
        return transcript

    def _retry_irrelevant(
        self,
        item: SourceItem,
        outcome: ItemOutcome,
        original: Transcript,
        processed_at: str,
    ) -> Transcript:
        """Retranscribe once after a relevance miss; fall back to ``original``."""
        outcome.relevance_retried = True
        logger.warning(
            "[%s] Transcript of %r may be irrelevant (no title keyword found); retranscribing",
            outcome.position,
            item.title,
        )
        try:
            retried = self._attempt(item, outcome, self.cfg.retry_temperature, processed_at)
        except TranscriberError as exc:
            logger.warning(
                "[%s] Retranscription failed (%s); keeping original transcript",
                outcome.position,
                exc.kind,
            )
            outcome.possibly_irrelevant = True
            self._enter(outcome, ItemState.VERIFYING)
            return original

        self._enter(outcome, ItemState.VERIFYING)
        if self.verifier.verify(item.title, retried.body):
            return retried

        logger.warning(
            "[%s] Retranscription of %r still looks irrelevant; keeping original transcript",
            outcome.position,
            item.title,
        )
        outcome.possibly_irrelevant = True
        return original

    def _enter(self, outcome: ItemOutcome, state: ItemState) -> None:
        outcome.transition(state)
        logger.debug("[%s] %s -> %s", outcome.position, outcome.item.title, state.value)

    def _fail(self, outcome: ItemOutcome, kind: str, message: str) -> ItemOutcome:
        outcome.error_kind = kind
        outcome.error_message = message
        self._enter(outcome, ItemState.FAILED)
        logger.error(
            "[%s] Failed to transcribe %r (%s): %s", outcome.position, outcome.item.title, kind, message
        )
        return outcome
