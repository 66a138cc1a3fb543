"""Base protocol for audio tooling used by the chunked transcription path."""

from typing import Protocol

from ..models import Chunk


class AudioChunker(Protocol):
    """Protocol for probing audio files and cutting them into chunks."""

    def probe_duration(self, audio_path: str) -> float:
        """Return the duration of an audio file in seconds.

        Raises:
            ProbeError: If the duration cannot be determined
        """
        ...

    def extract_chunk(self, input_path: str, chunk: Chunk, output_path: str) -> str:
        """Re-encode the time range of ``chunk`` into ``output_path``.

        Returns:
            The path of the written chunk file

        Raises:
            TransportError: If the chunk cannot be written
        """
        ...
