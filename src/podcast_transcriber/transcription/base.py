"""TranscriptionClient protocol definition.

Both transport strategies (structured SDK client and raw multipart HTTP)
implement this protocol; callers never branch on the response format.
"""

from __future__ import annotations

from typing import Protocol

from ..models import TranscriptionRequest, TranscriptionResult


class TranscriptionClient(Protocol):
    """Protocol for clients that send one audio file to the STT provider."""

    def initialize(self) -> None:
        """Prepare the client for use.

        It may be called multiple times safely (idempotent).
        """
        ...

    def transcribe(self, audio_path: str, request: TranscriptionRequest) -> TranscriptionResult:
        """Transcribe one audio file.

        Args:
            audio_path: Path to the audio file (whole asset or one chunk)
            request: Model, format, language, prompt and temperature

        Returns:
            TranscriptionResult with the text in the requested format

        Raises:
            RuntimeError: If the client is not initialized
            AuthError: If the credential is missing or rejected
            ProviderError: If the provider answers with a non-2xx status
            TransportError: On network or file I/O failure
        """
        ...

    def cleanup(self) -> None:
        """Release network resources held by the client."""
        ...
