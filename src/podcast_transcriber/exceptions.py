"""Custom exceptions for podcast_transcriber.

Every per-item failure raised by the pipeline is a ``TranscriberError``. The
orchestrator catches them at the item boundary and records ``error.kind``
against the offending source, so a batch keeps going after one bad item.

Exception Hierarchy:
    TranscriberError (base)
    ├── AuthError - Missing or rejected credentials (never retried)
    ├── ProbeError - Audio duration could not be determined
    ├── ProviderError - Non-2xx answer from the STT provider
    ├── TransportError - Network or local I/O failure
    │   └── DownloadError - Media could not be fetched
    └── AssemblyCorruption - Degenerate output found while assembling parts
"""

from typing import Optional


class TranscriberError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        provider: Component that raised the error (e.g., "OpenAI/Transcription")
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
    """

    def __init__(
        self,
        message: str,
        provider: str = "Unknown",
        suggestion: Optional[str] = None,
    ) -> None:
        self.provider = provider
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    @property
    def kind(self) -> str:
        """Taxonomy name reported in batch summaries.

        Subclasses report their taxonomy root, so a ``DownloadError`` is a
        ``TransportError``.
        """
        for cls in type(self).__mro__:
            if TranscriberError in cls.__bases__:
                return cls.__name__
        return type(self).__name__

    def _format_message(self) -> str:
        """Format the full error message with provider and suggestion."""
        parts = [f"[{self.provider}] {self.message}"]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " ".join(parts)


class AuthError(TranscriberError):
    """Raised when the API key is missing or rejected by the provider.

    Example:
        >>> raise AuthError(
        ...     message="Invalid API key",
        ...     provider="OpenAI/Transcription",
        ...     suggestion="Check your API key at https://platform.openai.com/api-keys"
        ... )
    """


class ProbeError(TranscriberError):
    """Raised when the duration of an audio file cannot be determined.

    Without a duration the file cannot be split, so the item fails.
    """

    def __init__(
        self,
        message: str,
        provider: str = "ffprobe",
        path: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.path = path
        if path and path not in message:
            message = f"{message} (file: {path})"
        super().__init__(message=message, provider=provider, suggestion=suggestion)


class ProviderError(TranscriberError):
    """Raised when the STT provider answers with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the provider (None if unknown)
        body: Response body as text, kept verbatim for diagnostics
    """

    def __init__(
        self,
        message: str,
        provider: str = "Unknown",
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} (status {status_code})"
        if body:
            message = f"{message}: {body}"
        super().__init__(message=message, provider=provider, suggestion=suggestion)


class TransportError(TranscriberError):
    """Raised when a network call or local file access fails.

    Common causes:
    - Connection refused or reset
    - Timeouts
    - Unreadable audio file
    """


class DownloadError(TransportError):
    """Raised when the media for an item cannot be fetched."""

    def __init__(
        self,
        message: str,
        provider: str = "Downloader",
        url: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.url = url
        if url and url not in message:
            message = f"{message} (url: {url})"
        super().__init__(message=message, provider=provider, suggestion=suggestion)


class AssemblyCorruption(TranscriberError):
    """Raised by an assembly rule when a part holds degenerate output.

    The assembler handles it by truncating the transcript at the offending
    part; it is logged, never surfaced as an item failure.

    Attributes:
        part_index: 1-based index of the corrupted part
        token: The token found repeating
        run_length: How many times the token repeated in a row
    """

    def __init__(self, part_index: int, token: str, run_length: int) -> None:
        self.part_index = part_index
        self.token = token
        self.run_length = run_length
        super().__init__(
            message=f"Part {part_index} repeats {token!r} {run_length} times in a row",
            provider="Assembler",
        )
