"""Factory for creating transcription clients.

The response format alone decides the transport: JSON formats go through
the OpenAI SDK, everything else through raw multipart HTTP.
"""

from __future__ import annotations

from typing import Optional

from .. import config, config_constants
from .base import TranscriptionClient


def create_transcription_client(
    cfg: config.Config,
    response_format: Optional[str] = None,
) -> TranscriptionClient:
    """Create the transcription client for a response format.

    Args:
        cfg: Configuration object
        response_format: Format to request; defaults to ``cfg.response_format``

    Returns:
        StructuredTranscriptionClient for json/verbose_json,
        RawHTTPTranscriptionClient for text/srt/vtt

    Raises:
        ValueError: If the response format is not supported
        AuthError: If no API key is configured

    Example:
        >>> from podcast_transcriber import Config
        >>> cfg = Config(sources=["..."], response_format="srt")
        >>> client = create_transcription_client(cfg)
    """
    fmt = response_format or cfg.response_format
    if fmt not in config_constants.VALID_RESPONSE_FORMATS:
        raise ValueError(
            f"Unsupported response format: {fmt}. "
            f"Supported formats: {', '.join(config_constants.VALID_RESPONSE_FORMATS)}"
        )

    if fmt in config_constants.JSON_RESPONSE_FORMATS:
        from .openai_provider import StructuredTranscriptionClient

        return StructuredTranscriptionClient(cfg)

    from .raw_http import RawHTTPTranscriptionClient

    return RawHTTPTranscriptionClient(cfg)
