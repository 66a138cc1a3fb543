"""Raw multipart transcription client for non-JSON response formats.

``text``, ``srt`` and ``vtt`` responses are not JSON, so they are fetched
with a direct multipart POST and the response body is returned verbatim.
"""

from __future__ import annotations

import logging
import os
from typing import Dict

import requests

from .. import config
from ..exceptions import AuthError, ProviderError, TransportError
from ..models import TranscriptionRequest, TranscriptionResult
from ..utils.timeout_config import get_request_timeout

logger = logging.getLogger(__name__)

PROVIDER_NAME = "OpenAI/Transcription"
TRANSCRIPTIONS_PATH = "/audio/transcriptions"


def build_form_fields(request: TranscriptionRequest) -> Dict[str, str]:
    """Return the non-file multipart fields for ``request``."""
    fields = {
        "model": request.model,
        "response_format": request.response_format,
        "temperature": f"{request.temperature:f}",
    }
    if request.language:
        fields["language"] = request.language
    if request.prompt:
        fields["prompt"] = request.prompt
    return fields


class RawHTTPTranscriptionClient:
    """Multipart HTTP transcription client with bearer-token auth."""

    def __init__(self, cfg: config.Config):
        """Initialize the raw HTTP client.

        Args:
            cfg: Configuration object with openai_api_key and API settings

        Raises:
            AuthError: If no API key is configured
        """
        if not cfg.openai_api_key:
            raise AuthError(
                "OpenAI API key required for transcription",
                provider=PROVIDER_NAME,
                suggestion="Set OPENAI_API_KEY environment variable or openai_api_key in config",
            )
        self.cfg = cfg
        self.url = cfg.openai_api_base.rstrip("/") + TRANSCRIPTIONS_PATH
        self.timeout = get_request_timeout(cfg)
        self.session: requests.Session = requests.Session()
        self._initialized = False

    def initialize(self) -> None:
        if self._initialized:
            return
        logger.debug("Initializing raw transcription client (%s)", self.url)
        self._initialized = True

    def transcribe(self, audio_path: str, request: TranscriptionRequest) -> TranscriptionResult:
        """POST ``audio_path`` and return the response body as the transcript.

        Raises:
            RuntimeError: If the client is not initialized
            AuthError: On HTTP 401
            ProviderError: On any other non-2xx status
            TransportError: On connection failure, timeout, or unreadable file
        """
        if not self._initialized:
            raise RuntimeError("RawHTTPTranscriptionClient not initialized. Call initialize() first.")

        headers = {"Authorization": f"Bearer {self.cfg.openai_api_key}"}
        fields = build_form_fields(request)
        filename = os.path.basename(audio_path)

        logger.debug(
            "Transcribing %s via multipart POST (format: %s, language: %s)",
            filename,
            request.response_format,
            request.language or "auto",
        )

        try:
            with open(audio_path, "rb") as audio_file:
                response = self.session.post(
                    self.url,
                    headers=headers,
                    data=fields,
                    files={"file": (filename, audio_file)},
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            raise TransportError(
                f"Could not reach transcription API: {exc}", provider=PROVIDER_NAME
            ) from exc
        except OSError as exc:
            raise TransportError(
                f"Could not read audio file {audio_path}: {exc}", provider=PROVIDER_NAME
            ) from exc

        body = response.content.decode("utf-8", errors="replace")
        if response.status_code == 401:
            raise AuthError(
                f"API key rejected: {body}",
                provider=PROVIDER_NAME,
                suggestion="Check your API key at https://platform.openai.com/api-keys",
            )
        if not 200 <= response.status_code < 300:
            raise ProviderError(
                "Transcription request failed",
                provider=PROVIDER_NAME,
                status_code=response.status_code,
                body=body,
            )

        logger.debug("Raw transcription completed: %d characters", len(body))
        return TranscriptionResult(text=body, response_format=request.response_format)

    def cleanup(self) -> None:
        self.session.close()
        self._initialized = False
