"""Structured transcription client backed by the OpenAI SDK.

Used for response formats that are themselves JSON (``json`` and
``verbose_json``); the typed response object carries the transcript in its
``text`` field.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

import openai
from openai import OpenAI

from .. import config
from ..exceptions import AuthError, ProviderError, TransportError
from ..models import TranscriptionRequest, TranscriptionResult
from ..utils.timeout_config import get_transcription_timeout

logger = logging.getLogger(__name__)

PROVIDER_NAME = "OpenAI/Transcription"


class StructuredTranscriptionClient:
    """OpenAI SDK-based transcription client for JSON response formats.

    SDK-level retries are disabled: a failed call surfaces immediately and
    retry policy stays with the orchestrator.
    """

    def __init__(self, cfg: config.Config):
        """Initialize the structured client.

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
        client_kwargs: Dict[str, Any] = {
            "api_key": cfg.openai_api_key,
            "max_retries": 0,
            "timeout": get_transcription_timeout(cfg),
        }
        if cfg.openai_api_base:
            client_kwargs["base_url"] = cfg.openai_api_base
        self.client = OpenAI(**client_kwargs)
        self._initialized = False

    def initialize(self) -> None:
        """Initialize client (no local state needed for the API)."""
        if self._initialized:
            return
        logger.debug("Initializing structured transcription client (%s)", self.cfg.openai_api_base)
        self._initialized = True

    def transcribe(self, audio_path: str, request: TranscriptionRequest) -> TranscriptionResult:
        """Transcribe ``audio_path`` and return the ``text`` field of the response.

        Raises:
            RuntimeError: If the client is not initialized
            AuthError: If the API key is rejected
            ProviderError: If the API answers with any other error status
            TransportError: On connection failure, timeout, or unreadable file
        """
        if not self._initialized:
            raise RuntimeError(
                "StructuredTranscriptionClient not initialized. Call initialize() first."
            )

        kwargs: Dict[str, Any] = {
            "model": request.model,
            "response_format": request.response_format,
            "temperature": request.temperature,
        }
        if request.language:
            kwargs["language"] = request.language
        if request.prompt:
            kwargs["prompt"] = request.prompt

        logger.debug(
            "Transcribing %s via OpenAI SDK (format: %s, language: %s)",
            os.path.basename(audio_path),
            request.response_format,
            request.language or "auto",
        )

        try:
            with open(audio_path, "rb") as audio_file:
                response = self.client.audio.transcriptions.create(file=audio_file, **kwargs)
        except openai.AuthenticationError as exc:
            raise AuthError(
                f"API key rejected: {exc.message}",
                provider=PROVIDER_NAME,
                suggestion="Check your API key at https://platform.openai.com/api-keys",
            ) from exc
        except openai.APIStatusError as exc:
            raise ProviderError(
                "Transcription request failed",
                provider=PROVIDER_NAME,
                status_code=exc.status_code,
                body=exc.response.text,
            ) from exc
        except openai.APIConnectionError as exc:
            raise TransportError(
                f"Could not reach transcription API: {exc}", provider=PROVIDER_NAME
            ) from exc
        except OSError as exc:
            raise TransportError(
                f"Could not read audio file {audio_path}: {exc}", provider=PROVIDER_NAME
            ) from exc

        text = response if isinstance(response, str) else response.text
        logger.debug("OpenAI transcription completed: %d characters", len(text))
        return TranscriptionResult(text=text, response_format=request.response_format)

    def cleanup(self) -> None:
        self.client.close()
        self._initialized = False
