"""Transcription clients for the OpenAI audio transcription endpoint."""

from .factory import create_transcription_client

__all__ = ["create_transcription_client"]
