"""Audio tooling for splitting files above the provider's upload limit."""

from .factory import create_audio_chunker

__all__ = ["create_audio_chunker"]
