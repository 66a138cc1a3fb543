"""Factory function for creating audio chunkers."""

import logging

from .base import AudioChunker
from .ffmpeg_processor import FFmpegChunker

logger = logging.getLogger(__name__)


def create_audio_chunker(
    cfg,  # config.Config
) -> AudioChunker:
    """Create the audio chunker configured for chunk re-encoding.

    Args:
        cfg: Configuration object with chunking settings

    Returns:
        AudioChunker instance
    """
    # Currently only FFmpeg is supported
    return FFmpegChunker(bitrate=cfg.chunk_bitrate)
