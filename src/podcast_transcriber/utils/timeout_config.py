"""HTTP timeout configuration utilities.

Transcription uploads use separate connect and read timeouts: connecting
should fail fast, while the provider may take minutes to answer for a
full-size chunk.
"""

from __future__ import annotations

from typing import Tuple, TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from podcast_transcriber import config

DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_WRITE_TIMEOUT = 120.0
DEFAULT_POOL_TIMEOUT = 10.0


def _connect_timeout(read: float) -> float:
    # Connect timeout must stay strictly below the read timeout
    connect = DEFAULT_CONNECT_TIMEOUT
    if connect >= read:
        connect = min(max(0.1, read * 0.5), read - 0.1)
    return connect


def get_transcription_timeout(cfg: config.Config) -> httpx.Timeout:
    """Return the httpx timeout used by the OpenAI SDK client.

    Args:
        cfg: Configuration object (uses ``transcription_timeout`` as read timeout)

    Returns:
        httpx.Timeout with short connect/pool and long read/write timeouts
    """
    read = float(cfg.transcription_timeout)
    return httpx.Timeout(
        connect=_connect_timeout(read),
        read=read,
        write=DEFAULT_WRITE_TIMEOUT,
        pool=DEFAULT_POOL_TIMEOUT,
    )


def get_request_timeout(cfg: config.Config) -> Tuple[float, float]:
    """Return a ``(connect, read)`` tuple for requests-based transcription uploads."""
    read = float(cfg.transcription_timeout)
    return _connect_timeout(read), read
