# This project is intended for personal, non-commercial use only.
# See README for details.

"""Podcast Transcriber - Transcribe podcast episodes and audio files with a hosted STT API.

This package provides a simple API for turning audio into transcripts:
- From RSS feeds (newest items first) or local audio files
- Splitting assets larger than the provider upload limit into time chunks
- Repairing degenerate output and retrying once when a transcript looks off-topic

Programmatic API Example:
    >>> import podcast_transcriber
    >>>
    >>> config = podcast_transcriber.Config(
    ...     sources=["https://example.com/feed.xml"],
    ...     output_dir="./transcripts",
    ...     limit=3,
    ... )
    >>> count, summary = podcast_transcriber.run_pipeline(config)
    >>> print(f"Saved {count} transcripts")

Service API Example (for daemon/service use):
    >>> from podcast_transcriber import service
    >>> result = service.run_from_config_file("config.yaml")
    >>> if result.success:
    ...     print(f"Saved {result.items_persisted} transcripts")
    ... else:
    ...     print(f"Error: {result.error}")

CLI Usage:
    $ podcast-transcriber https://example.com/feed.xml --limit 3
    $ podcast-transcriber --config config.yaml

Service Mode (for supervisor/systemd):
    $ python -m podcast_transcriber.service --config config.yaml
"""

from __future__ import annotations

from .config import Config, load_config_file
from .workflow import run_pipeline

__all__ = [
    "Config",
    "load_config_file",
    "run_pipeline",
    "__version__",
]
# Note: 'cli' and 'service' are available via __getattr__ for lazy loading
__version__ = "1.0.0"

# Cache for lazy-loaded modules to prevent circular imports
_import_cache: dict[str, object] = {}


def __getattr__(name: str):
    if name in _import_cache:
        return _import_cache[name]

    if name in ("cli", "service"):
        import importlib

        module = importlib.import_module(f"{__name__}.{name}")
        _import_cache[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
