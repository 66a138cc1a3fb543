"""Config-file driven entry point for unattended transcription runs.

Meant for cron jobs and process managers: everything comes from one JSON or
YAML file, and the outcome is reported as a ``ServiceResult`` instead of
log output and exit codes.

Example:
    >>> from podcast_transcriber import service
    >>> result = service.run_from_config_file("transcribe.yaml")
    >>> if result.success:
    ...     print(result.summary)

Supervisor program entry:
    [program:podcast_transcriber]
    command=python -m podcast_transcriber.service --config /etc/podcast_transcriber.yaml
    autostart=true
    autorestart=false
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from . import __version__, config, workflow
from .exceptions import TranscriberError

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Outcome of one unattended run.

    ``success`` is False only when the run could not happen at all (bad
    configuration, unwritable output directory). Items that failed inside a
    completed run are listed in ``summary``.
    """

    items_persisted: int
    summary: str
    success: bool = True
    error: Optional[str] = None


def _failed(message: str) -> ServiceResult:
    return ServiceResult(items_persisted=0, summary="", success=False, error=message)


def run(cfg: config.Config) -> ServiceResult:
    """Configure logging from ``cfg`` and transcribe every configured source."""
    try:
        workflow.apply_log_level(level=cfg.log_level, log_file=cfg.log_file)
        persisted, summary = workflow.run_pipeline(cfg)
    except (TranscriberError, ValueError, OSError) as exc:
        logger.error(f"Transcription run aborted: {exc}", exc_info=True)
        return _failed(str(exc))
    return ServiceResult(items_persisted=persisted, summary=summary)


def run_from_config_file(config_path: str | Path) -> ServiceResult:
    """Load ``config_path`` (JSON or YAML) and run the pipeline with it.

    A missing, unreadable or invalid file yields ``success=False``.
    """
    try:
        cfg = config.Config(**config.load_config_file(str(config_path)))
    except (ValueError, ValidationError) as exc:
        message = f"Failed to load configuration file: {exc}"
        logger.error(message)
        return _failed(message)
    return run(cfg)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run from ``--config`` and return 0 when the run completed, 1 otherwise."""
    parser = argparse.ArgumentParser(
        prog="podcast-transcriber-service",
        description="Transcribe the sources listed in a configuration file.",
    )
    parser.add_argument("--config", required=True, help="Configuration file (JSON or YAML)")
    parser.add_argument(
        "--version", action="version", version=f"podcast_transcriber {__version__}"
    )
    args = parser.parse_args(argv)

    result = run_from_config_file(args.config)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print(result.summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
