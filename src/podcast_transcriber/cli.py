"""Command-line interface helpers for podcast_transcriber."""

from __future__ import annotations

import argparse
import logging
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    cast,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TYPE_CHECKING,
)

from pydantic import ValidationError

from . import __version__, chunk_transcriber, config, filesystem, progress, workflow

if TYPE_CHECKING:  # pragma: no cover - typing only
    import tqdm

_LOGGER = logging.getLogger(__name__)

# Progress bar constants
TQDM_NCOLS = 80
TQDM_MIN_INTERVAL = 0.5
TQDM_MIN_ITERS = 1
BYTES_PER_KB = 1024


class _TqdmProgress:
    """Simple adapter that exposes tqdm's update interface."""

    def __init__(self, bar: "tqdm.tqdm") -> None:
        self._bar = bar

    def update(self, advance: int) -> None:
        self._bar.update(advance)


@contextmanager
def _tqdm_progress(total: Optional[int], description: str) -> Iterator[_TqdmProgress]:
    """Create a tqdm progress context matching the shared progress API."""
    from tqdm import tqdm

    kwargs: Dict[str, Any] = {"desc": description}
    if total is None:
        kwargs.update(
            total=None,
            unit="",
            leave=False,
            miniters=TQDM_MIN_ITERS,
            mininterval=TQDM_MIN_INTERVAL,
            bar_format="{desc}: {elapsed}",
            ncols=TQDM_NCOLS,
            dynamic_ncols=False,
        )
    elif description == chunk_transcriber.PROGRESS_DESCRIPTION:
        kwargs.update(total=total, unit="chunk", leave=False)
    else:
        kwargs.update(
            total=total,
            unit="B",
            unit_scale=True,
            unit_divisor=BYTES_PER_KB,
            leave=True,
        )

    with tqdm(**kwargs) as bar:
        yield _TqdmProgress(bar)


def _validate_temperature(name: str, value: Optional[float], errors: List[str]) -> None:
    if value is None:
        return
    if not config.MIN_TEMPERATURE <= value <= config.MAX_TEMPERATURE:
        errors.append(
            f"{name} must be between {config.MIN_TEMPERATURE} and "
            f"{config.MAX_TEMPERATURE}, got: {value}"
        )


def _validate_chunking_config(args: argparse.Namespace, errors: List[str]) -> None:
    """Validate chunking-related configuration.

    Args:
        args: Parsed arguments
        errors: List to append validation errors to
    """
    if args.provider_limit_bytes <= 0:
        errors.append(f"--chunk-limit-bytes must be positive, got: {args.provider_limit_bytes}")
    if not 0.0 < args.chunk_safety_factor <= 1.0:
        errors.append(
            f"--chunk-safety-factor must be in (0.0, 1.0], got: {args.chunk_safety_factor}"
        )


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments and raise ValueError when invalid."""
    errors: List[str] = []

    if not args.sources and not args.sources_file:
        errors.append("At least one source (feed URL or audio file) or --sources-file is required")

    if args.limit is not None and args.limit <= 0:
        errors.append(f"--limit must be positive, got: {args.limit}")

    if args.timeout <= 0:
        errors.append(f"--timeout must be positive, got: {args.timeout}")

    if args.transcription_timeout <= 0:
        errors.append(
            f"--transcription-timeout must be positive, got: {args.transcription_timeout}"
        )

    _validate_temperature("--temperature", args.temperature, errors)
    _validate_temperature("--retry-temperature", args.retry_temperature, errors)
    _validate_chunking_config(args, errors)

    if args.output_dir:
        try:
            filesystem.validate_and_normalize_output_dir(args.output_dir)
        except ValueError as exc:
            errors.append(str(exc))

    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to parser.

    Args:
        parser: Argument parser to add arguments to
    """
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON or YAML)")
    parser.add_argument(
        "sources", nargs="*", default=[], help="RSS feed URLs and/or local audio files"
    )
    parser.add_argument(
        "--sources-file",
        "--file",
        dest="sources_file",
        default=None,
        help="File listing one feed URL or audio path per line (# starts a comment)",
    )
    parser.add_argument(
        "--output-dir",
        default=config.DEFAULT_OUTPUT_DIR,
        help="Root directory for transcripts (default: transcripts)",
    )
    parser.add_argument(
        "--limit", type=int, default=None, help="Number of newest items to transcribe per feed"
    )
    parser.add_argument("--user-agent", default=config.DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--timeout",
        type=int,
        default=config.DEFAULT_TIMEOUT_SECONDS,
        help="Request timeout in seconds for feed and media downloads",
    )
    parser.add_argument(
        "--no-skip-existing",
        dest="skip_existing",
        action="store_false",
        default=True,
        help="Retranscribe items whose transcript file already exists",
    )
    parser.add_argument(
        "--metadata-format",
        choices=["json", "yaml"],
        default="json",
        help="Format of the per-source sidecar metadata file",
    )
    parser.add_argument("--version", action="store_true", help="Show program version and exit")
    parser.add_argument(
        "--log-level",
        default=config.DEFAULT_LOG_LEVEL,
        help="Logging level (e.g., DEBUG, INFO, WARNING)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Path to log file (logs will be written to both console and file)",
    )


def _add_transcription_arguments(parser: argparse.ArgumentParser) -> None:
    """Add transcription-related arguments.

    Args:
        parser: Argument parser to add arguments to
    """
    group = parser.add_argument_group("Transcription")
    group.add_argument(
        "--api-key",
        dest="openai_api_key",
        default=None,
        help="OpenAI API key (default: OPENAI_API_KEY, then the credentials file)",
    )
    group.add_argument(
        "--credentials-file",
        default=config.DEFAULT_CREDENTIALS_FILE,
        help="YAML or JSON file with an openai_api_key entry",
    )
    group.add_argument(
        "--api-base",
        dest="openai_api_base",
        default=None,
        help="Base URL of the transcription API (default: OPENAI_API_BASE or OpenAI)",
    )
    group.add_argument(
        "--model",
        dest="transcription_model",
        default=config.DEFAULT_OPENAI_TRANSCRIPTION_MODEL,
        help="Transcription model (default: whisper-1)",
    )
    group.add_argument(
        "--response-format",
        choices=list(config.VALID_RESPONSE_FORMATS),
        default=config.DEFAULT_RESPONSE_FORMAT,
        help="Provider response format; json formats use the SDK, the rest raw HTTP",
    )
    group.add_argument("--language", default=config.DEFAULT_LANGUAGE, help="Language code")
    group.add_argument("--prompt", default=None, help="Context prompt sent with each request")
    group.add_argument(
        "--temperature",
        type=float,
        default=config.DEFAULT_TEMPERATURE,
        help="Sampling temperature (0.0-1.0)",
    )
    group.add_argument(
        "--retry-temperature",
        type=float,
        default=config.DEFAULT_RETRY_TEMPERATURE,
        help="Sampling temperature used when retranscribing an off-topic result",
    )
    group.add_argument(
        "--relevance-lines",
        type=int,
        default=config.DEFAULT_RELEVANCE_LINES,
        help="Leading transcript lines searched for title keywords",
    )
    group.add_argument(
        "--transcription-timeout",
        type=int,
        default=config.DEFAULT_TRANSCRIPTION_TIMEOUT_SECONDS,
        help="Timeout in seconds for one transcription upload",
    )


def _add_chunking_arguments(parser: argparse.ArgumentParser) -> None:
    """Add chunking-related arguments.

    Args:
        parser: Argument parser to add arguments to
    """
    group = parser.add_argument_group("Chunking")
    group.add_argument(
        "--chunk-limit-bytes",
        dest="provider_limit_bytes",
        type=int,
        default=config.DEFAULT_PROVIDER_LIMIT_BYTES,
        help="Largest upload the provider accepts, in bytes",
    )
    group.add_argument(
        "--chunk-safety-factor",
        type=float,
        default=config.DEFAULT_CHUNK_SAFETY_FACTOR,
        help="Fraction of the limit each chunk is sized for",
    )
    group.add_argument(
        "--chunk-bitrate",
        default=config.DEFAULT_CHUNK_BITRATE,
        help="Bitrate used when re-encoding chunks (e.g., 128k)",
    )


def _load_and_merge_config(
    parser: argparse.ArgumentParser, config_path: str, argv: Optional[Sequence[str]]
) -> argparse.Namespace:
    """Load configuration file and merge with CLI arguments.

    Args:
        parser: Argument parser
        config_path: Path to configuration file
        argv: Command-line arguments

    Returns:
        Parsed arguments with config merged

    Raises:
        ValueError: If config is invalid
    """
    config_data = config.load_config_file(config_path)
    valid_dests = {action.dest for action in parser._actions if action.dest}
    unknown_keys = [key for key in config_data.keys() if key not in valid_dests]
    if unknown_keys:
        raise ValueError("Unknown config option(s): " + ", ".join(sorted(unknown_keys)))

    try:
        config_model = config.Config.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    # Only keys present in the file become defaults; the key is resolved again later
    defaults_updates: Dict[str, Any] = config_model.model_dump(
        include=set(config_data.keys()),
        exclude_none=True,
        by_alias=True,
    )
    parser.set_defaults(**defaults_updates)
    return parser.parse_args(argv)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, optionally merging configuration file defaults."""
    parser = argparse.ArgumentParser(
        description="Transcribe podcast episodes and audio files with a hosted STT API."
    )

    _add_common_arguments(parser)
    _add_transcription_arguments(parser)
    _add_chunking_arguments(parser)

    initial_args, _ = parser.parse_known_args(argv)

    if initial_args.version:
        print(f"podcast_transcriber {__version__}")
        raise SystemExit(0)

    if initial_args.config:
        args = _load_and_merge_config(parser, initial_args.config, argv)
    else:
        args = parser.parse_args(argv)

    validate_args(args)
    return args


def _build_config(args: argparse.Namespace) -> config.Config:
    """Materialize a Config object from already-validated CLI arguments."""
    payload: Dict[str, Any] = {
        "sources": args.sources,
        "sources_file": args.sources_file,
        "output_dir": args.output_dir,
        "limit": args.limit,
        "language": args.language,
        "prompt": args.prompt,
        "credentials_file": args.credentials_file,
        "openai_api_key": args.openai_api_key,
        "openai_api_base": args.openai_api_base,
        "transcription_model": args.transcription_model,
        "response_format": args.response_format,
        "temperature": args.temperature,
        "retry_temperature": args.retry_temperature,
        "provider_limit_bytes": args.provider_limit_bytes,
        "chunk_safety_factor": args.chunk_safety_factor,
        "chunk_bitrate": args.chunk_bitrate,
        "relevance_lines": args.relevance_lines,
        "skip_existing": args.skip_existing,
        "metadata_format": args.metadata_format,
        "timeout": args.timeout,
        "transcription_timeout": args.transcription_timeout,
        "user_agent": args.user_agent,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return cast(config.Config, config.Config.model_validate(payload))


def _log_configuration(cfg: config.Config, logger: logging.Logger) -> None:
    """Log the effective configuration, never the API key itself."""
    logger.info("Configuration:")
    logger.info(f"  Sources: {len(cfg.sources)} given")
    logger.info(f"  Sources File: {cfg.sources_file or 'none'}")
    logger.info(f"  Output Directory: {cfg.output_dir}")
    logger.info(f"  Limit: {cfg.limit or 'all'}")
    logger.info(f"  Model: {cfg.transcription_model} ({cfg.response_format})")
    logger.info(f"  Language: {cfg.language or 'auto'}")
    logger.info(f"  Temperature: {cfg.temperature} (retry {cfg.retry_temperature})")
    logger.info(
        f"  Chunking: limit={cfg.provider_limit_bytes} bytes, "
        f"safety={cfg.chunk_safety_factor}, bitrate={cfg.chunk_bitrate}"
    )
    logger.info(f"  API Key: {'set' if cfg.openai_api_key else 'missing'}")
    logger.info(f"  Skip Existing: {cfg.skip_existing}")


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    apply_log_level_fn: Optional[Callable[[str, Optional[str]], None]] = None,
    run_pipeline_fn: Optional[Callable[[config.Config], Tuple[int, str]]] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Entry point for the CLI; returns an exit status code."""
    progress.set_progress_factory(_tqdm_progress)
    log = logger or _LOGGER
    if apply_log_level_fn is None:
        apply_log_level_fn = workflow.apply_log_level
    if run_pipeline_fn is None:
        run_pipeline_fn = workflow.run_pipeline

    try:
        args = parse_args(argv)
    except ValueError as exc:
        log.error(f"Error: {exc}")
        return 1

    try:
        cfg = _build_config(args)
    except ValidationError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    apply_log_level_fn(cfg.log_level, cfg.log_file)

    log.info("Starting podcast transcription")
    _log_configuration(cfg, log)

    try:
        _, summary = run_pipeline_fn(cfg)
    except (ValueError, OSError) as exc:
        log.error(f"Error: {exc}")
        return 1

    log.info(summary)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
