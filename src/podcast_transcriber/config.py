from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
    ValidationInfo,
)

from . import config_constants

logger = logging.getLogger(__name__)


# SKIP .env loading in test environments - tests should use Config objects and
# environment variables directly, never rely on .env files
def _is_test_environment() -> bool:
    """Check if we're running in a test environment."""
    import sys

    # Check for pytest (most common test runner)
    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    # Check for unittest
    if "unittest" in sys.modules:
        return True
    # Check for explicit test environment variable
    if os.environ.get("TESTING", "").lower() in ("1", "true", "yes"):
        return True
    return False


if not _is_test_environment():
    try:
        load_dotenv(override=False)
    except (PermissionError, OSError):
        # Unreadable .env behaves like a missing one
        pass

# Re-exported for convenience
DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
DEFAULT_TIMEOUT_SECONDS = config_constants.DEFAULT_TIMEOUT_SECONDS
DEFAULT_TRANSCRIPTION_TIMEOUT_SECONDS = config_constants.DEFAULT_TRANSCRIPTION_TIMEOUT_SECONDS
DEFAULT_USER_AGENT = config_constants.DEFAULT_USER_AGENT
DEFAULT_LANGUAGE = config_constants.DEFAULT_LANGUAGE
DEFAULT_OUTPUT_DIR = config_constants.DEFAULT_OUTPUT_DIR
DEFAULT_CREDENTIALS_FILE = config_constants.DEFAULT_CREDENTIALS_FILE
DEFAULT_OPENAI_TRANSCRIPTION_MODEL = config_constants.DEFAULT_OPENAI_TRANSCRIPTION_MODEL
DEFAULT_RESPONSE_FORMAT = config_constants.DEFAULT_RESPONSE_FORMAT
DEFAULT_PROVIDER_LIMIT_BYTES = config_constants.DEFAULT_PROVIDER_LIMIT_BYTES
DEFAULT_CHUNK_SAFETY_FACTOR = config_constants.DEFAULT_CHUNK_SAFETY_FACTOR
DEFAULT_CHUNK_BITRATE = config_constants.DEFAULT_CHUNK_BITRATE
DEFAULT_RELEVANCE_LINES = config_constants.DEFAULT_RELEVANCE_LINES
VALID_LOG_LEVELS = config_constants.VALID_LOG_LEVELS
VALID_RESPONSE_FORMATS = config_constants.VALID_RESPONSE_FORMATS
MIN_TIMEOUT_SECONDS = config_constants.MIN_TIMEOUT_SECONDS
DEFAULT_TEMPERATURE = config_constants.DEFAULT_TEMPERATURE
DEFAULT_RETRY_TEMPERATURE = config_constants.DEFAULT_RETRY_TEMPERATURE
MIN_TEMPERATURE = config_constants.MIN_TEMPERATURE
MAX_TEMPERATURE = config_constants.MAX_TEMPERATURE

ResponseFormat = Literal["json", "text", "srt", "verbose_json", "vtt"]


def _validate_temperature_value(name: str, value: Any) -> float:
    try:
        temp = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number") from exc
    if not config_constants.MIN_TEMPERATURE <= temp <= config_constants.MAX_TEMPERATURE:
        raise ValueError(
            f"{name} must be between {config_constants.MIN_TEMPERATURE} and "
            f"{config_constants.MAX_TEMPERATURE}, got {temp}"
        )
    return temp


def read_credentials_file(path: Optional[str]) -> Optional[str]:
    """Return the ``openai_api_key`` entry of a local credentials file.

    A missing file or a file without the entry yields ``None``; a file that
    exists but cannot be read or parsed raises ValueError.
    """
    if not path:
        return None
    cred_path = Path(path).expanduser()
    if not cred_path.is_file():
        return None
    data = load_config_file(str(cred_path))
    value = data.get("openai_api_key") or data.get("openai-api-key")
    if value is None:
        return None
    return str(value).strip() or None


def resolve_api_key(
    explicit: Optional[str] = None,
    credentials_file: Optional[str] = DEFAULT_CREDENTIALS_FILE,
) -> Optional[str]:
    """Resolve the OpenAI API key.

    First present wins: explicit value, ``OPENAI_API_KEY`` environment
    variable (which a ``.env`` file may have populated), credentials file entry.
    """
    if explicit is not None and str(explicit).strip():
        return str(explicit).strip()
    env_key = os.getenv("OPENAI_API_KEY")
    if env_key and env_key.strip():
        return env_key.strip()
    return read_credentials_file(credentials_file)


class Config(BaseModel):
    """Configuration model for the chunked transcription pipeline.

    Configuration can be created programmatically or loaded from JSON/YAML
    files using `load_config_file()`. The model is immutable (frozen) after
    creation, so the resolved API key is threaded into the pipeline as a
    plain value rather than looked up globally.

    Attributes:
        sources: RSS feed URLs or local audio file paths to transcribe.
        sources_file: Optional file listing one source per line (``#`` comments allowed).
        output_dir: Root directory for transcripts and sidecar metadata.
        limit: Maximum number of items per feed (newest first). None processes all.
        language: Language code passed to the STT provider (e.g., "en").
        prompt: Optional context prompt passed to the STT provider.
        openai_api_key: API key (explicit > OPENAI_API_KEY > credentials file).
        openai_api_base: Base URL of the transcription API.
        transcription_model: STT model identifier (default: "whisper-1").
        response_format: One of json, text, srt, verbose_json, vtt.
        temperature: Sampling temperature for the first attempt (0.0-1.0).
        retry_temperature: Sampling temperature for the relevance retry (0.0-1.0).
        provider_limit_bytes: Maximum upload size accepted by the provider.
        chunk_safety_factor: Fraction of the limit each chunk is sized for.
        chunk_bitrate: Bitrate used when re-encoding chunks (e.g., "128k").
        relevance_lines: Number of leading transcript lines scanned for title keywords.
        skip_existing: Skip items whose transcript file already exists.
        metadata_format: Sidecar metadata format ("json" or "yaml").
        timeout: HTTP timeout in seconds for feed and media downloads.
        transcription_timeout: Timeout in seconds for one transcription upload.
        user_agent: HTTP User-Agent header for downloads.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path for file output.
        credentials_file: Local file holding an ``openai_api_key`` entry.

    Example:
        >>> from podcast_transcriber import Config
        >>> cfg = Config(
        ...     sources=["https://example.com/feed.xml"],
        ...     output_dir="./transcripts",
        ...     limit=3,
        ... )
    """

    sources: List[str] = Field(
        default_factory=list,
        alias="sources",
        description="RSS feed URLs or local audio files",
    )
    sources_file: Optional[str] = Field(
        default=None,
        alias="sources_file",
        description="File with one source per line",
    )
    output_dir: str = Field(default=DEFAULT_OUTPUT_DIR, alias="output_dir")
    limit: Optional[int] = Field(
        default=None,
        alias="limit",
        description="Maximum number of items per feed (newest first)",
    )
    language: Optional[str] = Field(default=DEFAULT_LANGUAGE, alias="language")
    prompt: Optional[str] = Field(
        default=None,
        alias="prompt",
        description="Context prompt sent with every transcription request",
    )
    credentials_file: Optional[str] = Field(
        default=DEFAULT_CREDENTIALS_FILE,
        alias="credentials_file",
        description="YAML or JSON file with an openai_api_key entry",
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        alias="openai_api_key",
        description="OpenAI API key (prefer OPENAI_API_KEY env var or .env file)",
    )
    openai_api_base: str = Field(
        default=config_constants.DEFAULT_OPENAI_API_BASE,
        alias="openai_api_base",
        validate_default=True,
        description="OpenAI API base URL. Can be set via OPENAI_API_BASE environment variable.",
    )
    transcription_model: str = Field(
        default=DEFAULT_OPENAI_TRANSCRIPTION_MODEL,
        alias="transcription_model",
    )
    response_format: ResponseFormat = Field(
        default=DEFAULT_RESPONSE_FORMAT,
        alias="response_format",
        description="json/verbose_json use the SDK, text/srt/vtt use raw multipart HTTP",
    )
    temperature: float = Field(default=config_constants.DEFAULT_TEMPERATURE, alias="temperature")
    retry_temperature: float = Field(
        default=config_constants.DEFAULT_RETRY_TEMPERATURE,
        alias="retry_temperature",
        description="Temperature used when an item is retranscribed after a relevance miss",
    )
    provider_limit_bytes: int = Field(
        default=DEFAULT_PROVIDER_LIMIT_BYTES,
        alias="provider_limit_bytes",
    )
    chunk_safety_factor: float = Field(
        default=DEFAULT_CHUNK_SAFETY_FACTOR,
        alias="chunk_safety_factor",
        description="Headroom factor for chunk sizing (re-encoding does not keep exact sizes)",
    )
    chunk_bitrate: str = Field(default=DEFAULT_CHUNK_BITRATE, alias="chunk_bitrate")
    relevance_lines: int = Field(default=DEFAULT_RELEVANCE_LINES, alias="relevance_lines")
    skip_existing: bool = Field(default=True, alias="skip_existing")
    metadata_format: Literal["json", "yaml"] = Field(default="json", alias="metadata_format")
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, alias="timeout")
    transcription_timeout: int = Field(
        default=DEFAULT_TRANSCRIPTION_TIMEOUT_SECONDS,
        alias="transcription_timeout",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="user_agent")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="log_level")
    log_file: Optional[str] = Field(default=None, alias="log_file")

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _resolve_openai_api_key(cls, data: Any) -> Any:
        """Fill in the API key from the environment or the credentials file."""
        if isinstance(data, dict):
            data = dict(data)
            credentials_file = data.get("credentials_file", DEFAULT_CREDENTIALS_FILE)
            data["openai_api_key"] = resolve_api_key(data.get("openai_api_key"), credentials_file)
        return data

    @field_validator("sources", mode="before")
    @classmethod
    def _coerce_sources(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(item).strip() for item in value if item and str(item).strip()]

    @field_validator("sources_file", "prompt", "log_file", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("language", mode="before")
    @classmethod
    def _coerce_language(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip().lower() or None

    @field_validator("openai_api_base", mode="before")
    @classmethod
    def _load_openai_api_base_from_env(cls, value: Any) -> str:
        """Load OpenAI API base URL from environment variable if not provided."""
        if value is not None and str(value).strip():
            return str(value).strip().rstrip("/")
        env_base = os.getenv("OPENAI_API_BASE")
        if env_base and env_base.strip():
            return env_base.strip().rstrip("/")
        return config_constants.DEFAULT_OPENAI_API_BASE

    @field_validator("openai_api_key", mode="after")
    @classmethod
    def _warn_on_unusual_key(cls, value: Optional[str]) -> Optional[str]:
        if value and not value.startswith(config_constants.OPENAI_API_KEY_PREFIX):
            logger.warning(
                "OpenAI API key does not start with %r; the provider will likely reject it",
                config_constants.OPENAI_API_KEY_PREFIX,
            )
        return value

    @field_validator("output_dir", mode="before")
    @classmethod
    def _coerce_output_dir(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_OUTPUT_DIR
        return str(value).strip() or DEFAULT_OUTPUT_DIR

    @field_validator("limit", mode="before")
    @classmethod
    def _coerce_limit(cls, value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            parsed = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("limit must be an integer") from exc
        return parsed if parsed > 0 else None

    @field_validator("temperature", mode="before")
    @classmethod
    def _validate_temperature(cls, value: Any) -> float:
        if value is None or value == "":
            return config_constants.DEFAULT_TEMPERATURE
        return _validate_temperature_value("temperature", value)

    @field_validator("retry_temperature", mode="before")
    @classmethod
    def _validate_retry_temperature(cls, value: Any) -> float:
        if value is None or value == "":
            return config_constants.DEFAULT_RETRY_TEMPERATURE
        return _validate_temperature_value("retry_temperature", value)

    @field_validator("provider_limit_bytes", mode="after")
    @classmethod
    def _validate_provider_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("provider_limit_bytes must be positive")
        return value

    @field_validator("chunk_safety_factor", mode="after")
    @classmethod
    def _validate_safety_factor(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError("chunk_safety_factor must be in (0.0, 1.0]")
        return value

    @field_validator("relevance_lines", mode="after")
    @classmethod
    def _validate_relevance_lines(cls, value: int) -> int:
        if value < 1:
            raise ValueError("relevance_lines must be at least 1")
        return value

    @field_validator("timeout", "transcription_timeout", mode="before")
    @classmethod
    def _ensure_timeout(cls, value: Any, info: ValidationInfo) -> int:
        if value is None or value == "":
            if info.field_name == "transcription_timeout":
                return DEFAULT_TRANSCRIPTION_TIMEOUT_SECONDS
            return DEFAULT_TIMEOUT_SECONDS
        try:
            timeout = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{info.field_name} must be an integer") from exc
        return max(MIN_TIMEOUT_SECONDS, timeout)

    @field_validator("user_agent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_AGENT
        value_str = str(value).strip()
        return value_str or DEFAULT_USER_AGENT

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level value."""
        if value is None:
            return DEFAULT_LOG_LEVEL
        return str(value).strip().upper() or DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="after")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the valid levels."""
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {value}")
        return value


def load_config_file(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    The file format is auto-detected from the file extension (`.json`, `.yaml`,
    or `.yml`). The returned dictionary can be unpacked into the `Config`
    constructor.

    Args:
        path: Path to configuration file. Supports tilde expansion.

    Returns:
        Dict[str, Any]: Configuration values keyed by `Config` field names.

    Raises:
        ValueError: If the path is empty, the file does not exist, the format
            is not JSON or YAML, parsing fails, or the top level is not a mapping.

    Example:
        >>> from podcast_transcriber import Config, load_config_file, run_pipeline
        >>> cfg = Config(**load_config_file("config.yaml"))
        >>> count, summary = run_pipeline(cfg)
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    cfg_path = Path(path).expanduser()
    try:
        resolved = cfg_path.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc

    if not resolved.exists():
        raise ValueError(f"Config file not found: {resolved}")

    suffix = resolved.suffix.lower()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {resolved}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config file {resolved}: {exc}") from exc
    elif suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML config file {resolved}: {exc}") from exc
    else:
        raise ValueError(f"Unsupported config file type: {resolved.suffix}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping/object at the top level")

    return data
