"""Configuration constants for podcast_transcriber.

All constants are re-exported from config.py for convenience.
"""

# General defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_TIMEOUT_SECONDS = 20
DEFAULT_TRANSCRIPTION_TIMEOUT_SECONDS = 600  # 10 minutes per upload
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0 Safari/537.36"
)
DEFAULT_LANGUAGE = "en"
DEFAULT_OUTPUT_DIR = "transcripts"
DEFAULT_CREDENTIALS_FILE = "~/.podcast_transcriber.yaml"

# Default file extensions
DEFAULT_MEDIA_EXTENSION = ".mp3"
DEFAULT_TRANSCRIPT_EXTENSION = ".txt"
LOCAL_FILES_DIRNAME = "local_files"
SOURCE_INFO_BASENAME = "source_info"

# OpenAI transcription endpoint
DEFAULT_OPENAI_API_BASE = "https://api.openai.com/v1"
DEFAULT_OPENAI_TRANSCRIPTION_MODEL = "whisper-1"
OPENAI_API_KEY_PREFIX = "sk-"

# Response formats accepted by the transcription endpoint.
# JSON formats go through the SDK; everything else is posted as raw multipart.
RESPONSE_FORMAT_JSON = "json"
RESPONSE_FORMAT_TEXT = "text"
RESPONSE_FORMAT_SRT = "srt"
RESPONSE_FORMAT_VERBOSE_JSON = "verbose_json"
RESPONSE_FORMAT_VTT = "vtt"
DEFAULT_RESPONSE_FORMAT = RESPONSE_FORMAT_TEXT
VALID_RESPONSE_FORMATS = (
    RESPONSE_FORMAT_JSON,
    RESPONSE_FORMAT_TEXT,
    RESPONSE_FORMAT_SRT,
    RESPONSE_FORMAT_VERBOSE_JSON,
    RESPONSE_FORMAT_VTT,
)
JSON_RESPONSE_FORMATS = frozenset({RESPONSE_FORMAT_JSON, RESPONSE_FORMAT_VERBOSE_JSON})

# Temperature bounds for transcription requests
DEFAULT_TEMPERATURE = 0.0
DEFAULT_RETRY_TEMPERATURE = 0.2
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 1.0

# Chunking
DEFAULT_PROVIDER_LIMIT_BYTES = 25_000_000
DEFAULT_CHUNK_SAFETY_FACTOR = 0.8
DEFAULT_CHUNK_BITRATE = "128k"
DEFAULT_CHUNK_CODEC = "libmp3lame"

# Assembly repair rules
DEGENERATE_RUN_LENGTH = 5

# Relevance check
DEFAULT_RELEVANCE_LINES = 20
RELEVANCE_MIN_KEYWORD_LENGTH = 4
RELEVANCE_STOP_WORDS = frozenset(
    {
        "and",
        "the",
        "a",
        "an",
        "in",
        "on",
        "of",
        "to",
        "for",
        "with",
        "by",
        "at",
        "from",
        "podcast",
    }
)

# Validation constants
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_METADATA_FORMATS = ("json", "yaml")
MIN_TIMEOUT_SECONDS = 1
