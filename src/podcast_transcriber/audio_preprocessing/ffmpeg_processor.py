"""FFmpeg-based duration probing and chunk extraction."""

import logging
import os
import shutil
import subprocess
import time

from .. import config_constants
from ..exceptions import ProbeError, TransportError
from ..models import Chunk

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 30
EXTRACT_TIMEOUT_SECONDS = 600


def _check_ffmpeg_available() -> bool:
    """Check if ffmpeg is available on the system."""
    return shutil.which("ffmpeg") is not None


def _check_ffprobe_available() -> bool:
    """Check if ffprobe is available on the system."""
    return shutil.which("ffprobe") is not None


def _format_seconds(value: float) -> str:
    return f"{value:.3f}"


class FFmpegChunker:
    """Audio chunker backed by the ffprobe and ffmpeg command line tools."""

    def __init__(
        self,
        bitrate: str = config_constants.DEFAULT_CHUNK_BITRATE,
        codec: str = config_constants.DEFAULT_CHUNK_CODEC,
    ):
        """Initialize the chunker.

        Args:
            bitrate: Target bitrate of extracted chunks (default: 128k)
            codec: Audio codec used for extracted chunks (default: libmp3lame)
        """
        self.bitrate = bitrate
        self.codec = codec

        if not _check_ffmpeg_available():
            logger.warning(
                "FFmpeg not found. Large files cannot be split. "
                "Install ffmpeg to transcribe files above the provider limit."
            )

    def probe_duration(self, audio_path: str) -> float:
        """Return the duration of ``audio_path`` in seconds using ffprobe.

        Raises:
            ProbeError: If ffprobe is missing, fails, or reports no usable duration
        """
        if not _check_ffprobe_available():
            raise ProbeError(
                "ffprobe not found",
                path=audio_path,
                suggestion="Install ffmpeg (which ships ffprobe)",
            )
        if not os.path.exists(audio_path):
            raise ProbeError("Audio file does not exist", path=audio_path)

        cmd = [
            "ffprobe",
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            audio_path,
        ]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=PROBE_TIMEOUT_SECONDS,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise ProbeError(f"ffprobe failed: {exc.stderr.strip()}", path=audio_path) from exc
        except subprocess.TimeoutExpired as exc:
            raise ProbeError(
                f"ffprobe timed out after {PROBE_TIMEOUT_SECONDS}s", path=audio_path
            ) from exc
        except FileNotFoundError as exc:
            raise ProbeError("ffprobe not found", path=audio_path) from exc

        raw = result.stdout.strip()
        try:
            duration = float(raw)
        except ValueError as exc:
            raise ProbeError(f"Unparseable duration {raw!r}", path=audio_path) from exc
        if duration <= 0:
            raise ProbeError(f"Non-positive duration {duration}", path=audio_path)

        logger.debug("Probed duration of %s: %.2fs", audio_path, duration)
        return duration

    def extract_chunk(self, input_path: str, chunk: Chunk, output_path: str) -> str:
        """Re-encode one chunk of ``input_path`` into ``output_path``.

        Open-ended chunks omit ``-t`` so they run until the end of the stream.

        Raises:
            TransportError: If ffmpeg is missing, fails, or times out
        """
        cmd = [
            "ffmpeg",
            "-v",
            "error",
            "-y",  # Overwrite output
            "-i",
            input_path,
            "-ss",
            _format_seconds(chunk.start),
        ]
        if not chunk.open_ended:
            cmd.extend(["-t", _format_seconds(chunk.duration)])
        cmd.extend(
            [
                "-vn",  # No video (audio-only)
                "-acodec",
                self.codec,
                "-b:a",
                self.bitrate,
                output_path,
            ]
        )

        start_time = time.time()
        try:
            subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=EXTRACT_TIMEOUT_SECONDS,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise TransportError(
                f"ffmpeg failed extracting chunk {chunk.index}: {exc.stderr.strip()}",
                provider="ffmpeg",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise TransportError(
                f"ffmpeg timed out extracting chunk {chunk.index}",
                provider="ffmpeg",
            ) from exc
        except FileNotFoundError as exc:
            raise TransportError(
                "ffmpeg not found",
                provider="ffmpeg",
                suggestion="Install ffmpeg to transcribe files above the provider limit",
            ) from exc

        logger.debug(
            "Extracted chunk %d (start=%.2fs) in %.1fs", chunk.index, chunk.start, time.time() - start_time
        )
        return output_path
