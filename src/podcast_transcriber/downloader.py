"""HTTP session management and download helpers for podcast_transcriber.

GET requests (feeds and media) go through one retry-enabled session.
Transcription uploads do not use this module: they must never be retried
at the transport level.
"""

from __future__ import annotations

import atexit
import logging
import os
from typing import cast, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.utils import requote_uri
from urllib3.util.retry import Retry

from . import progress
from .exceptions import DownloadError

logger = logging.getLogger(__name__)

DEFAULT_HTTP_BACKOFF_FACTOR = 0.5
DEFAULT_HTTP_RETRY_TOTAL = 5
DOWNLOAD_CHUNK_SIZE = 1024 * 256
HTTP_RETRY_ALLOWED_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
HTTP_RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

_session: Optional[requests.Session] = None


def normalize_url(url: str) -> str:
    """Normalize URLs while preserving already-encoded segments."""
    normalized = requote_uri(url)
    if normalized != url:
        logger.debug("Normalized URL %s -> %s", url, normalized)
    return cast(str, normalized)


class LoggingRetry(Retry):
    def increment(self, method=None, url=None, *args, **kwargs):  # type: ignore[override]
        new_retry = super().increment(method=method, url=url, *args, **kwargs)
        attempt = len(new_retry.history) + 1
        reason = kwargs.get("error") or kwargs.get("response")
        logger.warning(
            "Retrying HTTP request (attempt %s/%s) %s %s due to %s",
            attempt,
            new_retry.total,
            method or "",
            url or "",
            reason,
        )
        return new_retry


def _configure_http_session(session: requests.Session) -> None:
    """Attach retry-enabled HTTP adapters to a session."""
    retry = LoggingRetry(
        total=DEFAULT_HTTP_RETRY_TOTAL,
        read=DEFAULT_HTTP_RETRY_TOTAL,
        connect=DEFAULT_HTTP_RETRY_TOTAL,
        status=DEFAULT_HTTP_RETRY_TOTAL,
        backoff_factor=DEFAULT_HTTP_BACKOFF_FACTOR,
        status_forcelist=HTTP_RETRY_STATUS_CODES,
        allowed_methods=HTTP_RETRY_ALLOWED_METHODS,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)


def get_session() -> requests.Session:
    """Return the shared retry-enabled session, creating it on first use."""
    global _session
    if _session is None:
        _session = requests.Session()
        _configure_http_session(_session)
        logger.debug("Created HTTP session %s", hex(id(_session)))
    return _session


def close_session() -> None:
    global _session
    if _session is not None:
        _session.close()
        _session = None


atexit.register(close_session)


def fetch_url(url: str, user_agent: str, timeout: int, *, stream: bool = False) -> requests.Response:
    """Execute an HTTP GET request with retries.

    Raises:
        DownloadError: If the request fails or the final status is an error
    """
    normalized_url = normalize_url(url)
    headers = {"User-Agent": user_agent}
    try:
        resp = get_session().get(normalized_url, headers=headers, timeout=timeout, stream=stream)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise DownloadError(f"Failed to fetch: {exc}", url=url) from exc
    logger.debug(
        "HTTP request to %s succeeded with status %s and Content-Length=%s",
        normalized_url,
        resp.status_code,
        resp.headers.get("Content-Length"),
    )
    return resp


def _content_length(resp: requests.Response) -> Optional[int]:
    content_length = resp.headers.get("Content-Length")
    try:
        return int(content_length) if content_length else None
    except (TypeError, ValueError):
        return None


def http_download_to_file(url: str, user_agent: str, timeout: int, out_path: str) -> int:
    """Stream ``url`` into ``out_path`` and return the number of bytes written.

    Raises:
        DownloadError: If the request fails or the file cannot be written
    """
    resp = fetch_url(url, user_agent, timeout, stream=True)
    try:
        total_size = _content_length(resp)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        filename = os.path.basename(out_path) or os.path.basename(url)

        logger.debug(
            "Streaming download from %s to %s (content-length=%s)", url, out_path, total_size
        )

        total_bytes = 0
        with (
            open(out_path, "wb") as f,
            progress.progress_context(total_size, f"Downloading {filename}") as reporter,
        ):
            for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                total_bytes += len(chunk)
                reporter.update(len(chunk))
        logger.debug("Finished downloading %s (%s bytes written)", url, total_bytes)
        return total_bytes
    except (requests.RequestException, OSError) as exc:
        raise DownloadError(f"Failed to download to {out_path}: {exc}", url=url) from exc
    finally:
        resp.close()
