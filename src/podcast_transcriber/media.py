"""Resolve a source item to a local audio file."""

from __future__ import annotations

import logging
import os
from urllib.parse import urlparse

from . import config, config_constants, downloader
from .exceptions import DownloadError
from .models import AudioAsset, SourceItem

logger = logging.getLogger(__name__)


def _media_extension(media_url: str) -> str:
    path = urlparse(media_url).path if "://" in media_url else media_url
    ext = os.path.splitext(path)[1].lower()
    if not ext or len(ext) > 6:
        return config_constants.DEFAULT_MEDIA_EXTENSION
    return ext


class MediaDownloader:
    """Fetches remote media into a scratch directory; local files are used in place."""

    def __init__(self, cfg: config.Config):
        self.cfg = cfg

    def fetch(self, item: SourceItem, scratch_dir: str) -> AudioAsset:
        """Return an AudioAsset for ``item``.

        Raises:
            DownloadError: If the remote file cannot be downloaded or the
                local file does not exist
        """
        ext = _media_extension(item.media_url)

        if item.is_local:
            path = os.path.abspath(os.path.expanduser(item.media_url))
            if not os.path.isfile(path):
                raise DownloadError("Local audio file not found", url=item.media_url)
            size = os.path.getsize(path)
            logger.debug("Using local file %s (%d bytes)", path, size)
            return AudioAsset(source=item.media_url, path=path, size_bytes=size, encoding=ext[1:])

        out_path = os.path.join(scratch_dir, f"media{ext}")
        size = downloader.http_download_to_file(
            item.media_url, self.cfg.user_agent, self.cfg.timeout, out_path
        )
        if size == 0:
            raise DownloadError("Downloaded file is empty", url=item.media_url)
        return AudioAsset(source=item.media_url, path=out_path, size_bytes=size, encoding=ext[1:])
