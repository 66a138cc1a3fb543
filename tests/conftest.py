"""Shared fixtures and test utilities for podcast_transcriber tests.

This module contains:
- Test constants
- Helper functions for creating test objects
- Mock classes for HTTP responses and transcription clients

All test files can import from this module using pytest's conftest.py mechanism.
"""

import os

os.environ["TERM"] = "dumb"  # Disable terminal progress features

import argparse
from datetime import datetime, timezone

from podcast_transcriber import config, models

# Test constants
TEST_BASE_URL = "https://example.com"
TEST_FEED_URL = "https://example.com/feed.xml"
TEST_MEDIA_URL = f"{TEST_BASE_URL}/episode.mp3"
TEST_EPISODE_TITLE = "Tech News Weekly: Chips and Clouds"
TEST_EPISODE_TITLE_SPECIAL = "Episode: Title/With\\Special*Chars?"
TEST_FEED_TITLE = "Test Feed"
TEST_OUTPUT_DIR = "output"
TEST_API_KEY = "sk-test-key"
TEST_PROCESSED_AT = "2024-05-01T12:00:00+00:00"
TEST_PUBLISH_DATE = datetime(2024, 4, 30, 8, 0, tzinfo=timezone.utc)
TEST_MEDIA_TYPE_MP3 = "audio/mpeg"


# Test helper functions
def create_test_args(**overrides):
    """Create test argparse.Namespace with CLI defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        argparse.Namespace object with test defaults
    """
    defaults = {
        "sources": [TEST_FEED_URL],
        "sources_file": None,
        "output_dir": None,
        "limit": None,
        "timeout": 30,
        "transcription_timeout": 600,
        "temperature": 0.0,
        "retry_temperature": 0.2,
        "provider_limit_bytes": config.DEFAULT_PROVIDER_LIMIT_BYTES,
        "chunk_safety_factor": config.DEFAULT_CHUNK_SAFETY_FACTOR,
    }
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


def create_test_config(**overrides):
    """Create test Config object with defaults.

    The API key is explicit and the credentials file disabled, so the
    developer's environment never leaks into a test.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        config.Config object with test defaults
    """
    defaults = {
        "sources": [TEST_FEED_URL],
        "output_dir": TEST_OUTPUT_DIR,
        "user_agent": "test-agent",
        "timeout": 30,
        "openai_api_key": TEST_API_KEY,
        "openai_api_base": "https://api.example.com/v1",
        "credentials_file": None,
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return config.Config(**defaults)


def create_test_item(**overrides):
    """Create test SourceItem object with defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        models.SourceItem object with test defaults
    """
    defaults = {
        "title": TEST_EPISODE_TITLE,
        "media_url": TEST_MEDIA_URL,
        "publish_date": TEST_PUBLISH_DATE,
        "source_url": TEST_FEED_URL,
    }
    defaults.update(overrides)
    return models.SourceItem(**defaults)


def create_test_metadata(**overrides):
    """Create test TranscriptMetadata object with defaults."""
    defaults = {
        "title": TEST_EPISODE_TITLE,
        "publication_date": "2024-04-30",
        "source_url": TEST_MEDIA_URL,
        "processed_at": TEST_PROCESSED_AT,
    }
    defaults.update(overrides)
    return models.TranscriptMetadata(**defaults)


def build_rss_xml_with_media(title, items):
    """Build RSS XML with one enclosure per item.

    Args:
        title: Feed title
        items: Iterable of (item title, media url, pubDate or None)

    Returns:
        RSS XML string
    """
    rendered = []
    for item_title, media_url, pub_date in items:
        pub = f"\n      <pubDate>{pub_date}</pubDate>" if pub_date else ""
        enclosure = (
            f'\n      <enclosure url="{media_url}" type="{TEST_MEDIA_TYPE_MP3}" />'
            if media_url
            else ""
        )
        rendered.append(f"    <item>\n      <title>{item_title}</title>{pub}{enclosure}\n    </item>")
    body = "\n".join(rendered)
    return f"""<?xml version='1.0'?>
<rss>
  <channel>
    <title>{title}</title>
{body}
  </channel>
</rss>""".strip()


class MockHTTPResponse:
    """Simple mock for HTTP responses."""

    def __init__(self, *, content=b"", url="", headers=None, chunks=None, status_code=200):
        self.content = content
        self.url = url
        self.headers = headers or {}
        self.status_code = status_code
        self._chunks = chunks if chunks is not None else [content]

    def raise_for_status(self):
        return None

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            yield chunk

    def close(self):
        return None


class FakeTranscriptionClient:
    """Scripted TranscriptionClient recording every call.

    ``texts`` are returned in order, one per ``transcribe`` call; an
    exception instance in the list is raised instead.
    """

    def __init__(self, texts):
        self.texts = list(texts)
        self.calls = []
        self.initialized = False
        self.cleaned_up = False

    def initialize(self):
        self.initialized = True

    def transcribe(self, audio_path, request):
        self.calls.append((audio_path, request))
        value = self.texts.pop(0)
        if isinstance(value, Exception):
            raise value
        return models.TranscriptionResult(text=value, response_format=request.response_format)

    def cleanup(self):
        self.cleaned_up = True
