#!/usr/bin/env python3
"""Unit tests for transcription client selection."""

import importlib.util
import unittest
from pathlib import Path
from unittest.mock import patch

import pytest

from podcast_transcriber.transcription import create_transcription_client
from podcast_transcriber.transcription.openai_provider import StructuredTranscriptionClient
from podcast_transcriber.transcription.raw_http import RawHTTPTranscriptionClient

parent_tests_dir = Path(__file__).resolve().parents[3]
spec = importlib.util.spec_from_file_location("parent_conftest", parent_tests_dir / "conftest.py")
if spec is None or spec.loader is None:
    raise ImportError(f"Could not load conftest from {parent_tests_dir}")
parent_conftest = importlib.util.module_from_spec(spec)
spec.loader.exec_module(parent_conftest)

create_test_config = parent_conftest.create_test_config

pytestmark = [pytest.mark.unit]


class TestCreateTranscriptionClient(unittest.TestCase):
    @patch("podcast_transcriber.transcription.openai_provider.OpenAI")
    def test_json_formats_use_sdk_client(self, _mock_openai):
        for fmt in ("json", "verbose_json"):
            with self.subTest(fmt=fmt):
                client = create_transcription_client(create_test_config(response_format=fmt))
                self.assertIsInstance(client, StructuredTranscriptionClient)

    def test_text_formats_use_raw_client(self):
        for fmt in ("text", "srt", "vtt"):
            with self.subTest(fmt=fmt):
                client = create_transcription_client(create_test_config(response_format=fmt))
                self.assertIsInstance(client, RawHTTPTranscriptionClient)

    def test_explicit_format_overrides_config(self):
        client = create_transcription_client(create_test_config(response_format="json"), "vtt")
        self.assertIsInstance(client, RawHTTPTranscriptionClient)

    def test_unknown_format_rejected(self):
        with self.assertRaises(ValueError):
            create_transcription_client(create_test_config(), "mp3")


if __name__ == "__main__":
    unittest.main()
