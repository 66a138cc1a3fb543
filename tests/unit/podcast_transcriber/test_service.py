#!/usr/bin/env python3
"""Tests for the service API."""

import importlib.util
import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import pytest

from podcast_transcriber import service
from podcast_transcriber.exceptions import TransportError

parent_tests_dir = Path(__file__).resolve().parents[2]
spec = importlib.util.spec_from_file_location("parent_conftest", parent_tests_dir / "conftest.py")
if spec is None or spec.loader is None:
    raise ImportError(f"Could not load conftest from {parent_tests_dir}")
parent_conftest = importlib.util.module_from_spec(spec)
spec.loader.exec_module(parent_conftest)

create_test_config = parent_conftest.create_test_config
TEST_FEED_URL = parent_conftest.TEST_FEED_URL

pytestmark = [pytest.mark.unit]


@patch("podcast_transcriber.service.workflow.apply_log_level")
@patch("podcast_transcriber.service.workflow.run_pipeline")
class TestServiceRun(unittest.TestCase):
    def test_success(self, mock_run_pipeline, mock_apply_log_level):
        mock_run_pipeline.return_value = (3, "Done. transcripts_saved=3")
        cfg = create_test_config(log_level="WARNING")

        result = service.run(cfg)

        self.assertTrue(result.success)
        self.assertEqual(result.items_persisted, 3)
        self.assertEqual(result.summary, "Done. transcripts_saved=3")
        self.assertIsNone(result.error)
        mock_apply_log_level.assert_called_once_with(level="WARNING", log_file=None)

    def test_pipeline_error_reported(self, mock_run_pipeline, _mock_apply_log_level):
        mock_run_pipeline.side_effect = ValueError("No sources configured")

        result = service.run(create_test_config())

        self.assertFalse(result.success)
        self.assertEqual(result.items_persisted, 0)
        self.assertEqual(result.error, "No sources configured")

    def test_transcriber_error_reported(self, mock_run_pipeline, _mock_apply_log_level):
        mock_run_pipeline.side_effect = TransportError("connection reset")

        result = service.run(create_test_config())

        self.assertFalse(result.success)
        self.assertIn("connection reset", result.error)


class TestRunFromConfigFile(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    @patch("podcast_transcriber.service.run")
    def test_loads_config(self, mock_run):
        path = os.path.join(self.temp_dir, "config.json")
        with open(path, "w", encoding="utf-8") as fh:
            json.dump({"sources": [TEST_FEED_URL], "limit": 1, "openai_api_key": "sk-file"}, fh)
        mock_run.return_value = service.ServiceResult(items_persisted=1, summary="ok")

        result = service.run_from_config_file(path)

        self.assertTrue(result.success)
        cfg = mock_run.call_args[0][0]
        self.assertEqual(cfg.sources, [TEST_FEED_URL])
        self.assertEqual(cfg.limit, 1)

    def test_missing_file(self):
        result = service.run_from_config_file(os.path.join(self.temp_dir, "missing.yaml"))

        self.assertFalse(result.success)
        self.assertIn("Failed to load configuration file", result.error)

    def test_invalid_values(self):
        path = os.path.join(self.temp_dir, "config.json")
        with open(path, "w", encoding="utf-8") as fh:
            json.dump({"sources": [TEST_FEED_URL], "chunk_safety_factor": 3}, fh)

        result = service.run_from_config_file(path)

        self.assertFalse(result.success)


class TestServiceMain(unittest.TestCase):
    @patch("podcast_transcriber.service.run_from_config_file")
    def test_main_success(self, mock_run):
        mock_run.return_value = service.ServiceResult(items_persisted=1, summary="Done.")

        with patch("sys.argv", ["service", "--config", "config.yaml"]), patch("builtins.print"):
            self.assertEqual(service.main(), 0)
        mock_run.assert_called_once_with("config.yaml")

    @patch("podcast_transcriber.service.run_from_config_file")
    def test_main_failure(self, mock_run):
        mock_run.return_value = service.ServiceResult(
            items_persisted=0, summary="", success=False, error="bad config"
        )

        with patch("sys.argv", ["service", "--config", "config.yaml"]), patch("builtins.print"):
            self.assertEqual(service.main(), 1)


if __name__ == "__main__":
    unittest.main()
