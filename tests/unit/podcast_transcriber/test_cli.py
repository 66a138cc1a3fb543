#!/usr/bin/env python3
"""Tests for CLI argument handling and the main entry point."""

import importlib.util
import json
import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import yaml

from podcast_transcriber import __version__, cli, progress

parent_tests_dir = Path(__file__).resolve().parents[2]
spec = importlib.util.spec_from_file_location("parent_conftest", parent_tests_dir / "conftest.py")
if spec is None or spec.loader is None:
    raise ImportError(f"Could not load conftest from {parent_tests_dir}")
parent_conftest = importlib.util.module_from_spec(spec)
spec.loader.exec_module(parent_conftest)

create_test_args = parent_conftest.create_test_args
TEST_FEED_URL = parent_conftest.TEST_FEED_URL

pytestmark = [pytest.mark.unit]


class TestValidateArgs(unittest.TestCase):
    def test_valid_args(self):
        cli.validate_args(create_test_args())

    def test_sources_file_alone_is_enough(self):
        cli.validate_args(create_test_args(sources=[], sources_file="sources.txt"))

    def test_missing_sources(self):
        with self.assertRaises(ValueError) as ctx:
            cli.validate_args(create_test_args(sources=[], sources_file=None))
        self.assertIn("At least one source", str(ctx.exception))

    def test_errors_are_collected(self):
        args = create_test_args(limit=0, timeout=-1, temperature=1.5, chunk_safety_factor=0.0)

        with self.assertRaises(ValueError) as ctx:
            cli.validate_args(args)

        message = str(ctx.exception)
        self.assertIn("--limit must be positive", message)
        self.assertIn("--timeout must be positive", message)
        self.assertIn("--temperature must be between", message)
        self.assertIn("--chunk-safety-factor", message)

    def test_chunk_limit_must_be_positive(self):
        with self.assertRaises(ValueError) as ctx:
            cli.validate_args(create_test_args(provider_limit_bytes=0))
        self.assertIn("--chunk-limit-bytes", str(ctx.exception))


class TestParseArgs(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults(self):
        args = cli.parse_args([TEST_FEED_URL])

        self.assertEqual(args.sources, [TEST_FEED_URL])
        self.assertTrue(args.skip_existing)
        self.assertEqual(args.temperature, 0.0)
        self.assertEqual(args.retry_temperature, 0.2)
        self.assertEqual(args.chunk_safety_factor, 0.8)
        self.assertIsNone(args.openai_api_base)

    def test_flags_map_to_config_names(self):
        args = cli.parse_args(
            [
                TEST_FEED_URL,
                "talk.mp3",
                "--api-key",
                "sk-cli",
                "--model",
                "whisper-large",
                "--chunk-limit-bytes",
                "1000000",
                "--no-skip-existing",
            ]
        )

        self.assertEqual(args.sources, [TEST_FEED_URL, "talk.mp3"])
        self.assertEqual(args.openai_api_key, "sk-cli")
        self.assertEqual(args.transcription_model, "whisper-large")
        self.assertEqual(args.provider_limit_bytes, 1000000)
        self.assertFalse(args.skip_existing)

    def test_version_exits(self):
        with patch("builtins.print") as mock_print:
            with self.assertRaises(SystemExit) as ctx:
                cli.parse_args(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        mock_print.assert_called_once_with(f"podcast_transcriber {__version__}")

    def test_config_file_supplies_defaults(self):
        config_path = os.path.join(self.temp_dir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as fh:
            yaml.safe_dump(
                {"sources": [TEST_FEED_URL], "limit": 2, "language": "de", "temperature": 0.1}, fh
            )

        args = cli.parse_args(["--config", config_path])

        self.assertEqual(args.sources, [TEST_FEED_URL])
        self.assertEqual(args.limit, 2)
        self.assertEqual(args.language, "de")
        self.assertEqual(args.temperature, 0.1)

    def test_cli_flags_override_config_file(self):
        config_path = os.path.join(self.temp_dir, "config.json")
        with open(config_path, "w", encoding="utf-8") as fh:
            json.dump({"sources": [TEST_FEED_URL], "limit": 2}, fh)

        args = cli.parse_args(["--config", config_path, "--limit", "5"])

        self.assertEqual(args.limit, 5)

    def test_unknown_config_key_rejected(self):
        config_path = os.path.join(self.temp_dir, "config.json")
        with open(config_path, "w", encoding="utf-8") as fh:
            json.dump({"sources": [TEST_FEED_URL], "speakers": 2}, fh)

        with self.assertRaises(ValueError) as ctx:
            cli.parse_args(["--config", config_path])
        self.assertIn("speakers", str(ctx.exception))


@patch.dict(os.environ, {}, clear=True)
class TestMain(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.output_dir = os.path.join(self.temp_dir, "out")
        self.logger = logging.getLogger("tests.cli")
        self.apply_log_level = Mock()
        self.run_pipeline = Mock(return_value=(1, "Done. transcripts_saved=1"))

    def tearDown(self):
        progress.set_progress_factory(None)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _main(self, argv):
        return cli.main(
            argv,
            apply_log_level_fn=self.apply_log_level,
            run_pipeline_fn=self.run_pipeline,
            logger=self.logger,
        )

    def test_success(self):
        with self.assertLogs("tests.cli", level="INFO") as logs:
            exit_code = self._main(
                [TEST_FEED_URL, "--output-dir", self.output_dir, "--log-level", "debug"]
            )

        self.assertEqual(exit_code, 0)
        self.apply_log_level.assert_called_once_with("DEBUG", None)
        cfg = self.run_pipeline.call_args[0][0]
        self.assertEqual(cfg.sources, [TEST_FEED_URL])
        self.assertEqual(cfg.output_dir, self.output_dir)
        self.assertIn("Done. transcripts_saved=1", "\n".join(logs.output))

    def test_api_key_never_logged(self):
        with self.assertLogs("tests.cli", level="INFO") as logs:
            self._main([TEST_FEED_URL, "--output-dir", self.output_dir, "--api-key", "sk-secret"])

        output = "\n".join(logs.output)
        self.assertNotIn("sk-secret", output)
        self.assertIn("API Key: set", output)
        self.assertEqual(self.run_pipeline.call_args[0][0].openai_api_key, "sk-secret")

    def test_invalid_arguments_return_error(self):
        with self.assertLogs("tests.cli", level="ERROR"):
            exit_code = self._main(["--output-dir", self.output_dir])

        self.assertEqual(exit_code, 1)
        self.run_pipeline.assert_not_called()

    def test_pipeline_value_error_returns_error(self):
        self.run_pipeline.side_effect = ValueError("Failed to read sources file")

        with self.assertLogs("tests.cli", level="ERROR"):
            exit_code = self._main([TEST_FEED_URL, "--output-dir", self.output_dir])

        self.assertEqual(exit_code, 1)

    def test_item_failures_do_not_change_exit_code(self):
        self.run_pipeline.return_value = (0, "Done. transcripts_saved=0\n  - Failed: 2")

        self.assertEqual(self._main([TEST_FEED_URL, "--output-dir", self.output_dir]), 0)


if __name__ == "__main__":
    unittest.main()
