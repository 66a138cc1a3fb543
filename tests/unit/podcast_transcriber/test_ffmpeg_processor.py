#!/usr/bin/env python3
"""Unit tests for ffprobe/ffmpeg wrappers (subprocess always mocked)."""

import subprocess
import unittest
from unittest.mock import Mock, patch

import pytest

from podcast_transcriber.audio_preprocessing.ffmpeg_processor import FFmpegChunker
from podcast_transcriber.exceptions import ProbeError, TransportError
from podcast_transcriber.models import Chunk

pytestmark = [pytest.mark.unit]

MODULE = "podcast_transcriber.audio_preprocessing.ffmpeg_processor"


@patch(f"{MODULE}.shutil.which", return_value="/usr/bin/ffmpeg")
class TestProbeDuration(unittest.TestCase):
    @patch(f"{MODULE}.os.path.exists", return_value=True)
    @patch(f"{MODULE}.subprocess.run")
    def test_parses_duration(self, mock_run, _exists, _which):
        mock_run.return_value = Mock(stdout="600.048000\n")

        duration = FFmpegChunker().probe_duration("/tmp/a.mp3")

        self.assertAlmostEqual(duration, 600.048)
        cmd = mock_run.call_args.args[0]
        self.assertEqual(cmd[0], "ffprobe")
        self.assertIn("format=duration", cmd)
        self.assertEqual(cmd[-1], "/tmp/a.mp3")

    @patch(f"{MODULE}.os.path.exists", return_value=True)
    @patch(f"{MODULE}.subprocess.run")
    def test_unparseable_output_raises(self, mock_run, _exists, _which):
        mock_run.return_value = Mock(stdout="N/A\n")

        with self.assertRaises(ProbeError):
            FFmpegChunker().probe_duration("/tmp/a.mp3")

    @patch(f"{MODULE}.os.path.exists", return_value=True)
    @patch(f"{MODULE}.subprocess.run")
    def test_zero_duration_raises(self, mock_run, _exists, _which):
        mock_run.return_value = Mock(stdout="0.0\n")

        with self.assertRaises(ProbeError):
            FFmpegChunker().probe_duration("/tmp/a.mp3")

    @patch(f"{MODULE}.os.path.exists", return_value=True)
    @patch(f"{MODULE}.subprocess.run")
    def test_process_failure_raises(self, mock_run, _exists, _which):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["ffprobe"], stderr="Invalid data")

        with self.assertRaises(ProbeError) as ctx:
            FFmpegChunker().probe_duration("/tmp/a.mp3")
        self.assertIn("Invalid data", str(ctx.exception))

    def test_missing_file_raises(self, _which):
        with self.assertRaises(ProbeError):
            FFmpegChunker().probe_duration("/nonexistent/a.mp3")


class TestFFprobeMissing(unittest.TestCase):
    @patch(f"{MODULE}.shutil.which", return_value=None)
    def test_missing_ffprobe_raises(self, _which):
        with self.assertRaises(ProbeError):
            FFmpegChunker().probe_duration("/tmp/a.mp3")


@patch(f"{MODULE}.shutil.which", return_value="/usr/bin/ffmpeg")
class TestExtractChunk(unittest.TestCase):
    @patch(f"{MODULE}.subprocess.run")
    def test_bounded_chunk_has_duration(self, mock_run, _which):
        chunk = Chunk(index=1, start=0.0, duration=300.0)

        FFmpegChunker(bitrate="64k").extract_chunk("/tmp/in.mp3", chunk, "/tmp/chunk_1.mp3")

        cmd = mock_run.call_args.args[0]
        self.assertEqual(cmd[cmd.index("-ss") + 1], "0.000")
        self.assertEqual(cmd[cmd.index("-t") + 1], "300.000")
        self.assertEqual(cmd[cmd.index("-b:a") + 1], "64k")
        self.assertEqual(cmd[-1], "/tmp/chunk_1.mp3")

    @patch(f"{MODULE}.subprocess.run")
    def test_open_ended_chunk_runs_to_end(self, mock_run, _which):
        chunk = Chunk(index=2, start=300.0, duration=300.0, open_ended=True)

        FFmpegChunker().extract_chunk("/tmp/in.mp3", chunk, "/tmp/chunk_2.mp3")

        cmd = mock_run.call_args.args[0]
        self.assertNotIn("-t", cmd)
        self.assertEqual(cmd[cmd.index("-ss") + 1], "300.000")

    @patch(f"{MODULE}.subprocess.run")
    def test_failure_raises_transport_error(self, mock_run, _which):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["ffmpeg"], stderr="bad")

        with self.assertRaises(TransportError):
            FFmpegChunker().extract_chunk("/tmp/in.mp3", Chunk(1, 0.0, 1.0), "/tmp/out.mp3")


if __name__ == "__main__":
    unittest.main()
