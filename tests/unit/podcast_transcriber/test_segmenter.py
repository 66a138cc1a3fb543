#!/usr/bin/env python3
"""Unit tests for chunk planning."""

import unittest
from unittest.mock import Mock

import pytest

from podcast_transcriber import segmenter
from podcast_transcriber.exceptions import ProbeError
from podcast_transcriber.models import AudioAsset

pytestmark = [pytest.mark.unit]

MB = 1_000_000
LIMIT = 25 * MB


class TestComputeChunkCount(unittest.TestCase):
    def test_at_or_below_limit_is_single_chunk(self):
        self.assertEqual(segmenter.compute_chunk_count(LIMIT, LIMIT, 0.8), 1)
        self.assertEqual(segmenter.compute_chunk_count(1, LIMIT, 0.8), 1)

    def test_above_limit_uses_safety_factor(self):
        # 30 MB / (0.8 * 25 MB) = 1.5 -> 2 chunks
        self.assertEqual(segmenter.compute_chunk_count(30 * MB, LIMIT, 0.8), 2)
        # 60 MB / 20 MB = 3 -> 4 chunks
        self.assertEqual(segmenter.compute_chunk_count(60 * MB, LIMIT, 0.8), 4)

    def test_one_byte_over_limit_chunks(self):
        self.assertEqual(segmenter.compute_chunk_count(LIMIT + 1, LIMIT, 0.8), 2)

    def test_rejects_non_positive_parameters(self):
        with self.assertRaises(ValueError):
            segmenter.compute_chunk_count(30 * MB, 0, 0.8)
        with self.assertRaises(ValueError):
            segmenter.compute_chunk_count(30 * MB, LIMIT, 0)


class TestPlanChunks(unittest.TestCase):
    def test_thirty_megabytes_ten_minutes(self):
        chunks = list(segmenter.plan_chunks(30 * MB, 600.0, LIMIT, 0.8))

        self.assertEqual([c.index for c in chunks], [1, 2])
        self.assertEqual(chunks[0].start, 0.0)
        self.assertAlmostEqual(chunks[0].duration, 300.0)
        self.assertFalse(chunks[0].open_ended)
        self.assertAlmostEqual(chunks[1].start, 300.0)
        self.assertAlmostEqual(chunks[1].duration, 300.0)
        self.assertTrue(chunks[1].open_ended)

    def test_chunks_cover_duration_without_gaps(self):
        duration = 3601.7
        chunks = list(segmenter.plan_chunks(77 * MB, duration, LIMIT, 0.8))

        self.assertEqual(len(chunks), 4)
        self.assertEqual(chunks[0].start, 0.0)
        for previous, current in zip(chunks, chunks[1:]):
            self.assertAlmostEqual(previous.end, current.start)
            self.assertGreaterEqual(current.start, previous.start)
        self.assertAlmostEqual(chunks[-1].end, duration)
        self.assertEqual([c.open_ended for c in chunks], [False, False, False, True])

    def test_small_file_yields_one_full_chunk(self):
        chunks = list(segmenter.plan_chunks(10 * MB, 1234.5, LIMIT, 0.8))

        self.assertEqual(len(chunks), 1)
        self.assertEqual(chunks[0].start, 0.0)
        self.assertEqual(chunks[0].duration, 1234.5)
        self.assertFalse(chunks[0].open_ended)

    def test_non_positive_duration_raises_probe_error(self):
        with self.assertRaises(ProbeError):
            list(segmenter.plan_chunks(30 * MB, 0.0, LIMIT, 0.8))
        with self.assertRaises(ProbeError):
            list(segmenter.plan_chunks(30 * MB, -5.0, LIMIT, 0.8))


class TestSegmenter(unittest.TestCase):
    def setUp(self):
        self.chunker = Mock()
        self.chunker.probe_duration.return_value = 600.0
        self.segmenter = segmenter.Segmenter(self.chunker, LIMIT, 0.8)

    def test_needs_chunking(self):
        small = AudioAsset(source="a", path="/tmp/a.mp3", size_bytes=LIMIT)
        large = AudioAsset(source="b", path="/tmp/b.mp3", size_bytes=LIMIT + 1)

        self.assertFalse(self.segmenter.needs_chunking(small))
        self.assertTrue(self.segmenter.needs_chunking(large))

    def test_plan_probes_unknown_duration_once(self):
        asset = AudioAsset(source="b", path="/tmp/b.mp3", size_bytes=30 * MB)

        chunks = list(self.segmenter.plan(asset))

        self.chunker.probe_duration.assert_called_once_with("/tmp/b.mp3")
        self.assertEqual(asset.duration_seconds, 600.0)
        self.assertEqual(len(chunks), 2)

    def test_plan_uses_known_duration(self):
        asset = AudioAsset(source="b", path="/tmp/b.mp3", size_bytes=30 * MB, duration_seconds=90.0)

        chunks = list(self.segmenter.plan(asset))

        self.chunker.probe_duration.assert_not_called()
        self.assertAlmostEqual(chunks[-1].end, 90.0)

    def test_probe_error_propagates(self):
        self.chunker.probe_duration.side_effect = ProbeError("no duration", path="/tmp/b.mp3")
        asset = AudioAsset(source="b", path="/tmp/b.mp3", size_bytes=30 * MB)

        with self.assertRaises(ProbeError):
            self.segmenter.plan(asset)


if __name__ == "__main__":
    unittest.main()
