"""
==============================================================================
Decode Pipeline Tests
==============================================================================

Tests for grayscale reduction, thresholding, run extraction and the
group-of-four digit decoder.

==============================================================================
"""

import numpy as np
import pytest

from barcode_scanner.scanner.pipeline import (
    DecodePipeline,
    DecodeStatus,
    binarize,
    decode_runs,
    extract_runs,
    to_grayscale,
)


class TestGrayscale:
    """Tests for to_grayscale()."""

    def test_mean_is_truncated(self):
        frame = np.array([[[10, 20, 31]]], dtype=np.uint8)
        assert to_grayscale(frame)[0, 0] == 20

    def test_no_overflow_on_white(self):
        frame = np.full((2, 3, 3), 255, dtype=np.uint8)
        gray = to_grayscale(frame)
        assert gray.shape == (2, 3)
        assert (gray == 255).all()

    def test_single_channel_passes_through(self):
        frame = np.array([[0, 128, 255]], dtype=np.uint8)
        np.testing.assert_array_equal(to_grayscale(frame), frame)

    def test_empty_frame(self):
        gray = to_grayscale(np.zeros((0, 0, 3), dtype=np.uint8))
        assert gray.size == 0


class TestBinarize:
    """Tests for binarize()."""

    def test_threshold_is_inclusive_for_space(self):
        intensity = np.array([[0, 127, 128, 255]], dtype=np.uint8)
        np.testing.assert_array_equal(binarize(intensity), [[0, 0, 1, 1]])

    def test_custom_threshold(self):
        intensity = np.array([[50, 60]], dtype=np.uint8)
        np.testing.assert_array_equal(binarize(intensity, threshold=55), [[0, 1]])


class TestExtractRuns:
    """Tests for extract_runs()."""

    def test_trailing_run_is_not_counted(self):
        binary = np.array([[0, 0, 1, 1, 1, 0]], dtype=np.uint8)
        assert extract_runs(binary) == [2, 3]

    def test_flush_trailing_run(self):
        binary = np.array([[0, 0, 1, 1, 1, 0]], dtype=np.uint8)
        assert extract_runs(binary, flush_trailing=True) == [2, 3, 1]

    def test_uniform_line_has_no_closed_runs(self):
        binary = np.ones((3, 10), dtype=np.uint8)
        assert extract_runs(binary) == []

    def test_middle_row_by_default(self):
        binary = np.array([
            [1, 1, 1, 1],
            [0, 1, 0, 0],
            [1, 1, 1, 1],
        ], dtype=np.uint8)
        assert extract_runs(binary) == [1, 1]

    def test_row_out_of_range(self):
        binary = np.zeros((2, 4), dtype=np.uint8)
        assert extract_runs(binary, row=5) == []

    def test_empty_input(self):
        assert extract_runs(np.zeros((0, 0), dtype=np.uint8)) == []


class TestDecodeRuns:
    """Tests for decode_runs()."""

    def test_thirty_two_equal_runs_decode_to_eight_zeros(self):
        result = decode_runs([3] * 32)
        assert result.status == DecodeStatus.DECODED
        assert result.code == "00000000"
        assert len(result.code) == 8

    def test_twenty_nine_runs_is_insufficient(self):
        result = decode_runs([3] * 29)
        assert result.status == DecodeStatus.INSUFFICIENT_PATTERN
        assert result.code is None
        assert result.run_count == 29

    def test_seven_digits_is_rejected(self):
        # 30 runs → 7 full groups, remainder of 2 dropped
        result = decode_runs([1] * 30)
        assert result.status == DecodeStatus.DECODE_REJECTED
        assert result.digits == "0000000"

    def test_remainder_group_dropped(self):
        result = decode_runs([1] * 34)
        assert result.code == "00000000"

    def test_digit_values(self):
        runs = []
        for digit in range(10):
            runs.extend([1, 1, 1, 1 + digit])
        assert decode_runs(runs).code == "0123456789"

    def test_out_of_range_digit_skipped(self):
        runs = [1, 1, 1, 1] * 8 + [1, 1, 1, 11]
        result = decode_runs(runs)
        assert result.code == "00000000"

    def test_rounds_half_up(self):
        # 9 / 2 = 4.5 → 5 → digit 1
        runs = [2, 2, 2, 3] + [2, 2, 2, 2] * 7
        assert decode_runs(runs).code == "10000000"

    def test_deterministic(self):
        runs = [2, 3, 2, 5, 4, 2, 2, 6] * 5
        assert decode_runs(runs) == decode_runs(list(runs))


class TestDecodePipeline:
    """Tests for the full frame → code pipeline."""

    def test_decodes_synthetic_frame(self, barcode_frame):
        pipeline = DecodePipeline()
        result = pipeline.decode(barcode_frame("1234567890123"))
        assert result.ok
        assert result.code == "1234567890123"

    def test_equal_width_frame(self, frame_from_runs):
        # 32 counted runs plus the trailing run
        frame = frame_from_runs([4] * 33)
        assert DecodePipeline().decode(frame).code == "00000000"

    def test_flush_trailing_counts_last_run(self, frame_from_runs):
        frame = frame_from_runs([4] * 32)
        assert DecodePipeline().decode(frame).status == DecodeStatus.DECODE_REJECTED
        assert DecodePipeline(flush_trailing_run=True).decode(frame).code == "00000000"

    def test_blank_frame_is_insufficient(self, blank_frame):
        result = DecodePipeline().decode(blank_frame)
        assert result.status == DecodeStatus.INSUFFICIENT_PATTERN

    def test_none_frame(self):
        assert DecodePipeline().decode(None).status == DecodeStatus.EMPTY_FRAME

    def test_empty_frame(self):
        frame = np.zeros((0, 0, 3), dtype=np.uint8)
        assert DecodePipeline().decode(frame).status == DecodeStatus.EMPTY_FRAME

    def test_threshold_shifts_bars(self, frame_from_runs):
        # Dark runs at 100: bars at 128, all space at 90
        frame = frame_from_runs([4] * 33, dark=100)
        assert DecodePipeline(threshold=128).decode(frame).ok
        assert not DecodePipeline(threshold=90).decode(frame).ok

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            DecodePipeline(threshold=300)

    def test_from_settings(self):
        from barcode_scanner.config import get_settings

        pipeline = DecodePipeline.from_settings(get_settings())
        assert pipeline.threshold == 128
        assert pipeline.min_runs == 30
        assert pipeline.min_code_length == 8
