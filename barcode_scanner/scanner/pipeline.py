"""
==============================================================================
Frame Decode Pipeline
==============================================================================

Heuristic frame-to-digits decoder for linear barcodes.

Stages:
-------
    Frame (H x W x 3, uint8)
        │  to_grayscale()   mean of the three channels, truncated
        ▼
    Intensity map (H x W, uint8)
        │  binarize()       0 = bar (< threshold), 1 = space
        ▼
    Binary signal (H x W, {0,1})
        │  extract_runs()   run lengths along one scan line
        ▼
    Run sequence [int, ...]
        │  decode_runs()    groups of four runs → one digit each
        ▼
    Candidate code ("digits", len >= 8) or no candidate

Decoding Rule:
-------------
unit = min(runs); for each non-overlapping group of four runs,
digit = round(sum(group) / unit) - 4. Digits outside 0-9 are skipped and
a trailing group of fewer than four runs is dropped.

This is not a symbology decoder: no start/stop guards, no checksum.
None of these functions raise for unusable frames; failures come back as
a DecodeResult status.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np


# Module logger
logger = logging.getLogger(__name__)


DEFAULT_THRESHOLD = 128
MIN_RUNS = 30
MIN_CODE_LENGTH = 8
GROUP_SIZE = 4


class DecodeStatus(str, enum.Enum):
    """Outcome of one decode attempt."""

    DECODED = "decoded"
    EMPTY_FRAME = "empty_frame"
    INSUFFICIENT_PATTERN = "insufficient_pattern"
    DECODE_REJECTED = "decode_rejected"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DecodeResult:
    """
    Result of decoding one frame or run sequence.

    Attributes:
        status: Decode outcome
        code: Candidate code when status is DECODED, else None
        run_count: Number of runs seen on the scan line
        digits: Digits produced before the length check
    """

    status: DecodeStatus
    code: Optional[str] = None
    run_count: int = 0
    digits: str = ""

    @property
    def ok(self) -> bool:
        return self.status == DecodeStatus.DECODED


# =============================================================================
# STAGES
# =============================================================================

def to_grayscale(frame: np.ndarray) -> np.ndarray:
    """
    Reduce a color frame to single-channel intensity.

    Each output pixel is the arithmetic mean of the pixel's three channels,
    truncated to an integer.

    Args:
        frame: Array of shape (height, width, 3)

    Returns:
        uint8 array of shape (height, width)
    """
    frame = np.asarray(frame)
    if frame.size == 0:
        return np.zeros(frame.shape[:2], dtype=np.uint8)

    # Already single channel
    if frame.ndim == 2:
        return frame.astype(np.uint8)

    summed = frame[..., :3].astype(np.uint16).sum(axis=2)
    return (summed // 3).astype(np.uint8)


def binarize(intensity: np.ndarray, threshold: int = DEFAULT_THRESHOLD) -> np.ndarray:
    """
    Two-level signal: 0 (bar) where intensity < threshold, else 1 (space).
    """
    return (np.asarray(intensity) >= threshold).astype(np.uint8)


def extract_runs(
    binary: np.ndarray,
    row: Optional[int] = None,
    flush_trailing: bool = False
) -> List[int]:
    """
    Run lengths along one horizontal scan line.

    The first run takes the color of column 0. Each color change closes
    the current run. The run still open at the right edge is only
    appended when flush_trailing is set.

    Args:
        binary: Binary signal of shape (height, width)
        row: Scan line index (default: height // 2)
        flush_trailing: Append the final run

    Returns:
        List of positive run lengths (empty for empty input)
    """
    binary = np.asarray(binary)
    if binary.ndim != 2 or binary.size == 0:
        return []

    height = binary.shape[0]
    if row is None:
        row = height // 2
    if not 0 <= row < height:
        logger.debug(f"Scan row {row} outside frame height {height}")
        return []

    line = binary[row]

    # Indexes where a new run begins
    starts = np.concatenate(([0], np.flatnonzero(np.diff(line)) + 1))
    runs = np.diff(starts).tolist()

    if flush_trailing:
        runs.append(int(line.size - starts[-1]))

    return runs


def _round_half_up(value: float) -> int:
    # value is never negative here (sums and unit are positive)
    return int(math.floor(value + 0.5))


def decode_runs(
    runs: Sequence[int],
    min_runs: int = MIN_RUNS,
    min_code_length: int = MIN_CODE_LENGTH
) -> DecodeResult:
    """
    Map groups of four run lengths to decimal digits.

    Args:
        runs: Run sequence from extract_runs()
        min_runs: Fewer runs than this is an insufficient pattern
        min_code_length: Fewer digits than this rejects the decode

    Returns:
        DecodeResult with the candidate code on success
    """
    run_count = len(runs)
    if run_count < min_runs:
        return DecodeResult(DecodeStatus.INSUFFICIENT_PATTERN, run_count=run_count)

    unit = min(runs)
    if unit <= 0:
        return DecodeResult(DecodeStatus.INSUFFICIENT_PATTERN, run_count=run_count)

    digits = []
    usable = run_count - run_count % GROUP_SIZE

    for start in range(0, usable, GROUP_SIZE):
        group_sum = sum(runs[start:start + GROUP_SIZE])
        digit = _round_half_up(group_sum / unit) - GROUP_SIZE
        if 0 <= digit <= 9:
            digits.append(str(digit))

    text = "".join(digits)
    if len(text) < min_code_length:
        return DecodeResult(DecodeStatus.DECODE_REJECTED, run_count=run_count, digits=text)

    return DecodeResult(DecodeStatus.DECODED, code=text, run_count=run_count, digits=text)


# =============================================================================
# PIPELINE
# =============================================================================

class DecodePipeline:
    """
    Full frame-to-code pipeline with its tuning parameters.

    Example:
        >>> pipeline = DecodePipeline.from_settings(get_settings())
        >>> result = pipeline.decode(frame)
        >>> if result.ok:
        ...     print(result.code)
    """

    def __init__(
        self,
        threshold: int = DEFAULT_THRESHOLD,
        min_runs: int = MIN_RUNS,
        min_code_length: int = MIN_CODE_LENGTH,
        scan_row: Optional[int] = None,
        flush_trailing_run: bool = False
    ) -> None:
        if not 0 <= threshold <= 255:
            raise ValueError(f"Threshold must be in [0, 255], got {threshold}")

        self.threshold = threshold
        self.min_runs = min_runs
        self.min_code_length = min_code_length
        self.scan_row = scan_row
        self.flush_trailing_run = flush_trailing_run

    @classmethod
    def from_settings(cls, settings) -> "DecodePipeline":
        """Build a pipeline from application Settings."""
        return cls(
            threshold=settings.scan_threshold,
            min_runs=settings.scan_min_runs,
            min_code_length=settings.scan_min_code_length,
            scan_row=settings.scan_row,
            flush_trailing_run=settings.scan_flush_trailing_run,
        )

    def runs_for(self, frame: np.ndarray) -> List[int]:
        """Grayscale, threshold and extract runs for one frame."""
        intensity = to_grayscale(frame)
        binary = binarize(intensity, self.threshold)
        return extract_runs(binary, self.scan_row, self.flush_trailing_run)

    def decode(self, frame: Optional[np.ndarray]) -> DecodeResult:
        """Run every stage on one frame."""
        if frame is None or np.asarray(frame).size == 0:
            return DecodeResult(DecodeStatus.EMPTY_FRAME)

        runs = self.runs_for(frame)
        result = decode_runs(runs, self.min_runs, self.min_code_length)

        if result.ok:
            logger.debug(f"Decoded {result.code} from {result.run_count} runs")
        else:
            logger.debug(f"No candidate: {result.status} ({result.run_count} runs)")

        return result

    def __repr__(self) -> str:
        return (
            f"DecodePipeline(threshold={self.threshold}, "
            f"min_runs={self.min_runs}, "
            f"min_code_length={self.min_code_length})"
        )
