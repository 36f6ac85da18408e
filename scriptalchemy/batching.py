"""
scriptalchemy.batching - Duration cutoff and fixed-size batching.

Pipeline Stage 2: Trim segments to a duration budget and split them into
contiguous batches that bound the size of each labeling request.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from scriptalchemy.exceptions import DurationRangeError
from scriptalchemy.models import Segment

DEFAULT_BATCH_SIZE = 40

T = TypeVar("T")


def apply_duration_limit(segments: Sequence[Segment], limit_minutes: int) -> list[Segment]:
    """Keep segments starting before the limit.

    Args:
        segments: Ordered segments
        limit_minutes: Minutes to keep; 0 keeps everything

    Returns:
        Segments whose start is strictly before ``limit_minutes * 60``

    Raises:
        ValueError: If limit_minutes is negative
        DurationRangeError: If the limit leaves no segments
    """
    if limit_minutes < 0:
        raise ValueError(f"Duration limit must be >= 0, got {limit_minutes}")
    if limit_minutes == 0:
        return list(segments)

    limit_seconds = limit_minutes * 60
    kept = [seg for seg in segments if seg.start_seconds < limit_seconds]
    if not kept:
        raise DurationRangeError(limit_minutes)
    return kept


def chunk_segments(items: Sequence[T], batch_size: int = DEFAULT_BATCH_SIZE) -> list[list[T]]:
    """Split items into contiguous batches of at most batch_size."""
    if batch_size < 1:
        raise ValueError(f"Batch size must be >= 1, got {batch_size}")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


def prepare_batches(
    segments: Sequence[Segment],
    limit_minutes: int = 0,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> list[list[Segment]]:
    """Apply the duration limit, then batch what remains."""
    return chunk_segments(apply_duration_limit(segments, limit_minutes), batch_size)
