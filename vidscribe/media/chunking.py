"""Chunk planning for audio files that exceed an upload size limit."""

from __future__ import annotations

import math

from vidscribe.media.models import ChunkPlan


def plan_chunks(
    duration_seconds: float,
    size_bytes: int,
    target_chunk_bytes: int,
) -> ChunkPlan:
    """Split a file into roughly equal-duration chunks bounded by a byte budget.

    Chunk count is the number of *target_chunk_bytes* budgets needed to hold the
    whole file; each chunk gets an equal, whole-second share of the duration.
    Because the share is floored, the chunks may cover slightly less than the
    full duration and the segmenter can emit one short trailing segment.

    Args:
        duration_seconds: Total audio duration.
        size_bytes: File size on disk.
        target_chunk_bytes: Upper bound for the size of one chunk.

    Returns:
        A :class:`ChunkPlan`.

    Raises:
        ValueError: If any argument is not positive.
    """
    if target_chunk_bytes <= 0:
        raise ValueError(f"target_chunk_bytes must be positive, got {target_chunk_bytes}")
    if duration_seconds <= 0 or size_bytes <= 0:
        raise ValueError(
            f"duration and size must be positive, got {duration_seconds}s / {size_bytes} bytes"
        )

    chunk_count = math.ceil(size_bytes / target_chunk_bytes)
    chunk_duration = math.floor(duration_seconds / chunk_count)
    return ChunkPlan(chunk_count=chunk_count, chunk_duration_seconds=chunk_duration)
