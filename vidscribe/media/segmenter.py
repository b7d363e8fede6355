"""Split an audio file into time-bounded segments with ffmpeg (codec copy)."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from vidscribe.exceptions import SegmentationError
from vidscribe.media.models import ChunkPlan

logger = logging.getLogger(__name__)

CHUNK_PREFIX = "chunk_"


def chunk_file_name(index: int, suffix: str) -> str:
    """Zero-padded chunk name, e.g. ``chunk_007.mp3``."""
    return f"{CHUNK_PREFIX}{index:03d}{suffix}"


def _collect_chunks(output_dir: Path, suffix: str) -> dict[int, Path]:
    pattern = re.compile(rf"^{CHUNK_PREFIX}(\d+){re.escape(suffix)}$")
    found: dict[int, Path] = {}
    for entry in output_dir.iterdir():
        match = pattern.match(entry.name)
        if match and entry.is_file():
            found[int(match.group(1))] = entry
    return found


def segment_audio(
    source: str | Path,
    output_dir: str | Path,
    plan: ChunkPlan,
    ffmpeg_path: str = "ffmpeg",
) -> list[Path]:
    """Cut *source* into ``plan.chunk_count`` segments inside *output_dir*.

    The stream is copied, not re-encoded, and timestamps restart at zero in
    every segment. Expected segments that ffmpeg did not write are logged; a
    trailing remainder segment past the planned count is kept so the whole
    recording gets transcribed.

    Returns:
        Chunk paths ordered by chunk index.

    Raises:
        SegmentationError: If ffmpeg fails or not a single chunk was written.
    """
    source = Path(source)
    output_dir = Path(output_dir)
    suffix = source.suffix

    if plan.chunk_duration_seconds < 1:
        raise SegmentationError(
            source.name, f"chunk duration {plan.chunk_duration_seconds}s is too short"
        )

    logger.info(
        "Splitting %s into %d parts (about %d s each)",
        source.name,
        plan.chunk_count,
        plan.chunk_duration_seconds,
    )

    cmd = [
        ffmpeg_path,
        "-v", "error",
        "-y",
        "-i", str(source),
        "-f", "segment",
        "-segment_time", str(plan.chunk_duration_seconds),
        "-c", "copy",
        "-reset_timestamps", "1",
        str(output_dir / f"{CHUNK_PREFIX}%03d{suffix}"),
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise SegmentationError(source.name, f"could not run {ffmpeg_path}", e) from e

    if result.returncode != 0:
        raise SegmentationError(
            source.name, result.stderr.strip() or f"ffmpeg exit code {result.returncode}"
        )

    found = _collect_chunks(output_dir, suffix)

    for index in range(plan.chunk_count):
        if index not in found:
            logger.warning("Expected chunk not found: %s", chunk_file_name(index, suffix))

    extra = sorted(i for i in found if i >= plan.chunk_count)
    if extra:
        logger.info(
            "ffmpeg wrote %d segment(s) beyond the planned %d; keeping them",
            len(extra),
            plan.chunk_count,
        )

    if not found:
        raise SegmentationError(source.name, "no chunks were created")

    chunks = [found[i] for i in sorted(found)]
    logger.info("Split %s into %d parts", source.name, len(chunks))
    return chunks
