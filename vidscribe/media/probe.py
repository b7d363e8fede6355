"""Read duration and size of a media file with ffprobe."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path

from vidscribe.exceptions import ProbeError
from vidscribe.media.models import AudioMetadata

logger = logging.getLogger(__name__)


def probe_audio(path: str | Path, ffprobe_path: str = "ffprobe") -> AudioMetadata:
    """Return the duration (seconds) and size (bytes) of *path*.

    Raises:
        ProbeError: If ffprobe cannot run, fails on the file, or its output
            lacks a positive duration or size.
    """
    path = Path(path)
    cmd = [
        ffprobe_path,
        "-v", "error",
        "-show_entries", "format=duration,size",
        "-of", "json",
        str(path),
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ProbeError(path.name, f"could not run {ffprobe_path}", e) from e

    if result.returncode != 0:
        raise ProbeError(path.name, result.stderr.strip() or f"exit code {result.returncode}")

    try:
        fmt = json.loads(result.stdout).get("format", {})
        duration = float(fmt["duration"])
        size = int(fmt["size"])
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ProbeError(path.name, "duration or size missing from ffprobe output", e) from e

    if duration <= 0 or size <= 0:
        raise ProbeError(path.name, f"invalid duration/size: {duration}s / {size} bytes")

    metadata = AudioMetadata(duration_seconds=duration, size_bytes=size)
    logger.debug("Probed %s: %s", path.name, metadata.describe())
    return metadata
