"""Extract an MP3 audio track from a video file with ffmpeg."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from vidscribe.exceptions import AudioExtractionError

logger = logging.getLogger(__name__)


def extract_audio(
    video_path: str | Path,
    audio_path: str | Path,
    ffmpeg_path: str = "ffmpeg",
) -> Path:
    """Convert *video_path* to an MP3 file at *audio_path*.

    ffmpeg writes to ``<audio_path>.part`` first; the file is renamed only
    after a successful run, so a later run never reuses a truncated MP3.

    Raises:
        AudioExtractionError: If ffmpeg cannot run or fails.
    """
    video_path = Path(video_path)
    audio_path = Path(audio_path)
    audio_path.parent.mkdir(parents=True, exist_ok=True)
    partial = audio_path.with_name(audio_path.name + ".part")

    # -vn: no video, libmp3lame: MP3 encoder, -f mp3 because of the .part suffix
    cmd = [
        ffmpeg_path,
        "-v", "error",
        "-y",
        "-i", str(video_path),
        "-vn",
        "-acodec", "libmp3lame",
        "-f", "mp3",
        str(partial),
    ]

    logger.info("Extracting audio: %s -> %s", video_path.name, audio_path.name)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise AudioExtractionError(video_path.name, e) from e

    if result.returncode != 0:
        partial.unlink(missing_ok=True)
        raise AudioExtractionError(
            video_path.name, RuntimeError(result.stderr.strip() or f"exit code {result.returncode}")
        )

    os.replace(partial, audio_path)
    logger.info("Audio extracted: %s", audio_path.name)
    return audio_path
