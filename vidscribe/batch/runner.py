"""Batch driver: video folder -> MP3 -> transcript, one file at a time.

A transcript file that already exists marks its source as done; re-running a
batch only redoes files that previously failed or were skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from vidscribe.batch.decisions import (
    AutoDecider,
    BatchEvent,
    Decider,
    Decision,
    LoggingReporter,
    Reporter,
)
from vidscribe.exceptions import (
    ApiError,
    LimitExceededError,
    UploadError,
    VidscribeError,
)
from vidscribe.media.extract import extract_audio
from vidscribe.media.models import MB
from vidscribe.transcription.orchestrator import ChunkedTranscriber

logger = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    """Counts collected over one batch run."""

    total: int
    processed: int = 0
    already_done: int = 0
    skipped: int = 0
    failed: int = 0
    exited: bool = False


def ensure_directories(*dirs: str | Path) -> None:
    """Create any missing folder."""
    for d in dirs:
        path = Path(d)
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            logger.info("Created folder %s", path)


def list_video_files(video_dir: str | Path, extensions: Iterable[str]) -> list[Path]:
    """Return video files directly inside *video_dir*, sorted by name."""
    video_dir = Path(video_dir)
    if not video_dir.is_dir():
        logger.error("Folder %s does not exist", video_dir)
        return []

    allowed = {e.lower() for e in extensions}
    return sorted(p for p in video_dir.iterdir() if p.is_file() and p.suffix.lower() in allowed)


def transcript_path_for(source: Path, text_dir: Path | None = None) -> Path:
    """``<text_dir>/<stem>.txt``, or beside *source* when *text_dir* is None."""
    return (text_dir or source.parent) / f"{source.stem}.txt"


def log_failure(prefix: str, file_name: str, exc: BaseException) -> None:
    """Log a per-file failure with whatever detail the error carries."""
    if isinstance(exc, ApiError):
        logger.error(
            "%s Failed to process %s: API status %s, response: %s",
            prefix,
            file_name,
            exc.status_code,
            exc.body,
        )
    elif isinstance(exc, UploadError):
        logger.error(
            "%s Failed to process %s: network error or no response from the service (%s)",
            prefix,
            file_name,
            exc.cause,
        )
    elif isinstance(exc, LimitExceededError):
        logger.error("%s Failed to process %s: %s", prefix, file_name, exc)
    else:
        logger.error("%s Failed to process %s: %s", prefix, file_name, exc, exc_info=exc)


def process_video_file(
    video_path: Path,
    *,
    audio_dir: Path,
    text_dir: Path,
    transcriber: ChunkedTranscriber,
    ffmpeg_path: str = "ffmpeg",
    prefix: str = "",
) -> bool:
    """Extract audio (unless already extracted) and transcribe one video.

    Returns:
        ``False`` if the transcript already existed and nothing was done.
    """
    text_path = transcript_path_for(video_path, text_dir)
    if text_path.exists():
        logger.info("%s Already processed, skipping: %s", prefix, video_path.name)
        return False

    audio_path = audio_dir / f"{video_path.stem}.mp3"
    if audio_path.exists():
        size_mb = audio_path.stat().st_size / MB
        logger.info(
            "%s Audio already extracted: %s (%.2f MB)", prefix, audio_path.name, size_mb
        )
    else:
        extract_audio(video_path, audio_path, ffmpeg_path)

    transcriber.transcribe_to_file(audio_path, text_path)
    return True


def run_video_batch(
    video_files: list[Path],
    *,
    audio_dir: Path,
    text_dir: Path,
    transcriber: ChunkedTranscriber,
    ffmpeg_path: str = "ffmpeg",
    decider: Decider | None = None,
    reporter: Reporter | None = None,
) -> BatchSummary:
    """Process *video_files* sequentially.

    Before each file the *decider* chooses to continue, skip it or stop the
    batch. A failing file is logged and the loop moves on.
    """
    decider = decider or AutoDecider()
    reporter = reporter or LoggingReporter()
    total = len(video_files)
    summary = BatchSummary(total=total)

    for i, video in enumerate(video_files, start=1):
        prefix = f"[{i}/{total}]"
        choice = decider.decide(video.name, i, total)

        if choice is Decision.EXIT:
            summary.exited = True
            reporter.report(BatchEvent.EXITED, video.name, i, total, "stopped by user")
            break
        if choice is Decision.SKIP:
            summary.skipped += 1
            reporter.report(BatchEvent.SKIPPED, video.name, i, total)
            continue

        reporter.report(BatchEvent.STARTED, video.name, i, total)
        try:
            done = process_video_file(
                video,
                audio_dir=audio_dir,
                text_dir=text_dir,
                transcriber=transcriber,
                ffmpeg_path=ffmpeg_path,
                prefix=prefix,
            )
        except (VidscribeError, OSError) as e:
            summary.failed += 1
            log_failure(prefix, video.name, e)
            reporter.report(BatchEvent.FAILED, video.name, i, total, str(e))
            continue

        if done:
            summary.processed += 1
            reporter.report(BatchEvent.DONE, video.name, i, total)
        else:
            summary.already_done += 1
            reporter.report(BatchEvent.ALREADY_DONE, video.name, i, total)

    return summary


def run_file_batch(
    audio_files: list[Path],
    transcriber: ChunkedTranscriber,
    reporter: Reporter | None = None,
) -> BatchSummary:
    """Transcribe an explicit list of audio files, writing each ``.txt`` beside its source."""
    reporter = reporter or LoggingReporter()
    total = len(audio_files)
    summary = BatchSummary(total=total)

    for i, audio in enumerate(audio_files, start=1):
        prefix = f"[{i}/{total}]"
        if not audio.is_file():
            summary.failed += 1
            reporter.report(BatchEvent.FAILED, audio.name, i, total, f"file not found: {audio}")
            continue

        text_path = transcript_path_for(audio)
        if text_path.exists():
            summary.already_done += 1
            reporter.report(BatchEvent.ALREADY_DONE, audio.name, i, total)
            continue

        reporter.report(BatchEvent.STARTED, audio.name, i, total)
        try:
            transcriber.transcribe_to_file(audio, text_path)
        except (VidscribeError, OSError) as e:
            summary.failed += 1
            log_failure(prefix, audio.name, e)
            reporter.report(BatchEvent.FAILED, audio.name, i, total, str(e))
            continue

        summary.processed += 1
        reporter.report(BatchEvent.DONE, audio.name, i, total)

    return summary
