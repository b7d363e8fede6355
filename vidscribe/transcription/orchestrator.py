"""Transcription of one audio file, splitting it first when it is too large.

Job flow::

    PROBING -> SIZE_CHECK -> DIRECT_TRANSCRIBE ----------------------------> WRITING -> CLEANING_UP -> DONE
                          +-> SEGMENTING -> CHUNK_LOOP -> CONCATENATING -+

Any step can end in FAILED. Chunks are transcribed one at a time, in order.
A chunk whose upload fails is replaced by an error marker so the rest of the
recording still produces a (partial) transcript. The temporary chunk
directory is removed whatever the outcome.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from enum import StrEnum
from pathlib import Path

from vidscribe.exceptions import CleanupError, TranscriptionError
from vidscribe.media.chunking import plan_chunks
from vidscribe.media.models import AudioMetadata
from vidscribe.media.probe import probe_audio
from vidscribe.media.segmenter import segment_audio
from vidscribe.transcription.base import BaseTranscriptionClient

logger = logging.getLogger(__name__)

CHUNK_ERROR_MARKER = "[CHUNK TRANSCRIPTION ERROR: {name}]"
PART_SEPARATOR = "\n\n"


class JobState(StrEnum):
    """Steps of a single-file transcription job."""

    PROBING = "probing"
    SIZE_CHECK = "size_check"
    DIRECT_TRANSCRIBE = "direct_transcribe"
    SEGMENTING = "segmenting"
    CHUNK_LOOP = "chunk_loop"
    CONCATENATING = "concatenating"
    WRITING = "writing"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


def join_parts(parts: list[str]) -> str:
    """Concatenate transcript parts, in order, separated by a blank line."""
    return PART_SEPARATOR.join(parts)


class ChunkedTranscriber:
    """Drives probe, optional segmentation and upload(s) for one file at a time.

    Args:
        client: Speech-to-text client; its ``limits`` decide when to split.
        target_chunk_bytes: Byte budget per chunk. ``None`` disables
            splitting, so oversized files fail the client's pre-flight check.
        ffmpeg_path: ffmpeg binary used for segmenting.
        ffprobe_path: ffprobe binary used for probing.
        temp_root: Parent for chunk directories (system temp dir by default).
    """

    def __init__(
        self,
        client: BaseTranscriptionClient,
        *,
        target_chunk_bytes: int | None = None,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        temp_root: str | Path | None = None,
    ) -> None:
        if target_chunk_bytes is not None and target_chunk_bytes <= 0:
            raise ValueError(f"target_chunk_bytes must be positive, got {target_chunk_bytes}")
        self.client = client
        self.target_chunk_bytes = target_chunk_bytes
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.temp_root = temp_root

    def transcribe(self, audio_path: str | Path) -> str:
        """Return the transcript of *audio_path* without writing it anywhere."""
        return self._run(Path(audio_path), None)

    def transcribe_to_file(self, audio_path: str | Path, output_path: str | Path) -> Path:
        """Transcribe *audio_path* and write the result to *output_path* (UTF-8).

        Nothing is written if the job fails.
        """
        output_path = Path(output_path)
        self._run(Path(audio_path), output_path)
        return output_path

    def needs_segmentation(self, metadata: AudioMetadata) -> bool:
        return (
            self.target_chunk_bytes is not None
            and metadata.size_bytes > self.client.limits.max_upload_bytes
        )

    # ── internals ──────────────────────────────────────────────────────────

    def _run(self, path: Path, output_path: Path | None) -> str:
        temp_dir: Path | None = None
        state = JobState.PROBING
        try:
            metadata = probe_audio(path, self.ffprobe_path)
            logger.info("%s: %s", path.name, metadata.describe())

            state = JobState.SIZE_CHECK
            if self.needs_segmentation(metadata):
                logger.info(
                    "%s is too large (%.2f MB > %.2f MB), splitting into chunks",
                    path.name,
                    metadata.size_mb,
                    self.client.limits.max_upload_bytes / (1024 * 1024),
                )
                state = JobState.SEGMENTING
                temp_dir = self._make_temp_dir()
                plan = plan_chunks(
                    metadata.duration_seconds,
                    metadata.size_bytes,
                    self.target_chunk_bytes,  # type: ignore[arg-type]
                )
                chunks = segment_audio(path, temp_dir, plan, self.ffmpeg_path)

                state = JobState.CHUNK_LOOP
                parts = self._transcribe_chunks(chunks)

                state = JobState.CONCATENATING
                transcript = join_parts(parts)
            else:
                state = JobState.DIRECT_TRANSCRIBE
                transcript = self.client.transcribe(path, metadata)

            if output_path is not None:
                state = JobState.WRITING
                self._write_output(output_path, transcript)
                logger.info("Transcript saved to %s", output_path)

            logger.debug("%s: %s", path.name, JobState.DONE)
            return transcript
        except Exception:
            logger.debug("%s: %s while %s", path.name, JobState.FAILED, state)
            raise
        finally:
            if temp_dir is not None:
                logger.debug("%s: %s", path.name, JobState.CLEANING_UP)
                self._cleanup(temp_dir)

    def _transcribe_chunks(self, chunks: list[Path]) -> list[str]:
        parts: list[str] = []
        total = len(chunks)
        for i, chunk in enumerate(chunks, start=1):
            logger.info("Transcribing chunk %d of %d (%s)", i, total, chunk.name)
            try:
                parts.append(self.client.transcribe(chunk))
            except (TranscriptionError, OSError) as e:
                logger.error("Chunk %d of %d failed: %s", i, total, e)
                parts.append(CHUNK_ERROR_MARKER.format(name=chunk.name))
        return parts

    @staticmethod
    def _write_output(output_path: Path, transcript: str) -> None:
        # An existing transcript marks its source as done, so it must never be partial
        output_path.parent.mkdir(parents=True, exist_ok=True)
        partial = output_path.with_name(output_path.name + ".part")
        try:
            partial.write_text(transcript, encoding="utf-8")
            os.replace(partial, output_path)
        except OSError:
            partial.unlink(missing_ok=True)
            raise

    def _make_temp_dir(self) -> Path:
        prefix = f"vidscribe-chunks-{int(time.time() * 1000)}-"
        temp_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=self.temp_root))
        logger.info("Created temporary directory %s", temp_dir)
        return temp_dir

    def _cleanup(self, temp_dir: Path) -> None:
        try:
            shutil.rmtree(temp_dir)
            logger.info("Removed temporary files in %s", temp_dir)
        except OSError as e:
            logger.warning("%s: %s", CleanupError(str(temp_dir), e), e)
