"""Data models for the media layer."""

from __future__ import annotations

from dataclasses import dataclass

MB = 1024 * 1024


@dataclass(frozen=True)
class AudioMetadata:
    """Duration and size of a media file as reported by ffprobe."""

    duration_seconds: float
    size_bytes: int

    @property
    def size_mb(self) -> float:
        return self.size_bytes / MB

    def describe(self) -> str:
        """Human-readable summary, e.g. ``"30.00 MB, 90m 0s"``."""
        minutes, seconds = divmod(self.duration_seconds, 60)
        return f"{self.size_mb:.2f} MB, {int(minutes)}m {round(seconds)}s"


@dataclass(frozen=True)
class ChunkPlan:
    """How many segments to cut and how long each one should be."""

    chunk_count: int
    chunk_duration_seconds: int
