"""Custom exceptions for the transcription pipeline."""

from __future__ import annotations


class VidscribeError(Exception):
    """Base class for all pipeline errors."""


class ProbeError(VidscribeError):
    """Raised when media metadata (duration, size) cannot be read."""

    def __init__(self, file_name: str, reason: str, cause: Exception | None = None):
        self.file_name = file_name
        self.reason = reason
        self.cause = cause
        super().__init__(f"Failed to probe '{file_name}': {reason}")


class AudioExtractionError(VidscribeError):
    """Raised when extracting the audio track from a video fails."""

    def __init__(self, file_name: str, cause: Exception | None = None):
        self.file_name = file_name
        self.cause = cause
        super().__init__(f"Failed to extract audio from '{file_name}'")


class SegmentationError(VidscribeError):
    """Raised when splitting an audio file produced no usable segments."""

    def __init__(self, file_name: str, reason: str, cause: Exception | None = None):
        self.file_name = file_name
        self.reason = reason
        self.cause = cause
        super().__init__(f"Failed to segment '{file_name}': {reason}")


class TranscriptionError(VidscribeError):
    """Raised when uploading audio for transcription fails."""

    def __init__(
        self,
        file_name: str,
        cause: Exception | None = None,
        message: str | None = None,
    ):
        self.file_name = file_name
        self.cause = cause
        super().__init__(message or f"Failed to transcribe audio file '{file_name}'")


class UploadError(TranscriptionError):
    """The request got no response (network failure, or the audio could not be read)."""

    def __init__(self, file_name: str, cause: Exception | None = None):
        super().__init__(
            file_name,
            cause,
            message=f"No response from the transcription service for '{file_name}': {cause}",
        )


class ApiError(TranscriptionError):
    """The service answered with an error status or a malformed body."""

    def __init__(
        self,
        file_name: str,
        status_code: int,
        body: str,
        reason: str = "error response",
    ):
        self.status_code = status_code
        self.body = body
        self.reason = reason
        super().__init__(
            file_name,
            message=(
                f"Transcription API {reason} for '{file_name}' "
                f"(status {status_code}): {body}"
            ),
        )


class LimitExceededError(VidscribeError):
    """Raised by the pre-flight check when a file is over the service limits."""

    def __init__(self, file_name: str, measure: str, actual: float, limit: float, unit: str):
        self.file_name = file_name
        self.measure = measure
        self.actual = actual
        self.limit = limit
        super().__init__(
            f"'{file_name}' exceeds the {measure} limit: "
            f"{actual:.2f}{unit} > {limit:g}{unit}"
        )


class CleanupError(VidscribeError):
    """Removing temporary chunk files failed. Logged, never raised."""

    def __init__(self, path: str, cause: Exception | None = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to remove temporary directory '{path}'")


class CompletionError(VidscribeError):
    """Raised when the text-completion API fails or returns no content."""

    def __init__(self, source: str, reason: str, cause: Exception | None = None):
        self.source = source
        self.reason = reason
        self.cause = cause
        super().__init__(f"{source} completion failed: {reason}")
