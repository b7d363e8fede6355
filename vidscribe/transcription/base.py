"""Shared multipart-upload logic for speech-to-text HTTP clients."""

from __future__ import annotations

import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import httpx

from vidscribe.exceptions import ApiError, LimitExceededError, UploadError
from vidscribe.media.models import MB, AudioMetadata
from vidscribe.pipeline_config import TranscriptionConfig

logger = logging.getLogger(__name__)

# Error bodies are echoed into logs; keep them readable
MAX_ERROR_BODY_CHARS = 2000


@dataclass(frozen=True)
class UploadLimits:
    """Published ceilings of a transcription service for a single upload."""

    max_upload_bytes: int
    max_duration_seconds: float | None = None


def form_value(value: Any) -> str:
    """Render a config value as a multipart text field."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class BaseTranscriptionClient(ABC):
    """Uploads one audio file and returns the transcript text.

    Subclasses provide the endpoint-specific headers, form fields and response
    parsing. Pass *http_client* to reuse a connection pool or to inject a mock
    transport in tests; otherwise a short-lived client is opened per upload.
    """

    name = "transcription"

    def __init__(
        self,
        api_key: str,
        config: TranscriptionConfig,
        *,
        url: str,
        limits: UploadLimits,
        timeout: float,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.config = config
        self.url = url
        self.limits = limits
        self.timeout = timeout
        self._http_client = http_client

    # ── hooks ──────────────────────────────────────────────────────────────

    @abstractmethod
    def headers(self) -> dict[str, str]:
        ...

    @abstractmethod
    def form_fields(self) -> dict[str, str]:
        ...

    def extract_text(self, payload: dict[str, Any]) -> str | None:
        text = payload.get("text")
        return text if isinstance(text, str) else None

    # ── public API ─────────────────────────────────────────────────────────

    def check_limits(self, file_name: str, metadata: AudioMetadata) -> None:
        """Reject a file before upload if it is over the service limits.

        Raises:
            LimitExceededError: If size or duration is above the ceiling.
        """
        if metadata.size_bytes > self.limits.max_upload_bytes:
            raise LimitExceededError(
                file_name,
                "size",
                metadata.size_bytes / MB,
                self.limits.max_upload_bytes / MB,
                "MB",
            )
        max_duration = self.limits.max_duration_seconds
        if max_duration is not None and metadata.duration_seconds > max_duration:
            raise LimitExceededError(
                file_name,
                "duration",
                metadata.duration_seconds / 3600,
                max_duration / 3600,
                "h",
            )

    def transcribe(self, audio_path: str | Path, metadata: AudioMetadata | None = None) -> str:
        """Upload *audio_path* and return its transcript.

        When *metadata* is supplied the pre-flight limit check runs first and
        an oversized file never reaches the network.

        Raises:
            LimitExceededError: Pre-flight check failed.
            UploadError: No response (connection error, timeout) or the
                audio file could not be read.
            ApiError: Error status or malformed response body.
        """
        path = Path(audio_path)
        if metadata is not None:
            self.check_limits(path.name, metadata)

        logger.info("Uploading %s to %s", path.name, self.name)
        response = self._post(path)
        text = self._parse_text(path.name, response)
        logger.info("Transcribed %s (%d characters)", path.name, len(text))
        return text

    # ── internals ──────────────────────────────────────────────────────────

    def _post(self, path: Path) -> httpx.Response:
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            with path.open("rb") as fh:
                request_kwargs: dict[str, Any] = {
                    "headers": self.headers(),
                    "data": self.form_fields(),
                    "files": {"file": (path.name, fh, mime_type)},
                    "timeout": self.timeout,
                }
                if self._http_client is not None:
                    response = self._http_client.post(self.url, **request_kwargs)
                else:
                    with httpx.Client() as client:
                        response = client.post(self.url, **request_kwargs)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text[:MAX_ERROR_BODY_CHARS]
            raise ApiError(path.name, e.response.status_code, body) from e
        except (httpx.RequestError, OSError) as e:
            # unreadable audio counts as a failed upload
            raise UploadError(path.name, e) from e
        return response

    def _parse_text(self, file_name: str, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError as e:
            raise ApiError(
                file_name,
                response.status_code,
                response.text[:MAX_ERROR_BODY_CHARS],
                reason="returned invalid JSON",
            ) from e

        text = self.extract_text(payload) if isinstance(payload, dict) else None
        if text is None:
            raise ApiError(
                file_name,
                response.status_code,
                response.text[:MAX_ERROR_BODY_CHARS],
                reason="response has no transcript text",
            )
        return text
