"""OpenAI Whisper transcription client (25 MB upload limit)."""

from __future__ import annotations

from typing import Any

from vidscribe.pipeline_config import TranscriptionConfig
from vidscribe.transcription.base import BaseTranscriptionClient, UploadLimits, form_value


class OpenAIWhisperClient(BaseTranscriptionClient):
    """Uploads to ``/v1/audio/transcriptions``.

    Whisper ignores the diarization and event-tagging options; only the
    language and temperature are forwarded.
    """

    name = "OpenAI Whisper"

    def __init__(
        self,
        api_key: str,
        config: TranscriptionConfig,
        *,
        url: str,
        limits: UploadLimits,
        timeout: float,
        model: str = "whisper-1",
        **kwargs: Any,
    ) -> None:
        super().__init__(api_key, config, url=url, limits=limits, timeout=timeout, **kwargs)
        self.model = model

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def form_fields(self) -> dict[str, str]:
        fields: dict[str, Any] = {"model": self.model, "response_format": "json"}
        if self.config.language_code is not None:
            fields["language"] = self.config.language_code
        if self.config.temperature is not None:
            fields["temperature"] = self.config.temperature
        return {k: form_value(v) for k, v in fields.items()}
