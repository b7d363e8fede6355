"""ElevenLabs Scribe speech-to-text client."""

from __future__ import annotations

from typing import Any

from vidscribe.transcription.base import BaseTranscriptionClient, form_value

GB = 1024 * 1024 * 1024


class ElevenLabsClient(BaseTranscriptionClient):
    """Whole-file uploads to ``/v1/speech-to-text`` (3 GB / 10 h ceiling)."""

    name = "ElevenLabs Scribe"

    def headers(self) -> dict[str, str]:
        return {"xi-api-key": self.api_key}

    def form_fields(self) -> dict[str, str]:
        cfg = self.config
        fields: dict[str, Any] = {
            "model_id": cfg.model_id,
            "diarize": cfg.diarize,
            "tag_audio_events": cfg.tag_audio_events,
            "timestamps_granularity": cfg.timestamps_granularity,
            "use_multi_channel": cfg.use_multi_channel,
            "file_format": cfg.file_format,
            "enable_logging": cfg.enable_logging,
            "webhook": cfg.webhook,
        }
        optional: dict[str, Any] = {
            "language_code": cfg.language_code,
            "num_speakers": cfg.num_speakers,
            "temperature": cfg.temperature,
            "seed": cfg.seed,
            "webhook_id": cfg.webhook_id,
        }
        # The API only accepts a threshold when it has to guess the speaker count
        if cfg.diarize and cfg.num_speakers is None:
            optional["diarization_threshold"] = cfg.diarization_threshold

        fields.update({k: v for k, v in optional.items() if v is not None})
        return {k: form_value(v) for k, v in fields.items()}

    def extract_text(self, payload: dict[str, Any]) -> str | None:
        text = super().extract_text(payload)
        if text is not None:
            return text

        # Multi-channel responses carry one transcript per channel
        transcripts = payload.get("transcripts")
        if isinstance(transcripts, list) and transcripts:
            parts = [t.get("text") for t in transcripts if isinstance(t, dict)]
            if all(isinstance(p, str) for p in parts):
                return "\n\n".join(parts)
        return None
