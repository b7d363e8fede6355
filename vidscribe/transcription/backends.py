"""Wire a speech-to-text backend into a ChunkedTranscriber from settings."""

from __future__ import annotations

import httpx

from vidscribe.config import Settings
from vidscribe.media.models import MB
from vidscribe.pipeline_config import TranscriptionBackend, TranscriptionConfig
from vidscribe.transcription.base import BaseTranscriptionClient, UploadLimits
from vidscribe.transcription.elevenlabs import GB, ElevenLabsClient
from vidscribe.transcription.openai_whisper import OpenAIWhisperClient
from vidscribe.transcription.orchestrator import ChunkedTranscriber

# Environment variable holding each backend's credential
API_KEY_ENV: dict[TranscriptionBackend, str] = {
    TranscriptionBackend.ELEVENLABS: "ELEVENLABS_API_KEY",
    TranscriptionBackend.OPENAI: "OPENAI_API_KEY",
}


def api_key_for(settings: Settings, backend: TranscriptionBackend) -> str:
    if backend is TranscriptionBackend.ELEVENLABS:
        return settings.elevenlabs_api_key
    return settings.openai_api_key


def build_client(
    settings: Settings,
    config: TranscriptionConfig,
    backend: TranscriptionBackend,
    http_client: httpx.Client | None = None,
) -> BaseTranscriptionClient:
    """Create the HTTP client for *backend* with its published upload limits."""
    if backend is TranscriptionBackend.ELEVENLABS:
        return ElevenLabsClient(
            settings.elevenlabs_api_key,
            config,
            url=settings.elevenlabs_api_url,
            limits=UploadLimits(
                max_upload_bytes=int(settings.elevenlabs_max_file_gb * GB),
                max_duration_seconds=settings.elevenlabs_max_duration_hours * 3600,
            ),
            timeout=settings.elevenlabs_timeout_seconds,
            http_client=http_client,
        )

    return OpenAIWhisperClient(
        settings.openai_api_key,
        config,
        url=settings.openai_transcription_url,
        limits=UploadLimits(max_upload_bytes=int(settings.openai_max_upload_mb * MB)),
        timeout=settings.openai_timeout_seconds,
        model=settings.openai_transcription_model,
        http_client=http_client,
    )


def build_transcriber(
    settings: Settings,
    config: TranscriptionConfig,
    backend: TranscriptionBackend | None = None,
    http_client: httpx.Client | None = None,
) -> ChunkedTranscriber:
    """Create a transcriber for *backend* (``settings.transcription_backend`` by default).

    Whisper uploads are capped at 25 MB, so oversized files are split into
    chunks; ElevenLabs accepts whole files up to its ceiling and rejects
    anything larger before upload.
    """
    backend = backend or settings.transcription_backend
    client = build_client(settings, config, backend, http_client)

    target_chunk_bytes = None
    if backend is TranscriptionBackend.OPENAI:
        target_chunk_bytes = int(settings.openai_chunk_mb * MB)

    return ChunkedTranscriber(
        client,
        target_chunk_bytes=target_chunk_bytes,
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path,
    )
