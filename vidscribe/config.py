from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings

from vidscribe.pipeline_config import (
    CompletionProvider,
    TimestampsGranularity,
    TranscriptionBackend,
)


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    elevenlabs_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""  # Only needed when completion_provider=anthropic

    # Folders
    video_dir: str = "./video"
    audio_dir: str = "./audio"
    text_dir: str = "./text"
    video_extensions: list[str] = [".mp4", ".mov"]

    # External binaries
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Transcription backend
    transcription_backend: TranscriptionBackend = TranscriptionBackend.ELEVENLABS

    # ElevenLabs Scribe
    elevenlabs_api_url: str = "https://api.elevenlabs.io/v1/speech-to-text"
    elevenlabs_max_file_gb: float = 3
    elevenlabs_max_duration_hours: float = 10
    elevenlabs_timeout_seconds: float = 1200

    # OpenAI Whisper
    openai_transcription_url: str = "https://api.openai.com/v1/audio/transcriptions"
    openai_transcription_model: str = "whisper-1"
    openai_max_upload_mb: float = 25
    openai_chunk_mb: float = 20  # slightly under the upload limit
    openai_timeout_seconds: float = 600

    # Recognition parameters (see TranscriptionConfig)
    model_id: str = "scribe_v1"
    language_code: str | None = "ru"
    diarize: bool = True
    num_speakers: int | None = None
    diarization_threshold: float | None = None
    tag_audio_events: bool = True
    timestamps_granularity: TimestampsGranularity = TimestampsGranularity.WORD
    temperature: float | None = None
    seed: int | None = None
    use_multi_channel: bool = False
    file_format: str = "other"
    enable_logging: bool = True
    webhook: bool = False
    webhook_id: str | None = None

    # Role labelling
    completion_provider: CompletionProvider = CompletionProvider.OPENAI
    openai_completion_model: str = "gpt-4o"
    anthropic_completion_model: str = "claude-sonnet-4-20250514"
    completion_temperature: float = 0.2
    completion_max_tokens: int = 16000
    completion_timeout_seconds: float = 300
    completion_delay_seconds: float = 5.0
    split_tolerance: float = 0.2

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]
