"""Pipeline configuration: backend enums and the TranscriptionConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vidscribe.config import Settings

# Values accepted by --lang that mean "let the service detect the language"
AUTO_LANGUAGE = {"", "auto"}


class TranscriptionBackend(str, Enum):
    """Available speech-to-text backends."""

    ELEVENLABS = "elevenlabs"
    OPENAI = "openai"


class CompletionProvider(str, Enum):
    """Available text-completion providers for role labelling."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class TimestampsGranularity(str, Enum):
    """Timestamp detail requested from the ElevenLabs Scribe API."""

    NONE = "none"
    WORD = "word"
    CHARACTER = "character"


@dataclass(frozen=True)
class TranscriptionConfig:
    """Immutable set of recognition parameters sent with every upload.

    ``None`` marks an option as unset; unset options are left out of the
    request so the service applies its own default.
    """

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

    @classmethod
    def from_settings(
        cls, settings: Settings, language_override: str | None = None
    ) -> TranscriptionConfig:
        """Build the run's config from settings plus an optional ``--lang`` value."""
        language = settings.language_code
        if language_override is not None:
            language = language_override
        if language is not None and language.strip().lower() in AUTO_LANGUAGE:
            language = None

        return cls(
            model_id=settings.model_id,
            language_code=language,
            diarize=settings.diarize,
            num_speakers=settings.num_speakers,
            diarization_threshold=settings.diarization_threshold,
            tag_audio_events=settings.tag_audio_events,
            timestamps_granularity=settings.timestamps_granularity,
            temperature=settings.temperature,
            seed=settings.seed,
            use_multi_channel=settings.use_multi_channel,
            file_format=settings.file_format,
            enable_logging=settings.enable_logging,
            webhook=settings.webhook,
            webhook_id=settings.webhook_id,
        )
