"""Tests for the speech-to-text HTTP clients (ElevenLabs Scribe, OpenAI Whisper).

All requests go through ``httpx.MockTransport``; nothing touches the network.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from vidscribe.config import Settings
from vidscribe.exceptions import ApiError, LimitExceededError, UploadError
from vidscribe.media.models import MB, AudioMetadata
from vidscribe.pipeline_config import (
    TimestampsGranularity,
    TranscriptionBackend,
    TranscriptionConfig,
)
from vidscribe.transcription.backends import build_client, build_transcriber
from vidscribe.transcription.base import BaseTranscriptionClient, UploadLimits, form_value
from vidscribe.transcription.elevenlabs import GB, ElevenLabsClient
from vidscribe.transcription.openai_whisper import OpenAIWhisperClient

ELEVENLABS_URL = "https://api.elevenlabs.io/v1/speech-to-text"
WHISPER_URL = "https://api.openai.com/v1/audio/transcriptions"


def _multipart_fields(request: httpx.Request) -> dict[str, str]:
    """Crude multipart parser: returns the text form fields of *request*."""
    content_type = request.headers["content-type"]
    boundary = content_type.split("boundary=")[1].encode()
    fields: dict[str, str] = {}
    for part in request.content.split(b"--" + boundary):
        if b"\r\n\r\n" not in part:
            continue
        head, _, body = part.partition(b"\r\n\r\n")
        if b"filename=" in head:
            continue
        name = head.split(b'name="')[1].split(b'"')[0].decode()
        fields[name] = body.rstrip(b"\r\n").decode()
    return fields


class Recorder:
    """MockTransport handler that records requests and replays a fixed response."""

    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "lecture.mp3"
    path.write_bytes(b"ID3 fake mp3 payload")
    return path


def _elevenlabs(
    recorder: Recorder, config: TranscriptionConfig | None = None
) -> ElevenLabsClient:
    return ElevenLabsClient(
        "xi-test-key",
        config or TranscriptionConfig(),
        url=ELEVENLABS_URL,
        limits=UploadLimits(max_upload_bytes=3 * GB, max_duration_seconds=10 * 3600),
        timeout=1200,
        http_client=recorder.http_client(),
    )


def _whisper(recorder: Recorder, config: TranscriptionConfig | None = None) -> OpenAIWhisperClient:
    return OpenAIWhisperClient(
        "sk-test",
        config or TranscriptionConfig(),
        url=WHISPER_URL,
        limits=UploadLimits(max_upload_bytes=25 * MB),
        timeout=600,
        http_client=recorder.http_client(),
    )


# ---------------------------------------------------------------------------
# form_value
# ---------------------------------------------------------------------------


class TestFormValue:
    def test_bools_are_lowercase(self) -> None:
        assert form_value(True) == "true"
        assert form_value(False) == "false"

    def test_enum_uses_value(self) -> None:
        assert form_value(TimestampsGranularity.CHARACTER) == "character"

    def test_numbers(self) -> None:
        assert form_value(2) == "2"
        assert form_value(0.5) == "0.5"


# ---------------------------------------------------------------------------
# ElevenLabs
# ---------------------------------------------------------------------------


class TestElevenLabsClient:
    def test_successful_upload(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "Добрый день, коллеги."}))
        client = _elevenlabs(recorder)

        assert client.transcribe(audio_file) == "Добрый день, коллеги."

        request = recorder.requests[0]
        assert str(request.url) == ELEVENLABS_URL
        assert request.method == "POST"
        assert request.headers["xi-api-key"] == "xi-test-key"
        assert b'filename="lecture.mp3"' in request.content
        assert b"ID3 fake mp3 payload" in request.content

    def test_default_form_fields(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "ok"}))
        _elevenlabs(recorder).transcribe(audio_file)

        fields = _multipart_fields(recorder.requests[0])
        assert fields == {
            "model_id": "scribe_v1",
            "diarize": "true",
            "tag_audio_events": "true",
            "timestamps_granularity": "word",
            "use_multi_channel": "false",
            "file_format": "other",
            "enable_logging": "true",
            "webhook": "false",
            "language_code": "ru",
        }

    def test_optional_fields_forwarded(self) -> None:
        config = TranscriptionConfig(
            language_code=None,
            num_speakers=3,
            diarization_threshold=0.3,
            temperature=0.5,
            seed=42,
            webhook_id="hook-1",
        )
        fields = _elevenlabs(Recorder(httpx.Response(200)), config).form_fields()

        assert "language_code" not in fields
        assert fields["num_speakers"] == "3"
        assert fields["temperature"] == "0.5"
        assert fields["seed"] == "42"
        assert fields["webhook_id"] == "hook-1"
        # threshold is only valid when the speaker count is left to the model
        assert "diarization_threshold" not in fields

    def test_threshold_sent_without_speaker_count(self) -> None:
        config = TranscriptionConfig(diarization_threshold=0.3)
        fields = _elevenlabs(Recorder(httpx.Response(200)), config).form_fields()
        assert fields["diarization_threshold"] == "0.3"

    def test_threshold_dropped_without_diarization(self) -> None:
        config = TranscriptionConfig(diarize=False, diarization_threshold=0.3)
        fields = _elevenlabs(Recorder(httpx.Response(200)), config).form_fields()
        assert "diarization_threshold" not in fields
        assert fields["diarize"] == "false"

    def test_multichannel_transcripts_joined(self, audio_file: Path) -> None:
        payload = {"transcripts": [{"text": "left channel"}, {"text": "right channel"}]}
        recorder = Recorder(httpx.Response(200, json=payload))

        assert _elevenlabs(recorder).transcribe(audio_file) == "left channel\n\nright channel"

    def test_error_status_raises_api_error(self, audio_file: Path) -> None:
        body = {"detail": {"status": "invalid_api_key", "message": "Invalid API key"}}
        recorder = Recorder(httpx.Response(401, json=body))

        with pytest.raises(ApiError) as exc_info:
            _elevenlabs(recorder).transcribe(audio_file)

        err = exc_info.value
        assert err.status_code == 401
        assert "invalid_api_key" in err.body
        assert err.file_name == "lecture.mp3"

    def test_error_body_is_truncated(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(500, text="x" * 10_000))
        with pytest.raises(ApiError) as exc_info:
            _elevenlabs(recorder).transcribe(audio_file)
        assert len(exc_info.value.body) == 2000

    def test_network_failure_raises_upload_error(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.ConnectError("connection refused"))

        with pytest.raises(UploadError) as exc_info:
            _elevenlabs(recorder).transcribe(audio_file)

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_timeout_raises_upload_error(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.ReadTimeout("timed out"))
        with pytest.raises(UploadError):
            _elevenlabs(recorder).transcribe(audio_file)

    def test_unreadable_file_raises_upload_error(self, tmp_path: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "never sent"}))

        with pytest.raises(UploadError) as exc_info:
            _elevenlabs(recorder).transcribe(tmp_path / "gone.mp3")

        assert isinstance(exc_info.value.cause, FileNotFoundError)
        assert recorder.requests == []

    def test_missing_text_raises_api_error(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"language_code": "ru"}))

        with pytest.raises(ApiError, match="no transcript text") as exc_info:
            _elevenlabs(recorder).transcribe(audio_file)

        assert exc_info.value.status_code == 200

    def test_invalid_json_raises_api_error(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(ApiError, match="invalid JSON"):
            _elevenlabs(recorder).transcribe(audio_file)

    def test_non_object_json_raises_api_error(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json=["text"]))
        with pytest.raises(ApiError):
            _elevenlabs(recorder).transcribe(audio_file)


# ---------------------------------------------------------------------------
# Pre-flight limits
# ---------------------------------------------------------------------------


class TestUploadLimits:
    def test_oversized_file_is_never_uploaded(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "should not happen"}))
        client = _elevenlabs(recorder)
        metadata = AudioMetadata(duration_seconds=3600.0, size_bytes=4 * GB)

        with pytest.raises(LimitExceededError) as exc_info:
            client.transcribe(audio_file, metadata)

        assert exc_info.value.measure == "size"
        assert "4096.00MB > 3072MB" in str(exc_info.value)
        assert recorder.requests == []

    def test_overlong_file_is_never_uploaded(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "should not happen"}))
        metadata = AudioMetadata(duration_seconds=11 * 3600.0, size_bytes=500 * MB)

        with pytest.raises(LimitExceededError) as exc_info:
            _elevenlabs(recorder).transcribe(audio_file, metadata)

        assert exc_info.value.measure == "duration"
        assert exc_info.value.limit == pytest.approx(10.0)
        assert recorder.requests == []

    def test_file_at_limit_is_accepted(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "ok"}))
        metadata = AudioMetadata(duration_seconds=10 * 3600.0, size_bytes=3 * GB)

        assert _elevenlabs(recorder).transcribe(audio_file, metadata) == "ok"
        assert len(recorder.requests) == 1

    def test_whisper_has_no_duration_limit(self) -> None:
        client = _whisper(Recorder(httpx.Response(200)))
        client.check_limits("long.mp3", AudioMetadata(duration_seconds=20 * 3600.0, size_bytes=MB))


# ---------------------------------------------------------------------------
# OpenAI Whisper
# ---------------------------------------------------------------------------


class TestOpenAIWhisperClient:
    def test_successful_upload(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "Hello class."}))

        assert _whisper(recorder).transcribe(audio_file) == "Hello class."

        request = recorder.requests[0]
        assert str(request.url) == WHISPER_URL
        assert request.headers["authorization"] == "Bearer sk-test"
        assert _multipart_fields(request) == {
            "model": "whisper-1",
            "response_format": "json",
            "language": "ru",
        }

    def test_auto_language_omits_field(self) -> None:
        config = TranscriptionConfig(language_code=None, temperature=0.0)
        fields = _whisper(Recorder(httpx.Response(200)), config).form_fields()
        assert "language" not in fields
        assert fields["temperature"] == "0.0"

    def test_error_status_raises_api_error(self, audio_file: Path) -> None:
        body = json.dumps({"error": {"message": "Maximum content size limit exceeded"}})
        recorder = Recorder(httpx.Response(413, text=body))

        with pytest.raises(ApiError) as exc_info:
            _whisper(recorder).transcribe(audio_file)

        assert exc_info.value.status_code == 413
        assert "Maximum content size" in exc_info.value.body


# ---------------------------------------------------------------------------
# Backend wiring
# ---------------------------------------------------------------------------


class TestBackends:
    def _settings(self) -> Settings:
        return Settings(_env_file=None, elevenlabs_api_key="xi", openai_api_key="sk")  # type: ignore[call-arg]

    def test_elevenlabs_client_limits(self) -> None:
        client = build_client(
            self._settings(), TranscriptionConfig(), TranscriptionBackend.ELEVENLABS
        )
        assert isinstance(client, ElevenLabsClient)
        assert client.limits.max_upload_bytes == 3 * GB
        assert client.limits.max_duration_seconds == 10 * 3600
        assert client.timeout == 1200

    def test_openai_client_limits(self) -> None:
        client = build_client(self._settings(), TranscriptionConfig(), TranscriptionBackend.OPENAI)
        assert isinstance(client, OpenAIWhisperClient)
        assert client.limits.max_upload_bytes == 25 * MB
        assert client.limits.max_duration_seconds is None
        assert client.model == "whisper-1"
        assert client.timeout == 600

    def test_openai_transcriber_splits(self) -> None:
        transcriber = build_transcriber(
            self._settings(), TranscriptionConfig(), TranscriptionBackend.OPENAI
        )
        assert transcriber.target_chunk_bytes == 20 * MB

    def test_elevenlabs_transcriber_does_not_split(self) -> None:
        transcriber = build_transcriber(self._settings(), TranscriptionConfig())
        assert isinstance(transcriber.client, ElevenLabsClient)
        assert transcriber.target_chunk_bytes is None
        assert not transcriber.needs_segmentation(
            AudioMetadata(duration_seconds=3600.0, size_bytes=4 * GB)
        )

    def test_oversized_file_rejected_before_upload(self, audio_file: Path) -> None:
        recorder = Recorder(httpx.Response(200, json={"text": "should not happen"}))
        transcriber = build_transcriber(
            self._settings(),
            TranscriptionConfig(),
            TranscriptionBackend.ELEVENLABS,
            http_client=recorder.http_client(),
        )
        output = audio_file.with_suffix(".txt")

        with patch(
            "vidscribe.transcription.orchestrator.probe_audio",
            return_value=AudioMetadata(duration_seconds=3600.0, size_bytes=4 * GB),
        ):
            with pytest.raises(LimitExceededError):
                transcriber.transcribe_to_file(audio_file, output)

        assert recorder.requests == []
        assert not output.exists()


# ---------------------------------------------------------------------------
# Client hooks
# ---------------------------------------------------------------------------


class TestBaseClient:
    def _kwargs(self) -> dict:
        return {
            "url": WHISPER_URL,
            "limits": UploadLimits(max_upload_bytes=25 * MB),
            "timeout": 60,
        }

    def test_base_client_cannot_be_instantiated(self) -> None:
        with pytest.raises(TypeError):
            BaseTranscriptionClient("key", TranscriptionConfig(), **self._kwargs())

    def test_client_missing_form_fields_fails_at_construction(self) -> None:
        class HeadersOnly(BaseTranscriptionClient):
            def headers(self) -> dict[str, str]:
                return {}

        with pytest.raises(TypeError, match="form_fields"):
            HeadersOnly("key", TranscriptionConfig(), **self._kwargs())
