"""Command-line entry point.

Run as a module or through the ``vidscribe`` console script::

    python -m vidscribe.cli transcribe --backend elevenlabs --lang=ru
    python -m vidscribe.cli files lecture_01.mp3 lecture_02.mp3 --backend openai
    python -m vidscribe.cli roles text/lecture_01.txt

Use ``--help`` on each command for full argument documentation.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from vidscribe.batch.decisions import AutoDecider, ConsoleDecider, Decider
from vidscribe.batch.runner import (
    BatchSummary,
    ensure_directories,
    list_video_files,
    run_file_batch,
    run_video_batch,
)
from vidscribe.config import Settings, get_settings
from vidscribe.pipeline_config import (
    CompletionProvider,
    TranscriptionBackend,
    TranscriptionConfig,
)
from vidscribe.roles.completion import build_completion_client, completion_api_key
from vidscribe.roles.labeler import RoleLabeler, find_transcripts, label_files
from vidscribe.transcription.backends import API_KEY_ENV, api_key_for, build_transcriber

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Log to stderr; DEBUG with --verbose, INFO otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _log_summary(summary: BatchSummary, label: str = "files") -> None:
    if summary.exited:
        logger.info("Stopped at the user's request.")
    else:
        logger.info("All %s processed.", label)
    logger.info(
        "Processed: %d of %d, already done: %d, skipped: %d, failed: %d",
        summary.processed,
        summary.total,
        summary.already_done,
        summary.skipped,
        summary.failed,
    )


def _resolve_backend(args: argparse.Namespace, settings: Settings) -> TranscriptionBackend | None:
    """Return the chosen backend, or None (after logging) if its key is missing."""
    backend = TranscriptionBackend(args.backend) if args.backend else settings.transcription_backend
    if not api_key_for(settings, backend):
        logger.error(
            "API key for %s not found. Set %s in the environment or in .env.",
            backend.value,
            API_KEY_ENV[backend],
        )
        return None
    return backend


def cmd_transcribe(args: argparse.Namespace, settings: Settings) -> int:
    """Video folder batch: extract audio, transcribe, write to the text folder."""
    backend = _resolve_backend(args, settings)
    if backend is None:
        return 1

    video_dir = Path(settings.video_dir)
    audio_dir = Path(settings.audio_dir)
    text_dir = Path(settings.text_dir)
    ensure_directories(video_dir, audio_dir, text_dir)

    videos = list_video_files(video_dir, settings.video_extensions)
    if not videos:
        logger.info(
            "No video files found in %s. Supported formats: %s",
            video_dir,
            ", ".join(settings.video_extensions),
        )
        return 0
    logger.info("Found %d video file(s)", len(videos))

    config = TranscriptionConfig.from_settings(settings, args.lang)
    transcriber = build_transcriber(settings, config, backend)

    decider: Decider
    if args.yes or not sys.stdin.isatty():
        decider = AutoDecider()
    else:
        decider = ConsoleDecider()

    summary = run_video_batch(
        videos,
        audio_dir=audio_dir,
        text_dir=text_dir,
        transcriber=transcriber,
        ffmpeg_path=settings.ffmpeg_path,
        decider=decider,
    )
    _log_summary(summary, "videos")
    return 0


def cmd_files(args: argparse.Namespace, settings: Settings) -> int:
    """Explicit audio files: transcript written beside each input."""
    backend = _resolve_backend(args, settings)
    if backend is None:
        return 1

    config = TranscriptionConfig.from_settings(settings, args.lang)
    transcriber = build_transcriber(settings, config, backend)
    paths = [Path(p) for p in args.paths]
    logger.info("Files to transcribe: %d", len(paths))

    summary = run_file_batch(paths, transcriber)
    _log_summary(summary)
    return 0


def cmd_roles(args: argparse.Namespace, settings: Settings) -> int:
    """Label lecturer/student roles in finished transcripts."""
    provider = CompletionProvider(args.provider) if args.provider else settings.completion_provider
    env_name, api_key = completion_api_key(settings, provider)
    if not api_key:
        logger.error("API key not found. Set %s in the environment or in .env.", env_name)
        return 1

    if args.paths:
        paths = [Path(p) for p in args.paths]
    else:
        paths = find_transcripts(settings.text_dir)
    if not paths:
        logger.info("No transcripts to process.")
        return 0
    logger.info("Transcripts to process: %d", len(paths))

    labeler = RoleLabeler(
        build_completion_client(settings, provider),
        delay_seconds=settings.completion_delay_seconds,
        split_tolerance=settings.split_tolerance,
    )
    summary = label_files(paths, labeler)
    _log_summary(summary, "transcripts")
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, Settings], int]] = {
    "transcribe": cmd_transcribe,
    "files": cmd_files,
    "roles": cmd_roles,
}


def _add_backend_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--backend",
        choices=[b.value for b in TranscriptionBackend],
        default=None,
        help=(
            "Speech-to-text service. 'elevenlabs' uploads whole files (3 GB / 10 h limit); "
            "'openai' splits files over 25 MB into chunks. "
            "Defaults to TRANSCRIPTION_BACKEND (elevenlabs)."
        ),
    )
    parser.add_argument(
        "--lang",
        metavar="CODE",
        default=None,
        help="Language code, e.g. --lang=en. Use --lang=auto for auto-detection.",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="vidscribe",
        description=(
            "Batch video transcription\n\n"
            "transcribe  extract MP3 audio from every video in VIDEO_DIR and write\n"
            "            transcripts to TEXT_DIR, skipping videos already transcribed.\n"
            "files       transcribe the given audio files; each .txt lands beside its source.\n"
            "roles       label lecturer/student turns in transcripts (<name>_roles.txt)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    transcribe = sub.add_parser("transcribe", help="Transcribe the video folder.")
    _add_backend_args(transcribe)
    transcribe.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Process every file without asking (implied when stdin is not a terminal).",
    )

    files = sub.add_parser("files", help="Transcribe explicit audio files.")
    files.add_argument("paths", nargs="+", metavar="FILE", help="Audio file(s) to transcribe.")
    _add_backend_args(files)

    roles = sub.add_parser("roles", help="Label speaker roles in transcripts.")
    roles.add_argument(
        "paths",
        nargs="*",
        metavar="FILE",
        help="Transcript .txt file(s). Defaults to every transcript in TEXT_DIR.",
    )
    roles.add_argument(
        "--provider",
        choices=[p.value for p in CompletionProvider],
        default=None,
        help="Completion provider. Defaults to COMPLETION_PROVIDER (openai).",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)
    settings = get_settings()

    try:
        return COMMANDS[args.command](args, settings)
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        return 130
    except Exception:
        logger.exception("Unexpected error")
        return 1


if __name__ == "__main__":
    sys.exit(main())
