"""Label speaker roles in lecture transcripts with a text-completion model.

Each transcript is cut in two near its middle and both halves are sent
separately, with a fixed pause between requests (and between files) to stay
under the provider's rate limits.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from vidscribe.batch.runner import BatchSummary
from vidscribe.exceptions import CompletionError
from vidscribe.roles.completion import CompletionClient
from vidscribe.roles.splitter import split_transcript

logger = logging.getLogger(__name__)

ROLES_SUFFIX = "_roles"
ROLE_ERROR_MARKER = "[ROLE LABELING ERROR: PART {index}/{total}]"

ROLE_LABELING_PROMPT = """\
You are an expert text editor. Your task is to analyse a lecture transcript and \
identify the speaker roles. The main speaker is the Lecturer. Sometimes Students \
ask questions or make comments, and the Lecturer answers.

Process the following lecture transcript. Identify each speech segment and label \
it clearly as [Lecturer], [Student - Question], [Student - Comment] or \
[Lecturer - Answer]. Keep the original text and structure as intact as possible, \
inserting the role label before each corresponding speech segment.
- If the segment continues the lecturer's speech, use [Lecturer].
- If a student asks something, use [Student - Question].
- If the lecturer directly answers that question, use [Lecturer - Answer].
- If a student adds a comment that is not a direct question, use [Student - Comment].
- If the role cannot be determined, leave the segment unlabelled or use [Unknown].
Important: return ONLY the labelled text, with no explanations or introductions.
"""


def roles_output_path(transcript_path: Path) -> Path:
    """``lecture.txt`` -> ``lecture_roles.txt`` in the same folder."""
    return transcript_path.with_name(f"{transcript_path.stem}{ROLES_SUFFIX}.txt")


def find_transcripts(text_dir: str | Path) -> list[Path]:
    """Transcripts in *text_dir* that are not themselves role-labelled outputs."""
    text_dir = Path(text_dir)
    if not text_dir.is_dir():
        logger.error("Folder %s does not exist", text_dir)
        return []
    return sorted(
        p for p in text_dir.glob("*.txt") if p.is_file() and not p.stem.endswith(ROLES_SUFFIX)
    )


class RoleLabeler:
    """Splits transcripts, sends both halves for labelling and joins the results."""

    def __init__(
        self,
        client: CompletionClient,
        *,
        delay_seconds: float = 5.0,
        split_tolerance: float = 0.2,
        prompt: str = ROLE_LABELING_PROMPT,
    ) -> None:
        self.client = client
        self.delay_seconds = delay_seconds
        self.split_tolerance = split_tolerance
        self.prompt = prompt

    def pause(self) -> None:
        if self.delay_seconds > 0:
            logger.info("Pausing %g s...", self.delay_seconds)
            time.sleep(self.delay_seconds)

    def label_text(self, text: str, prefix: str = "") -> str:
        """Return *text* with role labels.

        A half whose request fails is replaced by an error marker; the other
        half is still kept.

        Raises:
            ValueError: If *text* cannot be split into two non-empty halves.
        """
        halves = split_transcript(text, self.split_tolerance)
        total = len(halves)
        for i, half in enumerate(halves, start=1):
            logger.info("%s Part %d/%d: %d characters", prefix, i, total, len(half))

        results: list[str] = []
        for i, half in enumerate(halves, start=1):
            if i > 1:
                self.pause()
            try:
                results.append(self.client.complete(self.prompt, half))
                logger.info("%s Part %d/%d labelled", prefix, i, total)
            except CompletionError as e:
                logger.error("%s Part %d/%d failed: %s", prefix, i, total, e)
                results.append(ROLE_ERROR_MARKER.format(index=i, total=total))

        return "\n\n".join(results)

    def label_file(self, transcript_path: Path, prefix: str = "") -> Path | None:
        """Label one transcript file and write ``<stem>_roles.txt`` beside it.

        Returns:
            The output path, or ``None`` if the file was skipped (empty input
            or output already present).
        """
        output_path = roles_output_path(transcript_path)
        if output_path.exists():
            logger.info("%s Already labelled, skipping: %s", prefix, transcript_path.name)
            return None

        text = transcript_path.read_text(encoding="utf-8")
        if not text.strip():
            logger.warning("%s %s is empty, skipping", prefix, transcript_path.name)
            return None

        logger.info("%s Read %s (%d characters)", prefix, transcript_path.name, len(text))
        labelled = self.label_text(text, prefix)
        output_path.write_text(labelled, encoding="utf-8")
        logger.info("%s Result saved to %s", prefix, output_path.name)
        return output_path


def label_files(paths: list[Path], labeler: RoleLabeler) -> BatchSummary:
    """Label each transcript in turn, pausing between files."""
    total = len(paths)
    summary = BatchSummary(total=total)

    for i, path in enumerate(paths, start=1):
        prefix = f"[{i}/{total}]"
        logger.info("%s Processing %s", prefix, path.name)
        try:
            if not path.is_file():
                raise FileNotFoundError(f"File not found: {path}")
            output = labeler.label_file(path, prefix)
        except (OSError, ValueError) as e:
            summary.failed += 1
            logger.error("%s Failed to process %s: %s", prefix, path.name, e)
        else:
            if output is None:
                summary.skipped += 1
            else:
                summary.processed += 1

        if i < total:
            labeler.pause()

    return summary
