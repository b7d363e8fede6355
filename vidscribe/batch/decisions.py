"""Per-file decision and progress-reporting hooks for batch runs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

logger = logging.getLogger(__name__)


class Decision(StrEnum):
    """What to do with the next file of a batch."""

    CONTINUE = "continue"
    SKIP = "skip"
    EXIT = "exit"


class BatchEvent(StrEnum):
    """Per-file outcomes reported while a batch runs."""

    STARTED = "started"
    ALREADY_DONE = "already_done"
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"
    EXITED = "exited"


class Decider(Protocol):
    def decide(self, file_name: str, index: int, total: int) -> Decision: ...


class Reporter(Protocol):
    def report(
        self, event: BatchEvent, file_name: str, index: int, total: int, detail: str = ""
    ) -> None: ...


class AutoDecider:
    """Non-interactive mode: process every file."""

    def decide(self, file_name: str, index: int, total: int) -> Decision:
        return Decision.CONTINUE


class ConsoleDecider:
    """Asks on the terminal before each file.

    End of input (Ctrl-D, closed stdin) is treated as a request to exit.
    """

    CHOICES: dict[str, Decision] = {
        "1": Decision.CONTINUE,
        "c": Decision.CONTINUE,
        "2": Decision.SKIP,
        "s": Decision.SKIP,
        "3": Decision.EXIT,
        "q": Decision.EXIT,
    }

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ) -> None:
        self._input = input_fn
        self._output = output_fn

    def decide(self, file_name: str, index: int, total: int) -> Decision:
        self._output(f'\nFile {index}/{total}: "{file_name}"')
        self._output("  [1] Continue processing  [2] Skip this file  [3] Exit")
        while True:
            try:
                answer = self._input("Choice [1]: ").strip().lower()
            except EOFError:
                return Decision.EXIT
            if not answer:
                return Decision.CONTINUE
            if answer in self.CHOICES:
                return self.CHOICES[answer]
            self._output(f"Unknown choice {answer!r}, enter 1, 2 or 3.")


class LoggingReporter:
    """Reports batch events through the ``logging`` module."""

    def report(
        self, event: BatchEvent, file_name: str, index: int, total: int, detail: str = ""
    ) -> None:
        level = logging.ERROR if event is BatchEvent.FAILED else logging.INFO
        suffix = f": {detail}" if detail else ""
        logger.log(level, "[%d/%d] %s %s%s", index, total, event.value, file_name, suffix)
