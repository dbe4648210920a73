"""Regex scans over tool logs and other generated text files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import re

from texforge.core.diagnostics import LogWrapper


class LogMatch(Enum):
    """Result of scanning a file for a pattern.

    ``UNREADABLE`` covers missing and unreadable files alike and must never be
    read as "no match".
    """

    MATCH_FOUND = "match-found"
    NO_MATCH = "no-match"
    UNREADABLE = "unreadable"

    @property
    def found(self) -> bool:
        return self is LogMatch.MATCH_FOUND


@dataclass(frozen=True, slots=True)
class FileMatch:
    """Scan result together with the first match, if any."""

    state: LogMatch
    match: re.Match[str] | None = None

    def group(self, name: str | int) -> str | None:
        if self.match is None:
            return None
        return self.match.group(name)


def _compile(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.MULTILINE)


def _anchored_at_start(pattern: re.Pattern[str]) -> bool:
    return pattern.pattern.startswith(r"\A")


class LogClassifier:
    """Match regular expressions against files line by line.

    Every call re-reads the file. Patterns starting with ``\\A`` are applied
    to the whole text instead, so they can span several lines from the start
    of the file.
    """

    def __init__(self, emitter: LogWrapper) -> None:
        self.log = emitter

    def _read(self, path: Path) -> str | None:
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            self.log.warning(f"Cannot read file '{path.name}'.", exc)
            return None

    def find(self, path: Path, pattern: str | re.Pattern[str]) -> FileMatch:
        """Return the first match of ``pattern`` in ``path``."""
        compiled = _compile(pattern)
        text = self._read(path)
        if text is None:
            return FileMatch(LogMatch.UNREADABLE)
        if _anchored_at_start(compiled):
            found = compiled.search(text)
            return FileMatch(LogMatch.MATCH_FOUND if found else LogMatch.NO_MATCH, found)
        for line in text.splitlines():
            found = compiled.search(line)
            if found is not None:
                return FileMatch(LogMatch.MATCH_FOUND, found)
        return FileMatch(LogMatch.NO_MATCH)

    def match(self, path: Path, pattern: str | re.Pattern[str]) -> LogMatch:
        """Classify ``path`` as matching, not matching or unreadable."""
        return self.find(path, pattern).state

    def collect_matches(
        self, path: Path, pattern: str | re.Pattern[str], group: int | str
    ) -> set[str] | None:
        """Collect ``group`` of every matching line, ``None`` when unreadable."""
        compiled = _compile(pattern)
        text = self._read(path)
        if text is None:
            return None
        collected: set[str] = set()
        for line in text.splitlines():
            found = compiled.search(line)
            if found is not None and found.group(group) is not None:
                collected.add(found.group(group))
        return collected

    def report_errors(self, log_file: Path, command: str, pattern: str) -> None:
        """Report a missing log as an error and error patterns as warnings."""
        if not log_file.exists():
            self.log.error(f"Running {command} failed: No log file '{log_file.name}' written.")
            return
        state = self.match(log_file, pattern)
        if state is LogMatch.UNREADABLE:
            self.log.warning(
                f"Cannot read log file '{log_file.name}'; it may hide errors of {command}."
            )
        elif state.found:
            self.log.warning(f"Running {command} failed. Errors logged in '{log_file.name}'.")

    def report_warnings(self, log_file: Path, command: str, pattern: str) -> None:
        """Report warning patterns of a log, staying silent when there is none."""
        if not log_file.exists():
            return
        state = self.match(log_file, pattern)
        if state is LogMatch.UNREADABLE:
            self.log.warning(
                f"Cannot read log file '{log_file.name}'; it may hide warnings of {command}."
            )
        elif state.found:
            self.log.warning(f"Running {command} emitted warnings logged in '{log_file.name}'.")


__all__ = [
    "FileMatch",
    "LogClassifier",
    "LogMatch",
]
