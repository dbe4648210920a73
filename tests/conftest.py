from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from texforge.adapters.latex.executor import CommandResult
from texforge.core.config import Settings


class RecordingEmitter:
    """Collect diagnostics instead of printing them."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.records.append(("error", message))

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.records.append(("warning", message))

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def debug(self, message: str) -> None:
        self.records.append(("debug", message))

    def messages(self, level: str) -> list[str]:
        return [message for recorded, message in self.records if recorded == level]


Action = Callable[[Path, list[str]], int | None]


class RecordingRunner:
    """Stand-in for the command runner that replays scripted tool behaviour.

    ``actions`` maps a command name to a callable receiving the working
    directory and the arguments; it may write files and return an exit code.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], tuple[Path, ...]]] = []
        self.actions: dict[str, Action] = {}

    def execute(
        self,
        working_dir: Path,
        search_path: Path | None,
        command: str,
        args: list[str],
        *expected_targets: Path,
        check_returncode: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        self.calls.append((command, list(args), expected_targets))
        action = self.actions.get(command)
        code = 0
        if action is not None:
            code = action(working_dir, list(args)) or 0
        return CommandResult(output="", returncode=code)

    def commands(self) -> list[str]:
        return [command for command, _args, _targets in self.calls]

    def args_of(self, command: str) -> list[list[str]]:
        return [args for name, args, _targets in self.calls if name == command]


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def factory(**overrides: object) -> Settings:
        data: dict[str, object] = {"base_directory": tmp_path}
        data.update(overrides)
        return Settings.model_validate(data)

    return factory
