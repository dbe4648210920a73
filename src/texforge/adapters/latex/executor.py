"""Synchronous execution of external tools with target update checks."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import subprocess
import time

from texforge.core.diagnostics import LogWrapper
from texforge.core.exceptions import BuildFailureError


# Minimal age in milliseconds a target must have so that a rewrite is
# guaranteed to bump its modification time on second-granularity filesystems.
UPDATE_WINDOW_MS = 1001


class TargetState(Enum):
    """Outcome of the update check performed on one expected target."""

    CREATED = "created"
    UPDATED = "updated"
    MISSING = "missing"
    NOT_UPDATED = "not-updated"
    UNREADABLE = "unreadable"


@dataclass(slots=True)
class CommandResult:
    """Captured output and exit status of one tool invocation."""

    output: str
    returncode: int
    target_states: dict[Path, TargetState] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def _mtime_ms(path: Path) -> int | None:
    """Return the modification time in milliseconds, ``None`` when absent."""
    if not path.exists():
        return None
    return path.stat().st_mtime_ns // 1_000_000


class CommandRunner:
    """Run external commands and report on the files they should write.

    Only a command that cannot be started at all is fatal. A nonzero exit
    status and missing or stale targets are reported through the emitter and
    left to the caller to interpret.
    """

    def __init__(
        self,
        emitter: LogWrapper,
        *,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.log = emitter
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    def execute(
        self,
        working_dir: Path,
        search_path: Path | None,
        command: str,
        args: Sequence[str],
        *expected_targets: Path,
        check_returncode: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run ``command`` with ``args`` inside ``working_dir``.

        ``expected_targets`` are checked after the run: each must exist and,
        when it existed before, carry a newer modification time.
        """
        if not working_dir.is_dir():
            raise BuildFailureError(
                f"Working directory '{working_dir}' does not exist or is not a directory."
            )

        before = self._record_targets(command, expected_targets)
        self._wait_for_update_window(command, before)

        executable = str(search_path / command) if search_path is not None else command
        argv = [executable, *args]
        self.log.debug(f"Executing '{' '.join(argv)}' in '{working_dir}'.")
        try:
            completed = subprocess.run(
                argv,
                cwd=working_dir,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout if timeout is not None else self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise BuildFailureError(
                f"Running {command} timed out after {exc.timeout} seconds."
            ) from exc
        except OSError as exc:
            raise BuildFailureError(f"Error running {command}: {exc}") from exc

        output = completed.stdout or ""
        if output:
            self.log.debug(f"Output of {command}:\n{output}")
        if check_returncode and completed.returncode != 0:
            self.log.error(
                f"Running {command} failed with return code {completed.returncode}."
            )

        states = {
            target: self._check_target(command, target, before[target])
            for target in expected_targets
        }
        return CommandResult(output=output, returncode=completed.returncode, target_states=states)

    def _record_targets(
        self, command: str, targets: Sequence[Path]
    ) -> dict[Path, int | None]:
        recorded: dict[Path, int | None] = {}
        for target in targets:
            try:
                recorded[target] = _mtime_ms(target)
            except OSError as exc:
                self.log.warning(
                    f"Cannot read modification time of '{target.name}'; "
                    f"update control for {command} may be incomplete.",
                    exc,
                )
                recorded[target] = None
        return recorded

    def _wait_for_update_window(self, command: str, before: dict[Path, int | None]) -> None:
        stamps = [stamp for stamp in before.values() if stamp is not None]
        if not stamps:
            return
        now_ms = int(self._clock() * 1000)
        min_age = now_ms - max(stamps)
        if min_age >= UPDATE_WINDOW_MS:
            return
        delay_ms = UPDATE_WINDOW_MS - max(min_age, 0)
        self.log.debug(f"Waiting {delay_ms} ms before running {command}.")
        self._sleep(delay_ms / 1000)

    def _check_target(self, command: str, target: Path, previous: int | None) -> TargetState:
        try:
            current = _mtime_ms(target)
        except OSError as exc:
            self.log.warning(
                f"Target file '{target.name}' of {command} may be outdated.", exc
            )
            return TargetState.UNREADABLE
        if current is None:
            self.log.error(f"Running {command} failed: No target file '{target.name}' written.")
            return TargetState.MISSING
        if previous is None:
            return TargetState.CREATED
        if current <= previous:
            self.log.error(
                f"Running {command} failed: Target file '{target.name}' is not updated."
            )
            return TargetState.NOT_UPDATED
        return TargetState.UPDATED


__all__ = [
    "UPDATE_WINDOW_MS",
    "CommandResult",
    "CommandRunner",
    "TargetState",
]
