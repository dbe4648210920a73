"""Diagnostic emitter bridging the build pipeline with CLI rendering utilities."""

from __future__ import annotations

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


class CliEmitter:
    """Emit diagnostics using the rich-enabled CLI helpers.

    Info messages need ``-v``, debug messages ``-vv``.
    """

    def __init__(self, state: CLIState | None = None) -> None:
        self._state = state or get_cli_state()

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        emit_warning(message, exception=exc)

    def info(self, message: str) -> None:
        if self._state.verbosity >= 1:
            render_message("info", message)

    def debug(self, message: str) -> None:
        if self._state.verbosity >= 2:
            render_message("debug", message)


__all__ = ["CliEmitter"]
