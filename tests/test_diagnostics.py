from __future__ import annotations

import logging

import pytest

from texforge.core.diagnostics import LoggingEmitter, LogWrapper, NullEmitter
from texforge.core.exceptions import BuildFailureError, exception_messages
from texforge.ui.cli.diagnostics import CliEmitter
from texforge.ui.cli.state import emit_error, set_cli_state


def _raise_nested_failure() -> None:
    try:
        raise FileNotFoundError("lualatex: command not found")
    except FileNotFoundError as exc:
        raise BuildFailureError("Error running lualatex") from exc


def test_emitters_satisfy_protocol() -> None:
    assert isinstance(NullEmitter(), LogWrapper)
    assert isinstance(LoggingEmitter(), LogWrapper)
    assert isinstance(CliEmitter(), LogWrapper)


def test_null_emitter_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    emitter = NullEmitter()
    with caplog.at_level(logging.DEBUG):
        emitter.warning("nothing to see")
        emitter.error("still quiet")
        emitter.info("silent")
    assert not caplog.records


def test_logging_emitter_logs_messages(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter(logger_obj=logging.getLogger("texforge.test"))
    with caplog.at_level(logging.DEBUG, logger="texforge.test"):
        emitter.error("boom")
        emitter.warning("careful", ValueError("detail"))
        emitter.debug("trace")
    assert [(record.levelname, record.message) for record in caplog.records] == [
        ("ERROR", "boom"),
        ("WARNING", "careful"),
        ("DEBUG", "trace"),
    ]
    assert caplog.records[1].exc_info is not None


def test_cli_emitter_respects_verbosity(capsys: pytest.CaptureFixture[str]) -> None:
    state = set_cli_state(verbosity=0, debug=False)
    emitter = CliEmitter(state=state)

    emitter.info("Converting into pdf")
    emitter.warning("Heads up")
    emitter.error("Boom")

    captured = capsys.readouterr()
    assert "Converting into pdf" not in captured.out
    assert "warning: Heads up" in captured.err
    assert "error: Boom" in captured.err

    set_cli_state(verbosity=1)
    emitter.info("Converting into pdf")
    emitter.debug("Running lualatex")
    captured = capsys.readouterr()
    assert "Converting into pdf" in captured.out
    assert "Running lualatex" not in captured.out


def test_exception_messages_follow_cause_chain() -> None:
    with pytest.raises(BuildFailureError) as excinfo:
        _raise_nested_failure()

    assert exception_messages(excinfo.value) == [
        "Error running lualatex",
        "lualatex: command not found",
    ]


def test_error_details_grow_with_verbosity(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(BuildFailureError) as excinfo:
        _raise_nested_failure()

    set_cli_state(verbosity=1, debug=False)
    emit_error("Build failed", exception=excinfo.value)
    captured = capsys.readouterr()
    assert "type: BuildFailureError" in captured.err
    assert "caused by:" not in captured.err

    set_cli_state(verbosity=2)
    emit_error("Build failed", exception=excinfo.value)
    captured = capsys.readouterr()
    assert "caused by:\n  lualatex: command not found" in captured.err
