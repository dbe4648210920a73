"""Helpers shared by the CLI commands."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar

import click
import typer

from texforge.core.config import Settings, load_settings
from texforge.core.exceptions import TexforgeError

from .state import CLIState, debug_enabled, emit_error, set_cli_state


T = TypeVar("T")


def absolute(path: Path | None) -> Path | None:
    """Anchor a command-line path at the working directory."""
    return path.resolve() if path is not None else None


def load_cli_settings(config: Path | None, overrides: Mapping[str, Any]) -> Settings:
    """Load settings or exit with status 1 on configuration errors."""
    try:
        return load_settings(config, overrides)
    except TexforgeError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


def prepare_command(
    config: Path | None,
    overrides: Mapping[str, Any],
    *,
    verbose: int,
    debug: bool,
) -> tuple[CLIState, Settings]:
    """Record the diagnostics flags and load the effective settings."""
    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug)
    return state, load_cli_settings(config, overrides)


def run_or_exit(step: Callable[[], T]) -> T:
    """Run a build step, turning fatal build failures into exit status 1."""
    try:
        return step()
    except TexforgeError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["absolute", "load_cli_settings", "prepare_command", "run_or_exit"]
