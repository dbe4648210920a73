"""Implementation of the `texforge config` command."""

from __future__ import annotations

import typer

from texforge.core.config import dump_settings

from .._options import ConfigOption, DebugOption
from ..utils import prepare_command


def config(
    config: ConfigOption = None,
    debug: DebugOption = False,
) -> None:
    """Print the effective settings as YAML."""
    _state, settings = prepare_command(config, {}, verbose=0, debug=debug)
    typer.echo(dump_settings(settings), nl=False)


__all__ = ["config"]
