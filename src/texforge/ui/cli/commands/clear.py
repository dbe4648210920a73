"""Implementation of the `texforge clear` command."""

from __future__ import annotations

from texforge.api.service import BuildService

from .._options import ConfigOption, DebugOption, SourceDirOption, VerboseOption
from ..diagnostics import CliEmitter
from ..utils import absolute, prepare_command, run_or_exit


def clear(
    config: ConfigOption = None,
    source: SourceDirOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Delete the files generated from the LaTeX sources."""
    overrides = {"tex_src_directory": absolute(source)}
    state, settings = prepare_command(config, overrides, verbose=verbose, debug=debug)
    run_or_exit(BuildService(settings, CliEmitter(state)).clear_all)


__all__ = ["clear"]
