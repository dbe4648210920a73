"""Implementation of the `texforge graphics` command."""

from __future__ import annotations

from texforge.api.service import BuildService

from .._options import ConfigOption, DebugOption, SourceDirOption, VerboseOption
from ..diagnostics import CliEmitter
from ..utils import absolute, prepare_command, run_or_exit


def graphics(
    config: ConfigOption = None,
    source: SourceDirOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Convert graphics sources and list the LaTeX main documents found."""
    overrides = {"tex_src_directory": absolute(source)}
    state, settings = prepare_command(config, overrides, verbose=verbose, debug=debug)
    documents = run_or_exit(BuildService(settings, CliEmitter(state)).process_graphics)
    for desc in documents:
        state.console.print(f"{desc.tex} ({desc.doc_class})", markup=False)


__all__ = ["graphics"]
