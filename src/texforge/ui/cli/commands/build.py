"""Implementation of the `texforge build` command."""

from __future__ import annotations

from typing import Any

from texforge.api.service import BuildService
from texforge.core.config import output_dir

from .._options import (
    CleanUpOption,
    ConfigOption,
    DebugOption,
    MaxRerunsOption,
    OutputDirOption,
    SourceDirOption,
    TargetOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..utils import absolute, prepare_command, run_or_exit


def build(
    config: ConfigOption = None,
    target: TargetOption = None,
    source: SourceDirOption = None,
    output: OutputDirOption = None,
    max_reruns: MaxRerunsOption = None,
    clean_up: CleanUpOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Build the requested targets of every LaTeX main document."""
    overrides: dict[str, Any] = {
        "tex_src_directory": absolute(source),
        "output_directory": absolute(output),
        "max_reruns": max_reruns,
        "clean_up": clean_up,
    }
    if target:
        overrides["targets"] = ",".join(target)
    state, settings = prepare_command(config, overrides, verbose=verbose, debug=debug)

    service = BuildService(settings, CliEmitter(state))
    report = run_or_exit(service.create)

    state.console.print(
        f"Built {len(report.documents)} document(s); "
        f"{report.artifact_count} artifact(s) delivered to {output_dir(settings)}",
        markup=False,
    )
    warnings = state.counts.get("warning", 0)
    errors = state.counts.get("error", 0)
    if warnings or errors:
        state.console.print(f"Reported {warnings} warning(s) and {errors} error(s).")


__all__ = ["build"]
