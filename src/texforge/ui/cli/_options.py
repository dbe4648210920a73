"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML file holding the build settings.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

SourceDirOption = Annotated[
    Path | None,
    typer.Option(
        "--source",
        "-s",
        help="Directory holding the LaTeX sources (overrides tex_src_directory).",
        file_okay=False,
        dir_okay=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

TargetOption = Annotated[
    list[str] | None,
    typer.Option(
        "--target",
        "-t",
        help="Output target (chk, dvi, pdf, html, odt, docx, rtf, txt). Repeatable.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

OutputDirOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Directory receiving the artifacts (overrides output_directory).",
        file_okay=False,
        dir_okay=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

MaxRerunsOption = Annotated[
    int | None,
    typer.Option(
        "--max-reruns",
        help="Maximum number of LaTeX reruns; -1 removes the limit.",
        min=-1,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

CleanUpOption = Annotated[
    bool | None,
    typer.Option(
        "--clean-up/--no-clean-up",
        help="Delete files created in the processing directory after the build.",
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "CleanUpOption",
    "ConfigOption",
    "DebugOption",
    "MaxRerunsOption",
    "OutputDirOption",
    "SourceDirOption",
    "TargetOption",
    "VerboseOption",
]
