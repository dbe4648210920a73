"""Facade over the build pipeline.

Architecture
: `BuildService` wires the graphics preprocessor, the LaTeX processor and the
  output delivery around one immutable `Settings` value.
: `BuildReport` lists the main documents that were converted and the
  artifacts copied for each of them.

Usage Example
:
    >>> from texforge.api import BuildService
    >>> from texforge.core.config import load_settings
    >>> service = BuildService(load_settings(overrides={"base_directory": "."}))
    >>> service.settings.targets[0].value
    'pdf'
"""

from __future__ import annotations

from .service import BuildReport, BuildService, ordered_targets


__all__ = [
    "BuildReport",
    "BuildService",
    "ordered_targets",
]
