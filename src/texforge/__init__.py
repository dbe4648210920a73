"""Primary public API for texforge."""

from __future__ import annotations

from texforge.api import BuildReport, BuildService
from texforge.core.config import LatexDev, Settings, Target, load_settings
from texforge.core.diagnostics import LoggingEmitter, LogWrapper, NullEmitter
from texforge.core.exceptions import (
    BuildFailureError,
    ConfigurationError,
    TexforgeError,
    UnknownTargetError,
)
from texforge.version import get_version


__version__ = get_version()

__all__ = [
    "BuildFailureError",
    "BuildReport",
    "BuildService",
    "ConfigurationError",
    "LatexDev",
    "LogWrapper",
    "LoggingEmitter",
    "NullEmitter",
    "Settings",
    "Target",
    "TexforgeError",
    "UnknownTargetError",
    "__version__",
    "get_version",
    "load_settings",
]
