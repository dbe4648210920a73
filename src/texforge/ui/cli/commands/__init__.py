"""CLI command implementations exposed via `texforge.ui.cli`."""

from __future__ import annotations

from .build import build
from .clear import clear
from .config import config
from .graphics import graphics


__all__ = ["build", "clear", "config", "graphics"]
