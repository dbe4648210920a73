"""Dispatch table mapping output targets to their conversion and outputs."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from texforge.core.artifacts import LatexMainDesc
from texforge.core.config import Settings, Target

from .processor import LatexProcessor


@dataclass(frozen=True, slots=True)
class TargetHandler:
    """Conversion routine of a target and the pattern of the files it delivers.

    Output patterns use ``T$T`` for the bare name of the main document.
    """

    process: Callable[[LatexProcessor, LatexMainDesc], None]
    output_pattern: Callable[[Settings], str]


def _fixed(pattern: str) -> Callable[[Settings], str]:
    return lambda _settings: pattern


TARGET_HANDLERS: dict[Target, TargetHandler] = {
    Target.CHK: TargetHandler(
        LatexProcessor.process_check,
        # the check log stays next to the source
        _fixed(r".^"),
    ),
    Target.DVI: TargetHandler(
        LatexProcessor.process_latex2dvi,
        _fixed(r"^(T$T\.(dvi|xdv)|.+(\.(ptx|eps|jpg|png)|\d+\.mps))$"),
    ),
    Target.PDF: TargetHandler(
        LatexProcessor.process_latex2pdf,
        _fixed(r"^T$T\.pdf$"),
    ),
    Target.HTML: TargetHandler(
        LatexProcessor.process_latex2html,
        lambda settings: settings.pattern_t4ht_output_files,
    ),
    Target.ODT: TargetHandler(
        LatexProcessor.process_latex2odt,
        _fixed(r"^T$T\.(odt|fodt|uot)$"),
    ),
    Target.DOCX: TargetHandler(
        LatexProcessor.process_latex2docx,
        _fixed(r"^T$T\.(doc(|6|95|x|x7)|rtf)$"),
    ),
    Target.RTF: TargetHandler(
        LatexProcessor.process_latex2rtf,
        _fixed(r"^T$T\.rtf$"),
    ),
    Target.TXT: TargetHandler(
        LatexProcessor.process_latex2txt,
        _fixed(r"^T$T\.txt$"),
    ),
}

_unhandled = set(Target) - TARGET_HANDLERS.keys()
if _unhandled:  # pragma: no cover - guards additions to Target
    raise RuntimeError(f"Targets without handler: {sorted(t.value for t in _unhandled)}")


def handler_for(target: Target) -> TargetHandler:
    return TARGET_HANDLERS[target]


def process_target(processor: LatexProcessor, target: Target, desc: LatexMainDesc) -> None:
    """Convert ``desc`` into ``target``."""
    handler_for(target).process(processor, desc)


def output_pattern(target: Target, settings: Settings) -> str:
    """Return the ``T$T`` pattern of the files ``target`` delivers."""
    return handler_for(target).output_pattern(settings)


__all__ = [
    "TARGET_HANDLERS",
    "TargetHandler",
    "handler_for",
    "output_pattern",
    "process_target",
]
