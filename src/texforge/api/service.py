"""Build orchestration entry points for the CLI and embedding integrations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from texforge.adapters.latex.executor import CommandRunner
from texforge.adapters.latex.logscan import LogClassifier
from texforge.adapters.latex.preprocessor import LatexPreProcessor
from texforge.adapters.latex.processor import LatexProcessor
from texforge.adapters.latex.targets import output_pattern, process_target
from texforge.core.artifacts import LatexMainDesc
from texforge.core.config import Settings, Target, output_dir, processing_dir, source_dir
from texforge.core.diagnostics import LoggingEmitter, LogWrapper
from texforge.core.exceptions import BuildFailureError
from texforge.core.files import DirNode, TexFileUtils, file_filter


@dataclass(slots=True)
class BuildReport:
    """Main documents converted by a build and the artifacts delivered for them."""

    documents: list[LatexMainDesc] = field(default_factory=list)
    artifacts: dict[Path, set[Path]] = field(default_factory=dict)

    def record(self, desc: LatexMainDesc, copied: Iterable[Path]) -> None:
        self.artifacts.setdefault(desc.tex, set()).update(copied)

    @property
    def artifact_count(self) -> int:
        return sum(len(paths) for paths in self.artifacts.values())


def ordered_targets(targets: Iterable[Target]) -> list[Target]:
    """Return the distinct targets in their canonical processing order."""
    order = list(Target)
    return sorted(set(targets), key=order.index)


class BuildService:
    """Run graphics preprocessing, conversion and output delivery over a tree."""

    def __init__(
        self,
        settings: Settings,
        emitter: LogWrapper | None = None,
        *,
        runner: CommandRunner | None = None,
        classifier: LogClassifier | None = None,
    ) -> None:
        self.settings = settings
        self.log: LogWrapper = emitter or LoggingEmitter()
        self.runner = runner or CommandRunner(self.log, timeout=settings.command_timeout)
        self.classifier = classifier or LogClassifier(self.log)
        self.file_utils = TexFileUtils(self.log)
        self.preprocessor = LatexPreProcessor(
            settings,
            self.log,
            runner=self.runner,
            classifier=self.classifier,
            file_utils=self.file_utils,
        )
        self.processor = LatexProcessor(
            settings, self.log, runner=self.runner, classifier=self.classifier
        )

    def _require_dir(self, directory: Path, role: str) -> Path:
        if not directory.is_dir():
            raise BuildFailureError(
                f"The {role} directory '{directory}' does not exist or is not a directory."
            )
        return directory

    def create(self, targets: Iterable[Target] | None = None) -> BuildReport:
        """Convert every main document into ``targets`` and deliver the outputs.

        Targets default to the configured ones. Files created in the
        processing directory are removed afterwards when ``clean_up`` is set,
        even if the build fails.
        """
        settings = self.settings
        selected = ordered_targets(targets if targets is not None else settings.targets)
        self.log.info("Creating targets " + ", ".join(t.value for t in selected) + ".")
        self.log.debug(f"Settings: {settings!r}")

        tex_dir = self._require_dir(source_dir(settings), "tex source")
        proc_dir = self._require_dir(processing_dir(settings), "tex processing")
        node = DirNode.snapshot(proc_dir, self.log)

        report = BuildReport()
        try:
            report.documents = self.preprocessor.process_graphics_select_main(proc_dir, node)
            for desc in report.documents:
                target_dir = self.file_utils.target_directory(
                    desc.tex, tex_dir, output_dir(settings)
                )
                for target in selected:
                    process_target(self.processor, target, desc)
                    accept = file_filter(desc.tex, output_pattern(target, settings))
                    copied = self.file_utils.copy_output_to_target(desc.tex, accept, target_dir)
                    report.record(desc, copied)
        finally:
            if settings.clean_up:
                self.log.debug(f"Cleaning up '{proc_dir}'.")
                self.file_utils.clean_up(node, proc_dir)
            else:
                self.log.debug("No cleanup.")
        return report

    def process_graphics(self) -> list[LatexMainDesc]:
        """Convert the graphics of the source tree without building documents."""
        self.log.debug(f"Settings: {self.settings!r}")
        proc_dir = self._require_dir(processing_dir(self.settings), "tex processing")
        node = DirNode.snapshot(proc_dir, self.log)
        return self.preprocessor.process_graphics_select_main(proc_dir, node)

    def clear_all(self) -> None:
        """Delete every file the build generates inside the processing directory."""
        self.log.debug(f"Settings: {self.settings!r}")
        proc_dir = self._require_dir(processing_dir(self.settings), "tex processing")
        self.preprocessor.clear_created(proc_dir)


__all__ = [
    "BuildReport",
    "BuildService",
    "ordered_targets",
]
