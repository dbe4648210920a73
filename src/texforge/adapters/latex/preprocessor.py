"""Graphics conversion, main document detection and clearing of generated files.

Every regular file of the source tree is dispatched by suffix:

- ``.fig``: fig2dev renders the graphic and its LaTeX wrapper (``.ptx``).
- ``.gp`` / ``.plt``: gnuplot's ``cairolatex`` terminal does the same.
- ``.mp``: MetaPost writes ``.mps`` output.
- ``.svg``: converted by the LaTeX run itself, only clearing applies.
- ``.jpg`` / ``.png``: optional bounding boxes through ``ebb``.
- ``.bib``: reported only.
- ``.tex``: tested against the main document pattern.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from texforge.core.artifacts import LatexMainDesc
from texforge.core.config import LatexDev, Settings
from texforge.core.diagnostics import LogWrapper
from texforge.core.files import (
    DirNode,
    TexFileUtils,
    file_filter,
    is_hidden,
    replace_suffix,
    suffix_of,
)

from .executor import CommandRunner
from .logscan import LogClassifier, LogMatch
from .processor import split_options


SUFFIX_PTX = ".ptx"
SUFFIX_AUX = ".aux"


class LatexPreProcessor:
    """Prepare a source tree for the conversion of its main documents."""

    def __init__(
        self,
        settings: Settings,
        emitter: LogWrapper,
        *,
        runner: CommandRunner | None = None,
        classifier: LogClassifier | None = None,
        file_utils: TexFileUtils | None = None,
    ) -> None:
        self.settings = settings
        self.log = emitter
        self.runner = runner or CommandRunner(emitter, timeout=settings.command_timeout)
        self.classifier = classifier or LogClassifier(emitter)
        self.file_utils = file_utils or TexFileUtils(emitter)

    def _execute(self, source: Path, command: str, args: list[str], *targets: Path) -> None:
        self.runner.execute(source.parent, self.settings.tex_path, command, args, *targets)

    # -- graphics ----------------------------------------------------------

    def run_fig2dev(self, fig: Path) -> None:
        """Render ``fig`` as graphic plus LaTeX wrapper for the configured backend."""
        self.log.info(f"Processing fig-file '{fig}'.")
        dev = self.settings.latex_dev
        settings = self.settings
        command = settings.fig2dev_command
        graphic = replace_suffix(fig, dev.graphics_suffix)
        ptx = replace_suffix(fig, SUFFIX_PTX)
        gen_options = split_options(settings.fig2dev_gen_options)

        self.log.debug(f"Running {command} -L {dev.xfig_language} on '{fig.name}'.")
        args = [
            "-L",
            dev.xfig_language,
            *gen_options,
            *split_options(settings.fig2dev_pdf_eps_options),
            fig.name,
            graphic.name,
        ]
        self._execute(fig, command, args, graphic)

        self.log.debug(f"Running {command} -L {dev.xfig_tex_language} on '{fig.name}'.")
        args = [
            "-L",
            dev.xfig_tex_language,
            *gen_options,
            *split_options(settings.fig2dev_ptx_options),
            "-p",
            graphic.name,
            fig.name,
            ptx.name,
        ]
        self._execute(fig, command, args, ptx)

    def run_gnuplot(self, plot: Path) -> None:
        self.log.info(f"Processing gnuplot-file '{plot}'.")
        dev = self.settings.latex_dev
        command = self.settings.gnuplot_command
        graphic = replace_suffix(plot, dev.graphics_suffix)
        ptx = replace_suffix(plot, SUFFIX_PTX)
        parts = ("set terminal cairolatex", dev.gnuplot_language, self.settings.gnuplot_options)
        terminal = " ".join(part for part in parts if part)
        script = f"{terminal};set output '{ptx.name}';load '{plot.name}'"
        self.log.debug(f"Running {command} -e... on '{plot.name}'.")
        self._execute(plot, command, ["-e", script], graphic, ptx)

    def run_metapost(self, source: Path) -> None:
        self.log.info(f"Processing metapost-file '{source}'.")
        command = self.settings.metapost_command
        args = [*split_options(self.settings.metapost_options), source.name]
        self.log.debug(f"Running {command} on '{source.name}'.")
        self._execute(source, command, args, replace_suffix(source, ".mps"))
        log_file = replace_suffix(source, ".log")
        self.classifier.report_errors(log_file, command, self.settings.pattern_err_mpost)
        self.classifier.report_warnings(log_file, command, self.settings.pattern_warn_mpost)

    def run_svg(self, svg: Path) -> None:
        self.log.info(f"Processing svg-file '{svg}' deferred to LaTeX run.")

    def run_ebb(self, image: Path) -> None:
        """Write ``.xbb`` and ``.bb`` bounding boxes when configured."""
        if not self.settings.create_bounding_boxes:
            kind = suffix_of(image)[1:].upper()
            self.log.info(f"{kind}-file '{image}' needs no processing.")
            return
        command = self.settings.ebb_command
        options = split_options(self.settings.ebb_options)
        self.log.debug(f"Running {command} twice on '{image.name}'.")
        self._execute(image, command, ["-x", *options, image.name], replace_suffix(image, ".xbb"))
        self._execute(image, command, ["-m", *options, image.name], replace_suffix(image, ".bb"))

    def report_bibliography(self, bib: Path) -> None:
        self.log.info(f"Found bibliography file '{bib}'.")

    # -- clearing ----------------------------------------------------------

    def _delete_siblings(self, source: Path, *suffixes: str) -> None:
        for suffix in suffixes:
            self.file_utils.delete_if_exists(replace_suffix(source, suffix))

    def clear_graphic(self, source: Path) -> None:
        self.log.info(f"Deleting targets of file '{source}'.")
        self._delete_siblings(
            source, SUFFIX_PTX, LatexDev.PDF.graphics_suffix, LatexDev.DVIPS.graphics_suffix
        )

    def clear_metapost(self, source: Path) -> None:
        self.log.info(f"Deleting targets of graphic-file '{source}'.")
        self._delete_siblings(source, ".log", ".fls", ".mpx", ".mps")

    def clear_svg(self, svg: Path) -> None:
        self.log.info(f"Deleting targets of svg-file '{svg}'.")
        self._delete_siblings(
            svg,
            LatexDev.PDF.inkscape_tex_suffix,
            LatexDev.PDF.graphics_suffix,
            LatexDev.DVIPS.inkscape_tex_suffix,
            LatexDev.DVIPS.graphics_suffix,
        )

    def clear_bounding_boxes(self, image: Path) -> None:
        self.log.info(f"Deleting bounding boxes of file '{image}' if present.")
        self._delete_siblings(image, ".xbb", ".bb")

    def clear_nothing(self, source: Path) -> None:
        return

    def clear_tex_if_latex_main(self, tex: Path) -> bool:
        """Delete what a main document generated; ``False`` if ``tex`` is none."""
        if self.latex_main_desc(tex) is None:
            return False
        self.log.info(f"Deleting targets of latex main file '{tex}'.")
        accept = file_filter(tex, self.settings.pattern_created_from_latex_main, allow_dirs=True)
        self.file_utils.delete_matching(tex, accept)
        return True

    def clear_tex_no_latex_main(self, tex: Path) -> None:
        self.log.info(f"Deleting aux file of tex file '{tex}' if present (included).")
        self._delete_siblings(tex, SUFFIX_AUX)

    # -- main documents ----------------------------------------------------

    def latex_main_desc(self, tex: Path) -> LatexMainDesc | None:
        """Return the descriptor of ``tex`` when it is a main document."""
        found = self.classifier.find(tex, self.settings.pattern_latex_main_file)
        if found.state is LogMatch.UNREADABLE:
            self.log.warning(f"Cannot read tex file '{tex}'; may bear latex main file.")
            return None
        if not found.state.found:
            return None
        doc_class = found.match.groupdict().get("docClass") if found.match else None
        return LatexMainDesc.from_tex(tex, doc_class)

    def _add_if_latex_main(self, tex: Path, descs: list[LatexMainDesc]) -> None:
        desc = self.latex_main_desc(tex)
        if desc is not None:
            self.log.info(f"Detected {desc.doc_class}-file '{tex}'.")
            descs.append(desc)

    # -- tree walks --------------------------------------------------------

    def process_graphics_select_main(self, directory: Path, node: DirNode) -> list[LatexMainDesc]:
        """Convert the graphics below ``directory`` and return its main documents.

        The result is sorted and already filtered by the included and excluded
        main file names.
        """
        skipped: set[str] = set()
        descs: list[LatexMainDesc] = []
        self._process_dir(directory, node, skipped, descs, self.settings.read_recursive)
        if skipped:
            self.log.warning(
                f"Skipped processing of files with suffixes {sorted(skipped)}."
            )
        return self._select_main_files(sorted(descs))

    def _process_dir(
        self,
        directory: Path,
        node: DirNode,
        skipped: set[str],
        descs: list[LatexMainDesc],
        recursive: bool,
    ) -> None:
        scheduled: dict[Path, SuffixHandler] = {}
        local: list[LatexMainDesc] = []
        for name in sorted(node.file_names):
            source = directory / name
            if is_hidden(source):
                self.log.debug(f"Skipping hidden file '{source}'.")
                continue
            suffix = suffix_of(source)
            handler = SUFFIX_HANDLERS.get(suffix)
            if handler is None:
                self.log.debug(f"Skipping file '{source}' without handler.")
                skipped.add(suffix)
                continue
            scheduled[source] = handler
            if handler.detects_main:
                self._add_if_latex_main(source, local)

        descs.extend(local)
        for desc in local:
            accept = file_filter(desc.tex, self.settings.pattern_created_from_latex_main)
            for source in [path for path in scheduled if accept(path)]:
                self.log.warning(
                    f"Skip processing '{source}': interpreted as target of '{desc.tex}'."
                )
                del scheduled[source]

        for source, handler in scheduled.items():
            handler.process(self, source)

        if recursive:
            for name, child in sorted(node.subdirs.items()):
                self._process_dir(directory / name, child, skipped, descs, recursive)

    def _select_main_files(self, descs: list[LatexMainDesc]) -> list[LatexMainDesc]:
        known: set[str] = set()
        ambiguous: set[str] = set()
        for desc in descs:
            if desc.bare in known:
                ambiguous.add(desc.bare)
            known.add(desc.bare)
        if ambiguous:
            self.log.warning(
                "Latex main files with the same name in different directories: "
                f"{sorted(ambiguous)}."
            )

        selected = list(descs)
        included = self.settings.main_files_included
        excluded = self.settings.main_files_excluded
        if included:
            unknown = included - known
            if unknown:
                self.log.warning(
                    f"Included latex files which are not latex main files: {sorted(unknown)}."
                )
            selected = [desc for desc in selected if desc.bare in included]
        unknown = excluded - known
        if unknown:
            self.log.warning(
                f"Excluded latex files which are not latex main files: {sorted(unknown)}."
            )
        selected = [desc for desc in selected if desc.bare not in excluded]

        if included or excluded:
            unclear = (included | excluded) & ambiguous
            if unclear:
                self.log.warning(
                    "Included/Excluded latex main files not identified by their name: "
                    f"{sorted(unclear)}."
                )
            names = sorted({desc.bare for desc in selected})
            self.log.info(f"After inclusion/exclusion latex main files are {names}.")
        return sorted(selected)

    def clear_created(self, directory: Path, node: DirNode | None = None) -> None:
        """Delete generated files below ``directory``, deepest directories first."""
        if node is None:
            node = DirNode.snapshot(directory, self.log)
        for name, child in sorted(node.subdirs.items()):
            self.clear_created(directory / name, child)

        scheduled: dict[Path, SuffixHandler] = {}
        for name in sorted(node.file_names):
            source = directory / name
            handler = SUFFIX_HANDLERS.get(suffix_of(source))
            if handler is None:
                continue
            if handler.detects_main:
                # main documents clear their outputs before anything else runs
                if not self.clear_tex_if_latex_main(source):
                    scheduled[source] = handler
            else:
                scheduled[source] = handler

        for source, handler in scheduled.items():
            if source.exists():
                handler.clear(self, source)


def _process_tex(proc: LatexPreProcessor, tex: Path) -> None:
    return


@dataclass(frozen=True, slots=True)
class SuffixHandler:
    """Conversion and clearing routines for one source suffix."""

    process: Callable[[LatexPreProcessor, Path], None]
    clear: Callable[[LatexPreProcessor, Path], None]
    detects_main: bool = False


_GRAPHIC = SuffixHandler(LatexPreProcessor.run_fig2dev, LatexPreProcessor.clear_graphic)
_PLOT = SuffixHandler(LatexPreProcessor.run_gnuplot, LatexPreProcessor.clear_graphic)
_IMAGE = SuffixHandler(LatexPreProcessor.run_ebb, LatexPreProcessor.clear_bounding_boxes)

SUFFIX_HANDLERS: dict[str, SuffixHandler] = {
    ".fig": _GRAPHIC,
    ".gp": _PLOT,
    ".plt": _PLOT,
    ".mp": SuffixHandler(LatexPreProcessor.run_metapost, LatexPreProcessor.clear_metapost),
    ".svg": SuffixHandler(LatexPreProcessor.run_svg, LatexPreProcessor.clear_svg),
    ".jpg": _IMAGE,
    ".png": _IMAGE,
    ".bib": SuffixHandler(LatexPreProcessor.report_bibliography, LatexPreProcessor.clear_nothing),
    ".tex": SuffixHandler(
        _process_tex, LatexPreProcessor.clear_tex_no_latex_main, detects_main=True
    ),
}


__all__ = [
    "SUFFIX_HANDLERS",
    "LatexPreProcessor",
    "SuffixHandler",
]
