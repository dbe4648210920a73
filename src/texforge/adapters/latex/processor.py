"""Per-document conversion driving LaTeX and its auxiliary tools.

A main document goes through a primary LaTeX run, the auxiliary tools it asks
for (BibTeX, MakeIndex or SplitIndex, MakeGlossaries) and a bounded sequence of
reruns until the log no longer requests another pass. Target-specific
conversions (HTML, ODT, DOCX, RTF, TXT, ChkTeX) are built on top of that.

Problems reported in tool logs are logged and never abort the conversion.
Only a tool that cannot be started raises
:class:`~texforge.core.exceptions.BuildFailureError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
import shlex

from texforge.core.artifacts import LatexMainDesc
from texforge.core.config import UNLIMITED_RERUNS, LatexDev, Settings
from texforge.core.diagnostics import LogWrapper
from texforge.core.files import replace_suffix

from .executor import CommandResult, CommandRunner
from .logscan import LogClassifier, LogMatch


PATTERN_NEED_BIBTEX_RUN = r"^\\bibdata"
PATTERN_BAD_BOXES = r"^(Ov|Und)erfull \\[hv]box \("

# \indexentry[<name>]{...}: an entry of an explicitly named index (package splitidx).
PATTERN_IDX_EXPLICIT = r"^(\\indexentry)\[([^\]]*)\](.*)$"
GROUP_IDX_IDENT = 2
IMPLICIT_IDX_IDENT = "idx"
SEP_IDX_IDENT = "-"

XELATEX = "xelatex"


def rerun_count(
    has_bibliography: bool,
    has_index_or_glossary: bool,
    has_toc: bool,
    has_lists: bool,
) -> int:
    """Return the number of LaTeX passes required after the first one.

    A bibliography needs two more passes: one to pull the citations in and one
    to settle the references. An index or glossary needs one, or two when a
    table of contents has to pick up their page numbers as well.
    """
    if has_bibliography:
        return 2
    if has_index_or_glossary:
        return 2 if has_toc else 1
    return 1 if has_toc or has_lists else 0


def split_options(options: str) -> list[str]:
    """Split an option string the way a POSIX shell would."""
    return shlex.split(options)


class LatexProcessor:
    """Convert LaTeX main documents into the supported targets."""

    def __init__(
        self,
        settings: Settings,
        emitter: LogWrapper,
        *,
        runner: CommandRunner | None = None,
        classifier: LogClassifier | None = None,
    ) -> None:
        self.settings = settings
        self.log = emitter
        self.runner = runner or CommandRunner(emitter, timeout=settings.command_timeout)
        self.classifier = classifier or LogClassifier(emitter)

    # -- execution helpers -------------------------------------------------

    def _execute(
        self,
        desc: LatexMainDesc,
        command: str,
        args: Sequence[str],
        *targets: Path,
        check_returncode: bool = True,
    ) -> CommandResult:
        return self.runner.execute(
            desc.parent_dir,
            self.settings.tex_path,
            command,
            list(args),
            *targets,
            check_returncode=check_returncode,
        )

    def log_errors(self, log_file: Path, command: str, pattern: str) -> None:
        self.classifier.report_errors(log_file, command, pattern)

    def log_warnings(self, log_file: Path, command: str, pattern: str) -> None:
        self.classifier.report_warnings(log_file, command, pattern)

    def log_latex_warnings(self, log_file: Path, command: str) -> None:
        """Report bad boxes and general warnings, each behind its debug flag."""
        if not log_file.exists():
            return
        if self.settings.debug_bad_boxes:
            if self.classifier.match(log_file, PATTERN_BAD_BOXES).found:
                self.log.warning(
                    f"Running {command} created bad boxes logged in '{log_file.name}'."
                )
        if self.settings.debug_warnings:
            self.log_warnings(log_file, command, self.settings.pattern_warn_latex)

    def needs_rerun(self, log_file: Path, command: str, pattern: str) -> bool:
        state = self.classifier.match(log_file, pattern)
        if state is LogMatch.UNREADABLE:
            self.log.warning(
                f"Cannot read log file '{log_file.name}'; {command} may require rerun."
            )
            return False
        return state.found

    # -- single tool runs --------------------------------------------------

    def latex_arguments(self, desc: LatexMainDesc, dev: LatexDev) -> list[str]:
        args = split_options(self.settings.latex2pdf_options)
        if not dev.is_default:
            if self._is_xelatex():
                args.append("-no-pdf")
            else:
                args.append(f"-output-format={dev.output_format}")
        args.append(desc.tex.name)
        return args

    def _is_xelatex(self) -> bool:
        return Path(self.settings.latex2pdf_command).name == XELATEX

    def _latex_target(self, desc: LatexMainDesc, dev: LatexDev) -> Path:
        if dev.is_default:
            return desc.pdf
        return desc.xdv if self._is_xelatex() else desc.dvi

    def run_latex2dev(self, desc: LatexMainDesc, dev: LatexDev) -> None:
        command = self.settings.latex2pdf_command
        self.log.debug(f"Running {command} on '{desc.tex.name}'.")
        self._execute(desc, command, self.latex_arguments(desc, dev), self._latex_target(desc, dev))
        self.log_errors(desc.log, command, self.settings.pattern_err_latex)

    def run_bibtex_by_need(self, desc: LatexMainDesc) -> bool:
        """Run BibTeX when the aux file declares bibliography data."""
        state = self.classifier.match(desc.aux, PATTERN_NEED_BIBTEX_RUN)
        if state is LogMatch.UNREADABLE:
            self.log.warning(
                f"Cannot read aux file '{desc.aux.name}'; bibliography may be outdated."
            )
            return False
        self.log.debug(f"BibTeX run required? {state.found}")
        if not state.found:
            return False

        command = self.settings.bibtex_command
        self.log.debug(f"Running {command} on '{desc.aux.name}'.")
        args = [*split_options(self.settings.bibtex_options), desc.aux.name]
        self._execute(desc, command, args, desc.bbl)
        self.log_errors(desc.blg, command, self.settings.pattern_err_bibtex)
        self.log_warnings(desc.blg, command, self.settings.pattern_warn_bibtex)
        return True

    def run_makeindex_by_need(self, desc: LatexMainDesc) -> bool:
        """Run MakeIndex, or SplitIndex for named indices, when an idx file exists."""
        need_run = desc.idx.exists()
        self.log.debug(f"MakeIndex run required? {need_run}")
        explicit: set[str] | None = None
        if need_run:
            explicit = self.classifier.collect_matches(
                desc.idx, PATTERN_IDX_EXPLICIT, GROUP_IDX_IDENT
            )
            if explicit is None:
                self.log.warning(
                    f"Cannot read idx file '{desc.idx.name}'; skip creation of index."
                )
                return False

        split_files = self._split_index_files(desc)
        if split_files and not explicit:
            self.log.warning(
                f"Use package 'splitidx' without option 'split' in '{desc.tex.name}'."
            )

        if explicit is None:
            return False
        if explicit:
            self.run_splitindex(desc, explicit)
        else:
            self.run_makeindex(desc)
        return True

    def _split_index_files(self, desc: LatexMainDesc) -> list[Path]:
        prefix = f"{desc.bare}{SEP_IDX_IDENT}"
        try:
            entries = sorted(desc.parent_dir.iterdir())
        except OSError as exc:
            self.log.warning(
                f"Cannot read directory '{desc.parent_dir}'; build may be incomplete.", exc
            )
            return []
        return [
            entry
            for entry in entries
            if entry.name.startswith(prefix)
            and entry.name.endswith(".idx")
            and len(entry.name) > len(prefix) + len(".idx")
        ]

    def run_makeindex(self, desc: LatexMainDesc) -> None:
        command = self.settings.makeindex_command
        self.log.debug(f"Running {command} on '{desc.idx.name}'.")
        args = [*split_options(self.settings.makeindex_options), desc.idx.name]
        self._execute(desc, command, args, desc.ind)
        self.log_errors(desc.ilg, command, self.settings.pattern_err_makeindex)
        self.log_warnings(desc.ilg, command, self.settings.pattern_warn_makeindex)

    def run_splitindex(self, desc: LatexMainDesc, identifiers: set[str]) -> None:
        """Split the idx file per named index and run MakeIndex on each part."""
        command = self.settings.splitindex_command
        makeindex = self.settings.makeindex_command
        self.log.debug(f"Running {command} on '{desc.idx.name}'.")
        args = [
            "-m",
            makeindex,
            "-i",
            PATTERN_IDX_EXPLICIT,
            "-r",
            "$1$3",
            "-s",
            f"{SEP_IDX_IDENT}${GROUP_IDX_IDENT}",
            *split_options(self.settings.splitindex_options),
            desc.bare,
        ]
        makeindex_options = split_options(self.settings.makeindex_options)
        if makeindex_options:
            args.extend(["--", *makeindex_options])

        names = sorted(identifiers | {IMPLICIT_IDX_IDENT})
        parts = [f"{desc.bare}{SEP_IDX_IDENT}{name}" for name in names]
        ind_files = [desc.parent_dir / f"{part}.ind" for part in parts]
        self._execute(desc, command, args, *ind_files)
        for part in parts:
            ilg = desc.parent_dir / f"{part}.ilg"
            self.log_errors(ilg, makeindex, self.settings.pattern_err_makeindex)
            self.log_warnings(ilg, makeindex, self.settings.pattern_warn_makeindex)

    def run_makeglossaries_by_need(self, desc: LatexMainDesc) -> bool:
        need_run = desc.glo.exists()
        self.log.debug(f"MakeGlossaries run required? {need_run}")
        if not need_run:
            return False
        command = self.settings.makeglossaries_command
        self.log.debug(f"Running {command} on '{desc.bare}'.")
        args = [*split_options(self.settings.makeglossaries_options), desc.bare]
        self._execute(desc, command, args, desc.gls)
        self.log_errors(
            desc.glg,
            command,
            f"{self.settings.pattern_err_makeglossaries}|{self.settings.pattern_err_xindy}",
        )
        self.log_warnings(
            desc.glg,
            command,
            f"{self.settings.pattern_warn_makeindex}|{self.settings.pattern_warn_xindy}",
        )
        return True

    def run_dvi2pdf(self, desc: LatexMainDesc) -> None:
        command = self.settings.dvi2pdf_command
        if desc.dvi.exists() and desc.xdv.exists():
            self.log.warning(
                f"Found both '{desc.dvi.name}' and '{desc.xdv.name}'; converting the latter."
            )
        self.log.debug(f"Running {command} on '{desc.bare}'.")
        args = [*split_options(self.settings.dvi2pdf_options), desc.bare]
        self._execute(desc, command, args, desc.pdf)

    def htlatex_arguments(self, desc: LatexMainDesc) -> list[str]:
        # htlatex takes its option groups as positional arguments
        settings = self.settings
        return [
            desc.tex.name,
            settings.tex4ht_sty_options,
            settings.tex4ht_options,
            settings.t4ht_options,
            settings.latex2pdf_options,
        ]

    def run_latex2html(self, desc: LatexMainDesc) -> None:
        command = self.settings.tex4ht_command
        self.log.debug(f"Running {command} on '{desc.tex.name}'.")
        self._execute(desc, command, self.htlatex_arguments(desc), desc.with_suffix(".html"))
        self.log_errors(desc.log, command, self.settings.pattern_err_latex)
        self.log_latex_warnings(desc.log, command)

    def run_latex2odt(self, desc: LatexMainDesc) -> None:
        command = self.settings.tex4ht_command
        self.log.debug(f"Running {command} on '{desc.tex.name}'.")
        args = [desc.tex.name, "xhtml,ooffice", "ooffice/! -cmozhtf", "-coo -cvalidate"]
        self._execute(desc, command, args, desc.with_suffix(".odt"))
        self.log_errors(desc.log, command, self.settings.pattern_err_latex)
        self.log_latex_warnings(desc.log, command)

    def run_odt2doc(self, desc: LatexMainDesc) -> None:
        command = self.settings.odt2doc_command
        odt = desc.with_suffix(".odt")
        self.log.debug(f"Running {command} on '{odt.name}'.")
        options = split_options(self.settings.odt2doc_options)
        suffix = "docx"
        for option in options:
            if option.startswith("-f") and len(option) > 2:
                suffix = option[2:]
        self._execute(desc, command, [*options, odt.name], desc.with_suffix(f".{suffix}"))

    def run_latex2rtf(self, desc: LatexMainDesc) -> None:
        command = self.settings.latex2rtf_command
        self.log.debug(f"Running {command} on '{desc.tex.name}'.")
        args = [*split_options(self.settings.latex2rtf_options), desc.tex.name]
        self._execute(desc, command, args, replace_suffix(desc.tex, ".rtf"))

    def run_pdf2txt(self, desc: LatexMainDesc) -> None:
        command = self.settings.pdf2txt_command
        self.log.debug(f"Running {command} on '{desc.pdf.name}'.")
        args = [*split_options(self.settings.pdf2txt_options), desc.pdf.name]
        self._execute(desc, command, args, desc.with_suffix(".txt"))

    def run_check(self, desc: LatexMainDesc) -> None:
        command = self.settings.chktex_command
        clg = desc.with_suffix(".clg")
        self.log.debug(f"Running {command} on '{desc.tex.name}'.")
        args = [*split_options(self.settings.chktex_options), "-o", clg.name, desc.tex.name]
        result = self._execute(desc, command, args, clg, check_returncode=False)
        code = result.returncode
        if code == 0:
            if clg.exists() and clg.stat().st_size:
                self.log.info(f"Checker '{command}' logged a message in '{clg.name}'.")
        elif code == 1:
            self.log.error(f"Running {command} failed with return code 1.")
        elif code == 2:
            self.log.warning(f"Checker '{command}' logged a warning in '{clg.name}'.")
        elif code == 3:
            self.log.error(f"Checker '{command}' logged an error in '{clg.name}'.")
        else:
            self.log.error(f"For command '{command}' found unexpected return code {code}.")

    # -- pipelines ---------------------------------------------------------

    def preprocess(self, desc: LatexMainDesc, dev: LatexDev) -> int:
        """Run LaTeX once plus the auxiliary tools and return the reruns needed."""
        self.run_latex2dev(desc, dev)
        has_bibliography = self.run_bibtex_by_need(desc)
        ran_index = self.run_makeindex_by_need(desc)
        ran_glossary = self.run_makeglossaries_by_need(desc)
        return rerun_count(
            has_bibliography,
            ran_index or ran_glossary,
            desc.toc.exists(),
            desc.lof.exists() or desc.lot.exists(),
        )

    def process_latex2dev_core(self, desc: LatexMainDesc, dev: LatexDev) -> None:
        """Run LaTeX until the log stops asking for reruns or the bound is hit."""
        command = self.settings.latex2pdf_command
        remaining = self.preprocess(desc, dev)
        if remaining > 0:
            self.log.debug(
                f"Rerun {command} to update table of contents, bibliography, index or the like."
            )
            self.run_latex2dev(desc, dev)
            remaining -= 1

        need_latex = remaining == 1 or self.needs_rerun(
            desc.log, command, self.settings.pattern_rerun_latex
        )
        need_makeindex = False
        max_reruns = self.settings.max_reruns
        num = 0
        while max_reruns == UNLIMITED_RERUNS or num < max_reruns:
            need_makeindex = self.needs_rerun(
                desc.log, self.settings.makeindex_command, self.settings.pattern_rerun_makeindex
            )
            need_latex = need_latex or need_makeindex
            if not need_latex:
                return
            self.log.debug(f"{command} must be rerun.")
            if need_makeindex:
                self.run_makeindex_by_need(desc)
            self.run_latex2dev(desc, dev)
            need_latex = self.needs_rerun(desc.log, command, self.settings.pattern_rerun_latex)
            num += 1

        if not need_latex:
            need_makeindex = self.classifier.match(
                desc.log, self.settings.pattern_rerun_makeindex
            ).found
        if need_latex or need_makeindex:
            self.log.warning(
                f"LaTeX requires rerun but maximum number {max_reruns} reached."
            )

    def process_latex2dev(self, desc: LatexMainDesc, dev: LatexDev) -> None:
        self.process_latex2dev_core(desc, dev)
        self.log_latex_warnings(desc.log, self.settings.latex2pdf_command)

    def process_latex2dvi(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Converting into dvi/xdv: LaTeX file '{desc.tex}'.")
        self.process_latex2dev(desc, LatexDev.DVIPS)

    def process_latex2pdf(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Converting into pdf: LaTeX file '{desc.tex}'.")
        dev = self.settings.latex_dev
        self.process_latex2dev(desc, dev)
        if dev.via_dvi:
            self.run_dvi2pdf(desc)

    def process_latex2html(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Converting into html: LaTeX file '{desc.tex}'.")
        self.preprocess(desc, self.settings.latex_dev)
        self.run_latex2html(desc)

    def process_latex2odt(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Converting into odt: LaTeX file '{desc.tex}'.")
        self.preprocess(desc, self.settings.latex_dev)
        self.run_latex2odt(desc)

    def process_latex2docx(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Converting into doc(x): LaTeX file '{desc.tex}'.")
        self.preprocess(desc, self.settings.latex_dev)
        self.run_latex2odt(desc)
        self.run_odt2doc(desc)

    def process_latex2rtf(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Converting into rtf: LaTeX file '{desc.tex}'.")
        self.run_latex2rtf(desc)

    def process_latex2txt(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Converting into txt: LaTeX file '{desc.tex}'.")
        dev = self.settings.latex_dev
        self.process_latex2dev_core(desc, dev)
        if dev.via_dvi:
            self.run_dvi2pdf(desc)
        self.run_pdf2txt(desc)

    def process_check(self, desc: LatexMainDesc) -> None:
        self.log.info(f"Checking: LaTeX file '{desc.tex}'.")
        self.run_check(desc)


__all__ = [
    "PATTERN_BAD_BOXES",
    "PATTERN_NEED_BIBTEX_RUN",
    "LatexProcessor",
    "rerun_count",
    "split_options",
]
