"""Configuration model consumed by the build pipeline.

Settings

`base_directory` (`Path`)
: Root that relative directories are resolved against. Defaults to the
  directory holding the configuration file, or the working directory.

`tex_src_directory` (`Path`)
: Directory holding the LaTeX sources, relative to `base_directory`.

`tex_src_proc_directory` (`Path`)
: Directory in which sources are processed, relative to `tex_src_directory`.
  The default `.` processes the sources in place.

`output_directory` (`Path`)
: Directory receiving the artifacts. The layout below the source directory is
  mirrored.

`targets` (`tuple[Target, ...]`)
: Output targets built for every main document, in order.

`max_reruns` (`int`)
: Upper bound of LaTeX reruns after the forced ones. `-1` removes the bound.

`pattern_*` (`str`)
: Regular expressions applied line by line to tool logs. Patterns starting
  with `\\A` are matched against the text from the start of the file instead.

`*_command` / `*_options` (`str`)
: Executable name of each external tool and its option string. Options are
  split like a POSIX shell would.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import re
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
import yaml

from .exceptions import ConfigurationError, UnknownTargetError


UNLIMITED_RERUNS = -1


class Target(str, Enum):
    """Output targets a main document can be converted into."""

    CHK = "chk"
    DVI = "dvi"
    PDF = "pdf"
    HTML = "html"
    ODT = "odt"
    DOCX = "docx"
    RTF = "rtf"
    TXT = "txt"


@dataclass(frozen=True, slots=True)
class _DevTraits:
    xfig_language: str
    gnuplot_language: str
    graphics_suffix: str
    inkscape_tex_suffix: str
    output_format: str
    via_dvi: bool


class LatexDev(Enum):
    """Output backend of the LaTeX engine and the graphics feeding it."""

    PDF = "pdf"
    DVIPS = "dvips"

    @property
    def traits(self) -> _DevTraits:
        return _DEV_TRAITS[self]

    @property
    def xfig_language(self) -> str:
        """Language passed to fig2dev for the embedded graphic."""
        return self.traits.xfig_language

    @property
    def xfig_tex_language(self) -> str:
        """Language passed to fig2dev for the LaTeX wrapper of the graphic."""
        return f"{self.traits.xfig_language}_t"

    @property
    def gnuplot_language(self) -> str:
        return self.traits.gnuplot_language

    @property
    def graphics_suffix(self) -> str:
        return self.traits.graphics_suffix

    @property
    def inkscape_tex_suffix(self) -> str:
        return self.traits.inkscape_tex_suffix

    @property
    def output_format(self) -> str:
        return self.traits.output_format

    @property
    def via_dvi(self) -> bool:
        return self.traits.via_dvi

    @property
    def is_default(self) -> bool:
        """Whether the engine produces this format without extra options."""
        return self is LatexDev.PDF


_DEV_TRAITS: dict[LatexDev, _DevTraits] = {
    LatexDev.PDF: _DevTraits(
        xfig_language="pdftex",
        gnuplot_language="pdf",
        graphics_suffix=".pdf",
        inkscape_tex_suffix=".pdf_tex",
        output_format="pdf",
        via_dvi=False,
    ),
    LatexDev.DVIPS: _DevTraits(
        xfig_language="pstex",
        gnuplot_language="eps",
        graphics_suffix=".eps",
        inkscape_tex_suffix=".eps_tex",
        output_format="dvi",
        via_dvi=True,
    ),
}


DEFAULT_PATTERN_LATEX_MAIN_FILE = (
    r"\A(%! LMP( docClass=(?P<docClassMagic>[^} ]+))?"
    r"( targets=(?P<targetsMagic>[a-z,]+))?(?:\r\n|\n|\r))?"
    r"(\\RequirePackage\s*(\[(\s|\w|,)*\])?\s*\{(\w|-)+\}\s*(\[(\d|\.)+\])?|"
    r"%.*$|"
    r"\\PassOptionsToPackage\s*\{\w+\}\s*\{(\w|-)+\}|"
    r"\\input\s*\{[^{}]*\}|"
    r"\s)*"
    r"\\(documentstyle|documentclass)\s*(\[[^\]]*\])?\s*\{(?P<docClass>[^} ]+)\}"
)

DEFAULT_PATTERN_CREATED_FROM_LATEX_MAIN = (
    r"^(T$T(\.([^.]*|synctex(\(busy\))?(\.gz)?|out\.ps|run\.xml|\d+\.vrb)|"
    r"(-|ch|se|su|ap|li)?\d+\.x?html?|"
    r"\d+x\.x?bb|\d+x?\.png|-\d+\.svg|"
    r"-.+\.(idx|ind|ilg))|"
    r"zzT$T\.e?ps|"
    r"(cmsy)\d+(-c)?-\d+c?\.png|"
    r"(pdf|xe|lua)?latex\d+\.fls|"
    r"texput\.(fls|log))$"
)

DEFAULT_PATTERN_WARN_LATEX = (
    r"^(LaTeX Warning: |LaTeX Font Warning: |(Package|Class) .+ Warning: |"
    r"pdfTeX warning( \((\d|\w)+\))?: |\* fontspec warning: |"
    r"Missing character: There is no .* in font .*!$|"
    r"A space is missing\. (No warning)\.)"
)

DEFAULT_PATTERN_RERUN_LATEX = (
    r"^(LaTeX Warning: Label\(s\) may have changed\. "
    r"Rerun to get cross-references right\.$|"
    r"Package \w+ Warning: .*Rerun( .*|\.)$|"
    r"\(\w+\) +Rerun .*$|"
    r"LaTeX Warning: Etaremune labels have changed\.$|"
    r"\(rerunfilecheck\) +Rerun to get outlines right$)"
)

DEFAULT_PATTERN_RERUN_MAKEINDEX = (
    r"^\(rerunfilecheck\) +Rerun LaTeX/makeindex to get index right\.$"
)

DEFAULT_PATTERN_T4HT_OUTPUT_FILES = (
    r"^(T$T(((ch|se|su|ap|li)?\d+)?\.x?html?|\.css|\d+x\.x?bb|\d+x\.png|-\d+\.svg)|"
    r"(cmsy)\d+(-c)?-\d+c?\.png)$"
)


class Settings(BaseModel):
    """Immutable configuration of one build invocation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # directories
    base_directory: Path = Field(default_factory=Path.cwd)
    tex_src_directory: Path = Path("tex")
    tex_src_proc_directory: Path = Path(".")
    output_directory: Path = Path("build")
    read_recursive: bool = True
    tex_path: Path | None = None
    clean_up: bool = True
    command_timeout: float | None = Field(default=None, gt=0)

    # selection of main documents and targets
    targets: tuple[Target, ...] = (Target.PDF,)
    main_files_included: frozenset[str] = frozenset()
    main_files_excluded: frozenset[str] = frozenset()
    pattern_latex_main_file: str = DEFAULT_PATTERN_LATEX_MAIN_FILE
    pattern_created_from_latex_main: str = DEFAULT_PATTERN_CREATED_FROM_LATEX_MAIN

    # graphics
    fig2dev_command: str = "fig2dev"
    fig2dev_gen_options: str = ""
    fig2dev_pdf_eps_options: str = ""
    fig2dev_ptx_options: str = ""
    gnuplot_command: str = "gnuplot"
    gnuplot_options: str = ""
    metapost_command: str = "mpost"
    metapost_options: str = (
        '-interaction=nonstopmode -recorder -s prologues=2 -s outputtemplate="%j.mps"'
    )
    pattern_err_mpost: str = r"(^! )"
    pattern_warn_mpost: str = r"^([Ww]arning: )"
    create_bounding_boxes: bool = False
    ebb_command: str = "ebb"
    ebb_options: str = "-v"

    # latex
    latex2pdf_command: str = "lualatex"
    latex2pdf_options: str = "-interaction=nonstopmode -synctex=1 -recorder -shell-escape"
    pdf_via_dvi: bool = False
    dvi2pdf_command: str = "dvipdfmx"
    dvi2pdf_options: str = "-V1.7"
    pattern_err_latex: str = r"(^! )"
    pattern_warn_latex: str = DEFAULT_PATTERN_WARN_LATEX
    pattern_rerun_latex: str = DEFAULT_PATTERN_RERUN_LATEX
    max_reruns: int = Field(default=5, ge=UNLIMITED_RERUNS)
    debug_bad_boxes: bool = True
    debug_warnings: bool = True

    # bibliography, index and glossary
    bibtex_command: str = "bibtex"
    bibtex_options: str = ""
    pattern_err_bibtex: str = r"error message"
    pattern_warn_bibtex: str = r"^Warning--"
    makeindex_command: str = "makeindex"
    makeindex_options: str = ""
    pattern_err_makeindex: str = r"(!! Input index error )"
    pattern_warn_makeindex: str = r"(## Warning )"
    pattern_rerun_makeindex: str = DEFAULT_PATTERN_RERUN_MAKEINDEX
    splitindex_command: str = "splitindex"
    splitindex_options: str = "-V"
    makeglossaries_command: str = "makeglossaries"
    makeglossaries_options: str = ""
    pattern_err_makeglossaries: str = r"^\*\*\* unable to execute: "
    pattern_err_xindy: str = r"(^ERROR: )"
    pattern_warn_xindy: str = r"(^WARNING: )"

    # further conversions
    tex4ht_command: str = "htlatex"
    tex4ht_sty_options: str = "html,2"
    tex4ht_options: str = ""
    t4ht_options: str = ""
    pattern_t4ht_output_files: str = DEFAULT_PATTERN_T4HT_OUTPUT_FILES
    latex2rtf_command: str = "latex2rtf"
    latex2rtf_options: str = ""
    odt2doc_command: str = "odt2doc"
    odt2doc_options: str = "-fdocx"
    pdf2txt_command: str = "pdftotext"
    pdf2txt_options: str = "-q"
    chktex_command: str = "chktex"
    chktex_options: str = "-q -b0"

    @field_validator("targets", mode="before")
    @classmethod
    def _split_targets(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_targets(value)
        return value

    @field_validator("main_files_included", "main_files_excluded", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return frozenset(part for part in value.split() if part)
        return value

    @field_validator("*", mode="after")
    @classmethod
    def _compile_patterns(cls, value: Any, info: ValidationInfo) -> Any:
        name = info.field_name or ""
        if not name.startswith("pattern_"):
            return value
        try:
            re.compile(value, re.MULTILINE)
        except re.error as exc:
            raise ValueError(f"invalid regular expression for {name}: {exc}") from exc
        return value

    @property
    def latex_dev(self) -> LatexDev:
        """Backend the LaTeX engine writes to."""
        return LatexDev.DVIPS if self.pdf_via_dvi else LatexDev.PDF


def parse_targets(value: str) -> tuple[Target, ...]:
    """Parse a comma separated list of target names."""
    targets: list[Target] = []
    for chunk in value.split(","):
        name = chunk.strip().lower()
        if not name:
            continue
        try:
            target = Target(name)
        except ValueError as exc:
            supported = ", ".join(item.value for item in Target)
            raise UnknownTargetError(
                f"Unsupported target '{name}' (expected one of: {supported})."
            ) from exc
        if target not in targets:
            targets.append(target)
    return tuple(targets)


def source_dir(settings: Settings) -> Path:
    """Return the absolute directory holding the LaTeX sources."""
    return (settings.base_directory / settings.tex_src_directory).resolve()


def processing_dir(settings: Settings) -> Path:
    """Return the absolute directory in which sources are processed."""
    return (source_dir(settings) / settings.tex_src_proc_directory).resolve()


def output_dir(settings: Settings) -> Path:
    """Return the absolute directory receiving the artifacts."""
    return (settings.base_directory / settings.output_directory).resolve()


def _normalise_keys(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {str(key).replace("-", "_"): value for key, value in payload.items()}


def load_settings(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load settings from an optional YAML file and apply overrides on top.

    Overrides whose value is ``None`` are ignored so that unset CLI options do
    not shadow the configuration file.
    """
    data: dict[str, Any] = {}
    if path is not None:
        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read configuration file '{path}': {exc}") from exc
        try:
            payload = yaml.safe_load(raw_text) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in '{path}': {exc}") from exc
        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"Configuration file '{path}' must contain a mapping.")
        data.update(_normalise_keys(payload))
        data.setdefault("base_directory", path.resolve().parent)

    if overrides:
        data.update(
            {key: value for key, value in _normalise_keys(overrides).items() if value is not None}
        )

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        origin = f" in '{path}'" if path is not None else ""
        raise ConfigurationError(f"Invalid settings{origin}: {exc}") from exc


def dump_settings(settings: Settings) -> str:
    """Serialise settings to YAML."""
    payload = settings.model_dump(mode="json")
    for key in ("main_files_included", "main_files_excluded"):
        payload[key] = sorted(payload[key])
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)


__all__ = [
    "UNLIMITED_RERUNS",
    "LatexDev",
    "Settings",
    "Target",
    "dump_settings",
    "load_settings",
    "output_dir",
    "parse_targets",
    "processing_dir",
    "source_dir",
]
