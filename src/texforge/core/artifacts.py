"""Derived file paths of a LaTeX main document."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .files import bare_name


@dataclass(frozen=True, slots=True, order=True)
class LatexMainDesc:
    """Paths of the files a LaTeX main document produces or consumes.

    Every path is a sibling of ``tex`` named ``<bare><suffix>``; dots inside the
    bare name are kept. Nothing here implies that a file exists.
    """

    tex: Path
    doc_class: str | None = field(default=None, compare=False)

    @classmethod
    def from_tex(cls, tex: Path, doc_class: str | None = None) -> LatexMainDesc:
        return cls(tex=tex, doc_class=doc_class)

    @property
    def bare(self) -> str:
        return bare_name(self.tex)

    @property
    def parent_dir(self) -> Path:
        return self.tex.parent

    def with_suffix(self, suffix: str) -> Path:
        """Return the sibling named after the document with ``suffix`` appended."""
        return self.tex.parent / f"{self.bare}{suffix}"

    @property
    def pdf(self) -> Path:
        return self.with_suffix(".pdf")

    @property
    def dvi(self) -> Path:
        return self.with_suffix(".dvi")

    @property
    def xdv(self) -> Path:
        return self.with_suffix(".xdv")

    @property
    def log(self) -> Path:
        return self.with_suffix(".log")

    @property
    def aux(self) -> Path:
        return self.with_suffix(".aux")

    @property
    def idx(self) -> Path:
        return self.with_suffix(".idx")

    @property
    def ind(self) -> Path:
        return self.with_suffix(".ind")

    @property
    def ilg(self) -> Path:
        return self.with_suffix(".ilg")

    @property
    def glo(self) -> Path:
        return self.with_suffix(".glo")

    @property
    def gls(self) -> Path:
        return self.with_suffix(".gls")

    @property
    def glg(self) -> Path:
        return self.with_suffix(".glg")

    @property
    def bbl(self) -> Path:
        return self.with_suffix(".bbl")

    @property
    def blg(self) -> Path:
        return self.with_suffix(".blg")

    @property
    def toc(self) -> Path:
        return self.with_suffix(".toc")

    @property
    def lof(self) -> Path:
        return self.with_suffix(".lof")

    @property
    def lot(self) -> Path:
        return self.with_suffix(".lot")

    def __str__(self) -> str:
        return str(self.tex)


__all__ = ["LatexMainDesc"]
