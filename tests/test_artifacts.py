from __future__ import annotations

from pathlib import Path

from texforge.core.artifacts import LatexMainDesc


def test_derived_paths_keep_inner_dots() -> None:
    desc = LatexMainDesc.from_tex(Path("/work/thesis.final.tex"), "book")

    assert desc.bare == "thesis.final"
    assert desc.parent_dir == Path("/work")
    assert desc.pdf == Path("/work/thesis.final.pdf")
    assert desc.log == Path("/work/thesis.final.log")
    assert desc.idx == Path("/work/thesis.final.idx")
    assert desc.with_suffix("-names.ind") == Path("/work/thesis.final-names.ind")
    assert str(desc) == "/work/thesis.final.tex"


def test_document_class_does_not_affect_identity() -> None:
    first = LatexMainDesc.from_tex(Path("/work/a.tex"), "article")
    second = LatexMainDesc.from_tex(Path("/work/a.tex"), "beamer")

    assert first == second
    assert sorted([LatexMainDesc(Path("/work/b.tex")), first])[0] is first
