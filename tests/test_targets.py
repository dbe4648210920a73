from __future__ import annotations

from pathlib import Path

import pytest

from texforge.adapters.latex.processor import LatexProcessor
from texforge.adapters.latex.targets import TARGET_HANDLERS, output_pattern, process_target
from texforge.core.artifacts import LatexMainDesc
from texforge.core.config import Settings, Target
from texforge.core.files import file_filter


def test_every_target_has_a_handler() -> None:
    assert set(TARGET_HANDLERS) == set(Target)


@pytest.mark.parametrize(
    ("target", "accepted", "rejected"),
    [
        (Target.PDF, ["doc.pdf"], ["doc.log", "other.pdf", "doc.pdf.bak"]),
        (Target.DVI, ["doc.dvi", "doc.xdv", "fig.ptx", "fig.eps", "fig1.mps"], ["doc.pdf"]),
        (Target.ODT, ["doc.odt", "doc.fodt"], ["doc.pdf"]),
        (Target.DOCX, ["doc.docx", "doc.doc", "doc.rtf"], ["doc.odt"]),
        (Target.RTF, ["doc.rtf"], ["doc.docx"]),
        (Target.TXT, ["doc.txt"], ["notes.txt"]),
        (Target.HTML, ["doc.html", "doc.css", "docch1.html", "doc0x.png"], ["doc.log"]),
        (Target.CHK, [], ["doc.clg", "doc.pdf"]),
    ],
)
def test_output_patterns_select_delivered_files(
    tmp_path: Path, target: Target, accepted: list[str], rejected: list[str]
) -> None:
    settings = Settings(base_directory=tmp_path)
    accept = file_filter(tmp_path / "doc.tex", output_pattern(target, settings))

    assert [name for name in accepted if accept(tmp_path / name)] == accepted
    assert [name for name in rejected if accept(tmp_path / name)] == []


def test_process_target_dispatches(tmp_path: Path, runner, emitter, make_settings) -> None:
    desc = LatexMainDesc.from_tex(tmp_path / "doc.tex")
    processor = LatexProcessor(make_settings(), emitter, runner=runner)

    process_target(processor, Target.RTF, desc)
    process_target(processor, Target.CHK, desc)

    assert runner.commands() == ["latex2rtf", "chktex"]
