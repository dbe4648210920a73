from __future__ import annotations

from pathlib import Path

import pytest

from texforge.adapters.latex.preprocessor import SUFFIX_HANDLERS, LatexPreProcessor
from texforge.core.files import DirNode


ARTICLE = "\\documentclass[a4paper]{article}\n\\begin{document}\nHello.\n\\end{document}\n"


def _write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _scan(preprocessor: LatexPreProcessor, directory: Path, emitter):
    return preprocessor.process_graphics_select_main(
        directory, DirNode.snapshot(directory, emitter)
    )


def test_suffix_table_covers_sources() -> None:
    assert set(SUFFIX_HANDLERS) == {
        ".fig", ".gp", ".plt", ".mp", ".svg", ".jpg", ".png", ".bib", ".tex"
    }
    detecting = [suffix for suffix, handler in SUFFIX_HANDLERS.items() if handler.detects_main]
    assert detecting == [".tex"]


def test_fig_is_rendered_with_pdf_backend(tmp_path: Path, runner, emitter, make_settings) -> None:
    _write(tmp_path / "figure1.fig")
    preprocessor = LatexPreProcessor(make_settings(), emitter, runner=runner)

    assert _scan(preprocessor, tmp_path, emitter) == []

    assert runner.calls == [
        (
            "fig2dev",
            ["-L", "pdftex", "figure1.fig", "figure1.pdf"],
            (tmp_path / "figure1.pdf",),
        ),
        (
            "fig2dev",
            ["-L", "pdftex_t", "-p", "figure1.pdf", "figure1.fig", "figure1.ptx"],
            (tmp_path / "figure1.ptx",),
        ),
    ]


def test_fig_follows_dvi_backend(tmp_path: Path, runner, emitter, make_settings) -> None:
    _write(tmp_path / "figure1.fig")
    preprocessor = LatexPreProcessor(make_settings(pdf_via_dvi=True), emitter, runner=runner)

    _scan(preprocessor, tmp_path, emitter)

    languages = [args[1] for args in runner.args_of("fig2dev")]
    assert languages == ["pstex", "pstex_t"]
    assert runner.args_of("fig2dev")[0][-1] == "figure1.eps"


def test_gnuplot_writes_cairolatex_output(tmp_path: Path, runner, emitter, make_settings) -> None:
    _write(tmp_path / "plot.gp")
    settings = make_settings(gnuplot_options="size 5cm,3cm")
    preprocessor = LatexPreProcessor(settings, emitter, runner=runner)

    _scan(preprocessor, tmp_path, emitter)

    assert runner.calls == [
        (
            "gnuplot",
            [
                "-e",
                "set terminal cairolatex pdf size 5cm,3cm;set output 'plot.ptx';load 'plot.gp'",
            ],
            (tmp_path / "plot.pdf", tmp_path / "plot.ptx"),
        )
    ]


def test_metapost_errors_are_reported(tmp_path: Path, runner, emitter, make_settings) -> None:
    _write(tmp_path / "drawing.mp")

    def mpost(cwd: Path, args: list[str]) -> None:
        (cwd / "drawing.log").write_text("! Missing `;' has been inserted.\n", encoding="utf-8")

    runner.actions["mpost"] = mpost
    preprocessor = LatexPreProcessor(make_settings(), emitter, runner=runner)

    _scan(preprocessor, tmp_path, emitter)

    assert runner.args_of("mpost") == [
        [
            "-interaction=nonstopmode",
            "-recorder",
            "-s",
            "prologues=2",
            "-s",
            "outputtemplate=%j.mps",
            "drawing.mp",
        ]
    ]
    assert emitter.messages("warning") == ["Running mpost failed. Errors logged in 'drawing.log'."]


@pytest.mark.parametrize("create", [True, False])
def test_bounding_boxes_follow_setting(
    tmp_path: Path, runner, emitter, make_settings, create: bool
) -> None:
    _write(tmp_path / "photo.jpg")
    settings = make_settings(create_bounding_boxes=create)
    preprocessor = LatexPreProcessor(settings, emitter, runner=runner)

    _scan(preprocessor, tmp_path, emitter)

    if create:
        assert runner.args_of("ebb") == [["-x", "-v", "photo.jpg"], ["-m", "-v", "photo.jpg"]]
    else:
        assert runner.calls == []
        assert f"JPG-file '{tmp_path / 'photo.jpg'}' needs no processing." in emitter.messages(
            "info"
        )


def test_main_documents_are_detected(tmp_path: Path, runner, emitter, make_settings) -> None:
    _write(tmp_path / "doc.tex", ARTICLE)
    _write(tmp_path / "chapter.tex", "\\section{Intro}\n")
    _write(tmp_path / "refs.bib", "@book{knuth84}\n")
    _write(tmp_path / "drawing.svg", "<svg/>")
    preprocessor = LatexPreProcessor(make_settings(), emitter, runner=runner)

    descs = _scan(preprocessor, tmp_path, emitter)

    assert [(desc.tex, desc.doc_class) for desc in descs] == [(tmp_path / "doc.tex", "article")]
    assert runner.calls == []
    assert f"Detected article-file '{tmp_path / 'doc.tex'}'." in emitter.messages("info")


def test_files_named_like_outputs_are_skipped(
    tmp_path: Path, runner, emitter, make_settings
) -> None:
    _write(tmp_path / "doc.tex", ARTICLE)
    _write(tmp_path / "doc.fig")
    preprocessor = LatexPreProcessor(make_settings(), emitter, runner=runner)

    _scan(preprocessor, tmp_path, emitter)

    assert runner.calls == []
    assert emitter.messages("warning") == [
        f"Skip processing '{tmp_path / 'doc.fig'}': "
        f"interpreted as target of '{tmp_path / 'doc.tex'}'."
    ]


def test_hidden_and_unknown_files_are_skipped(
    tmp_path: Path, runner, emitter, make_settings
) -> None:
    _write(tmp_path / ".draft.fig")
    _write(tmp_path / "notes.txt")
    _write(tmp_path / "Makefile")
    preprocessor = LatexPreProcessor(make_settings(), emitter, runner=runner)

    _scan(preprocessor, tmp_path, emitter)

    assert runner.calls == []
    assert emitter.messages("warning") == [
        "Skipped processing of files with suffixes ['', '.txt']."
    ]


@pytest.mark.parametrize(("recursive", "expected"), [(True, ["doc", "inner"]), (False, ["doc"])])
def test_subdirectories_follow_read_recursive(
    tmp_path: Path, runner, emitter, make_settings, recursive: bool, expected: list[str]
) -> None:
    _write(tmp_path / "doc.tex", ARTICLE)
    _write(tmp_path / "part" / "inner.tex", ARTICLE)
    preprocessor = LatexPreProcessor(
        make_settings(read_recursive=recursive), emitter, runner=runner
    )

    descs = _scan(preprocessor, tmp_path, emitter)

    assert [desc.bare for desc in descs] == expected


def test_included_and_excluded_main_files(tmp_path: Path, runner, emitter, make_settings) -> None:
    for name in ("a", "b", "c"):
        _write(tmp_path / f"{name}.tex", ARTICLE)
    settings = make_settings(main_files_included="a b zzz", main_files_excluded="b")
    preprocessor = LatexPreProcessor(settings, emitter, runner=runner)

    descs = _scan(preprocessor, tmp_path, emitter)

    assert [desc.bare for desc in descs] == ["a"]
    assert emitter.messages("warning") == [
        "Included latex files which are not latex main files: ['zzz']."
    ]
    assert "After inclusion/exclusion latex main files are ['a']." in emitter.messages("info")


def test_same_named_main_documents_are_all_kept(
    tmp_path: Path, runner, emitter, make_settings
) -> None:
    first = _write(tmp_path / "a" / "main.tex", ARTICLE)
    second = _write(tmp_path / "b" / "main.tex", ARTICLE)
    preprocessor = LatexPreProcessor(make_settings(), emitter, runner=runner)

    descs = _scan(preprocessor, tmp_path, emitter)

    assert [desc.tex for desc in descs] == [first, second]
    assert emitter.messages("warning") == [
        "Latex main files with the same name in different directories: ['main']."
    ]


def test_ambiguous_main_names_are_reported(
    tmp_path: Path, runner, emitter, make_settings
) -> None:
    _write(tmp_path / "a.tex", ARTICLE)
    _write(tmp_path / "sub" / "a.tex", ARTICLE)
    preprocessor = LatexPreProcessor(
        make_settings(main_files_excluded="a"), emitter, runner=runner
    )

    assert _scan(preprocessor, tmp_path, emitter) == []
    assert emitter.messages("warning") == [
        "Latex main files with the same name in different directories: ['a'].",
        "Included/Excluded latex main files not identified by their name: ['a'].",
    ]


def test_clear_created_keeps_sources(tmp_path: Path, runner, emitter, make_settings) -> None:
    sources = [
        _write(tmp_path / "doc.tex", ARTICLE),
        _write(tmp_path / "figure.fig"),
        _write(tmp_path / "inc.tex", "\\section{Included}\n"),
        _write(tmp_path / "refs.bib"),
        _write(tmp_path / "sub" / "drawing.mp"),
        _write(tmp_path / "sub" / "photo.png"),
        _write(tmp_path / "sub" / "vector.svg"),
    ]
    for name in (
        "doc.aux",
        "doc.log",
        "doc.pdf",
        "doc.synctex.gz",
        "figure.ptx",
        "figure.pdf",
        "inc.aux",
        "sub/drawing.mps",
        "sub/drawing.log",
        "sub/photo.xbb",
        "sub/vector.pdf",
        "sub/vector.pdf_tex",
    ):
        _write(tmp_path / name)
    preprocessor = LatexPreProcessor(make_settings(), emitter, runner=runner)

    preprocessor.clear_created(tmp_path)

    remaining = sorted(path for path in tmp_path.rglob("*") if path.is_file())
    assert remaining == sorted(sources)
    assert runner.calls == []
    assert emitter.messages("error") == []
