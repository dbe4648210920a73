from __future__ import annotations

import importlib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from texforge.api.service import BuildReport
from texforge.core.artifacts import LatexMainDesc
from texforge.ui.cli import app
from texforge.version import get_version


build_mod = importlib.import_module("texforge.ui.cli.commands.build")


ARTICLE = "\\documentclass{article}\n\\begin{document}\nHello.\n\\end{document}\n"


def test_version_command() -> None:
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.stdout.strip() == get_version()


def test_config_command_prints_effective_settings() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("texforge.yml").write_text("max_reruns: 2\ntargets: chk,pdf\n", encoding="utf-8")

        result = runner.invoke(app, ["config", "--config", "texforge.yml"])

    assert result.exit_code == 0, result.output
    assert "max_reruns: 2" in result.stdout
    assert "- chk" in result.stdout


def test_invalid_configuration_exits_with_error() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("texforge.yml").write_text("max_reruns: -3\n", encoding="utf-8")

        result = runner.invoke(app, ["config", "-c", "texforge.yml"])

    assert result.exit_code == 1
    assert "Invalid settings" in result.output


def test_unknown_target_exits_with_error() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(app, ["build", "--target", "epub"])

    assert result.exit_code == 1
    assert "epub" in result.output


def test_build_reports_delivered_artifacts(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    class _StubService:
        def __init__(self, settings, emitter) -> None:
            captured["settings"] = settings

        def create(self) -> BuildReport:
            report = BuildReport(documents=[LatexMainDesc(Path("tex/doc.tex"), "article")])
            report.record(report.documents[0], [Path("build/doc.pdf"), Path("build/doc.txt")])
            return report

    monkeypatch.setattr(build_mod, "BuildService", _StubService)
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(
            app, ["build", "-t", "pdf", "-t", "txt", "--max-reruns", "-1", "--no-clean-up"]
        )

    assert result.exit_code == 0, result.output
    assert "Built 1 document(s); 2 artifact(s) delivered to" in result.stdout
    settings = captured["settings"]
    assert [target.value for target in settings.targets] == ["pdf", "txt"]
    assert settings.max_reruns == -1
    assert settings.clean_up is False


def test_build_summarises_reported_warnings(monkeypatch: pytest.MonkeyPatch) -> None:
    class _WarningService:
        def __init__(self, settings, emitter) -> None:
            self.emitter = emitter

        def create(self) -> BuildReport:
            self.emitter.warning("Running lualatex created bad boxes logged in 'doc.log'.")
            self.emitter.warning("LaTeX requires rerun but maximum number 5 reached.")
            return BuildReport(documents=[LatexMainDesc(Path("tex/doc.tex"), "article")])

    monkeypatch.setattr(build_mod, "BuildService", _WarningService)
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(app, ["build"])

    assert result.exit_code == 0, result.output
    assert "Reported 2 warning(s) and 0 error(s)." in result.stdout


def test_build_without_sources_fails() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(app, ["build", "--source", "missing"])

    assert result.exit_code == 1
    assert "error:" in result.output


def test_graphics_lists_main_documents() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("tex").mkdir()
        Path("tex/doc.tex").write_text(ARTICLE, encoding="utf-8")
        Path("tex/chapter.tex").write_text("\\section{Intro}\n", encoding="utf-8")

        result = runner.invoke(app, ["graphics"])

    assert result.exit_code == 0, result.output
    assert "doc.tex (article)" in result.stdout
    assert "chapter.tex" not in result.stdout
