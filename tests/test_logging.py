# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for console logging helpers and diagnostic rendering."""

from __future__ import annotations

import pytest

from runtime_compiler.cli.shared import CLIError, build_cli_logger
from runtime_compiler.console import RichConsoleManager
from runtime_compiler.logging import emit_diagnostics, render_diagnostic, warn
from runtime_compiler.models import Diagnostic
from runtime_compiler.severity import Severity, severity_from_category


def test_render_diagnostic_with_location() -> None:
    diagnostic = Diagnostic(
        severity=Severity.WARNING,
        code="SyntaxWarning",
        message="odd comparison",
        file="/work/src/app.py",
        line=3,
        column=7,
    )

    assert render_diagnostic(diagnostic) == (
        "[WARNING] [SyntaxWarning] odd comparison (File: /work/src/app.py, line: 3, column: 7)"
    )


def test_render_diagnostic_without_location() -> None:
    diagnostic = Diagnostic(severity=Severity.ERROR, code="DuplicateModule", message="clash")

    assert render_diagnostic(diagnostic) == "[ERROR] [DuplicateModule] clash"


def test_emit_diagnostics_prints_each_line(capsys: pytest.CaptureFixture[str]) -> None:
    diagnostics = [
        Diagnostic(severity=Severity.ERROR, code="E1", message="first"),
        Diagnostic(severity=Severity.WARNING, code="W1", message="second"),
    ]

    count = emit_diagnostics(diagnostics, use_color=False)

    out = capsys.readouterr().out.splitlines()
    assert count == 2
    assert out == ["[ERROR] [E1] first", "[WARNING] [W1] second"]


def test_message_text_is_not_parsed_as_markup(capsys: pytest.CaptureFixture[str]) -> None:
    warn("[bold]literal[/bold]", use_emoji=False, use_color=False)

    assert capsys.readouterr().out.strip() == "[bold]literal[/bold]"


def test_cli_logger_debug_is_gated(capsys: pytest.CaptureFixture[str]) -> None:
    build_cli_logger(emoji=False, debug=False, color=False).debug("sources=2")
    assert capsys.readouterr().out == ""

    build_cli_logger(emoji=False, debug=True, color=False).debug("sources=2 references=0")
    assert "[debug] sources=2 references=0" in capsys.readouterr().out


def test_cli_logger_output_prints_lines(capsys: pytest.CaptureFixture[str]) -> None:
    build_cli_logger(emoji=False, color=False).output(["one", "two"])

    assert capsys.readouterr().out.splitlines() == ["one", "two"]


def test_cli_error_carries_exit_code() -> None:
    assert CLIError("boom", exit_code=3).exit_code == 3


def test_severity_from_category() -> None:
    assert severity_from_category(SyntaxWarning) is Severity.WARNING
    assert severity_from_category(DeprecationWarning) is Severity.WARNING
    assert severity_from_category(SyntaxError) is Severity.ERROR


def test_section_prints_plain_header_without_terminal(capsys: pytest.CaptureFixture[str]) -> None:
    build_cli_logger(emoji=False, color=False).section("Compiler diagnostics")

    assert "--- Compiler diagnostics ---" in capsys.readouterr().out


def test_console_manager_caches_until_cleared() -> None:
    manager = RichConsoleManager()
    first = manager.get(color=False, emoji=False)

    assert manager.get(color=False, emoji=False) is first
    assert manager.get(color=False, emoji=True) is not first
    manager.clear()
    assert manager.get(color=False, emoji=False) is not first


@pytest.mark.parametrize("pseudo", ["<string>", "<frozen importlib._bootstrap>"])
def test_pseudo_filenames_are_kept_verbatim(pseudo: str) -> None:
    diagnostic = Diagnostic(severity=Severity.ERROR, code="E1", message="bad", file=pseudo, line=1)

    assert diagnostic.file == pseudo
    assert render_diagnostic(diagnostic).endswith(f"(File: {pseudo}, line: 1)")
