# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""End-to-end tests for the runtime-compiler command line."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from runtime_compiler.cli.app import app

ADDER = """
class Calculator:
    @staticmethod
    def add() -> int:
        return 1 + 1

    @staticmethod
    def explode() -> int:
        raise ValueError("bad input")
"""


def _base_args(root: Path, *extra: str) -> list[str]:
    refs = root / "refs"
    refs.mkdir(exist_ok=True)
    return [
        "--root",
        str(root),
        "--references",
        str(refs),
        "--no-emoji",
        "--no-color",
        "--no-debug",
        *extra,
    ]


def _write(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.write_text(text, encoding="utf-8")
    return path


def test_execute_end_to_end(tmp_path: Path) -> None:
    source = _write(tmp_path, "rc_cli_calc.py", ADDER)
    runner = CliRunner()

    result = runner.invoke(
        app,
        _base_args(tmp_path, "--input", str(source)),
        input="CMDS\nEXECUTE Calculator::add\nEXECUTE Calculator::explode\nLIST TYPE\n",
    )

    assert result.exit_code == 0, result.output
    assert "Method executed, it has returned an object of type int with value: 2" in result.stdout
    assert "Method raised ValueError: bad input" in result.stdout
    assert "public rc_cli_calc.Calculator ()" in result.stdout
    assert "EXECUTE <type>::<method>" in result.stdout


def test_malformed_execute_prints_usage(tmp_path: Path) -> None:
    source = _write(tmp_path, "rc_cli_usage.py", ADDER)

    result = CliRunner().invoke(app, _base_args(tmp_path, "-i", str(source)), input="EXECUTE Foo\n")

    assert result.exit_code == 0
    assert "You have to supply a type and a method in this format: typeName::methodName" in result.stdout


def test_failed_in_memory_compile_still_serves_commands(tmp_path: Path) -> None:
    source = _write(tmp_path, "rc_cli_broken.py", "def (\n")

    result = CliRunner().invoke(app, _base_args(tmp_path, "-i", str(source)), input="LIST TYPE\n")

    assert result.exit_code == 0
    assert "[ERROR] [SyntaxError]" in result.stdout
    assert "no artifact loaded" in result.stdout


def test_durable_compile_exits_after_writing(tmp_path: Path) -> None:
    source = _write(tmp_path, "rc_cli_durable.py", ADDER)
    target = tmp_path / "out" / "calc.pyz"

    result = CliRunner().invoke(
        app,
        _base_args(tmp_path, "-i", str(source), "--generate", "--output", str(target)),
        input="LIST TYPE\n",
    )

    assert result.exit_code == 0, result.output
    assert target.is_file()
    assert "Compilation was successful." in result.stdout
    assert "public rc_cli_durable.Calculator" not in result.stdout


def test_failed_durable_compile_exits_with_error(tmp_path: Path) -> None:
    source = _write(tmp_path, "rc_cli_bad.py", "x = (\n")

    result = CliRunner().invoke(
        app,
        _base_args(tmp_path, "-i", str(source), "-g", "-o", str(tmp_path / "bad.pyz")),
    )

    assert result.exit_code == 1
    assert "[ERROR] [SyntaxError]" in result.stdout
    assert not (tmp_path / "bad.pyz").exists()


def test_missing_sources_warn_and_fail(tmp_path: Path) -> None:
    missing = tmp_path / "nowhere.py"

    result = CliRunner().invoke(app, _base_args(tmp_path, "-i", str(missing)))

    assert result.exit_code == 1
    assert "nowhere.py" in result.stdout
    assert "no source files to compile" in result.stdout


def test_invalid_configuration_exits_with_usage_status(tmp_path: Path) -> None:
    (tmp_path / ".runtime-compiler.toml").write_text("[bogus]\nvalue = 1\n", encoding="utf-8")

    result = CliRunner().invoke(app, _base_args(tmp_path))

    assert result.exit_code == 2
    assert "Invalid configuration" in result.stdout


def test_configured_inputs_are_used(tmp_path: Path) -> None:
    _write(tmp_path, "rc_cli_conf.py", ADDER)
    (tmp_path / ".runtime-compiler.toml").write_text("[compile]\ninputs = ['rc_cli_conf.py']\n", encoding="utf-8")

    result = CliRunner().invoke(app, _base_args(tmp_path), input="EXECUTE Calculator::add\n")

    assert result.exit_code == 0, result.output
    assert "with value: 2" in result.stdout


def test_help_lists_options() -> None:
    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    for option in ("--input", "--generate", "--references", "--no-debug"):
        assert option in result.stdout
