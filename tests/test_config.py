# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for layered configuration loading."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any

import pytest

from runtime_compiler.cli.options import RunCLIOptions, explicit_flags
from runtime_compiler.config import Config, ConfigError, ReferencesConfig
from runtime_compiler.config_loader import ConfigLoader, load_config
from runtime_compiler.models import CompileOptions


def test_defaults_without_files(tmp_path: Path) -> None:
    config = ConfigLoader.for_root(tmp_path).load()

    assert config.compile.inputs == [Path("source.py")]
    assert config.compile.output == Path("Output.pyz")
    assert config.compile.generate is False
    assert config.output.debug is True


def test_pyproject_section_is_applied(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[tool.runtime-compiler.compile]\ngenerate = true\noutput = "dist/app.pyz"\n',
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.compile.generate is True
    assert config.compile.output == tmp_path.resolve() / "dist" / "app.pyz"


def test_project_file_overrides_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        "[tool.runtime-compiler.output]\nemoji = true\ncolor = false\n",
        encoding="utf-8",
    )
    (tmp_path / ".runtime-compiler.toml").write_text("[output]\nemoji = false\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.output.emoji is False
    assert config.output.color is False


def test_overrides_take_precedence(tmp_path: Path) -> None:
    (tmp_path / ".runtime-compiler.toml").write_text("[output]\ndebug = true\n", encoding="utf-8")

    config = load_config(tmp_path, overrides={"output": {"debug": False}})

    assert config.output.debug is False


def test_environment_variables_expand(tmp_path: Path) -> None:
    refs = tmp_path / "refs"
    (tmp_path / ".runtime-compiler.toml").write_text(
        '[references]\ndirectory = "${RC_REFS}"\n',
        encoding="utf-8",
    )

    config = ConfigLoader.for_root(tmp_path, env={"RC_REFS": str(refs)}).load()

    assert config.references.directory == refs


def test_includes_are_merged(tmp_path: Path) -> None:
    (tmp_path / "shared.toml").write_text("[compile]\ninputs = ['a.py', 'b.py']\n", encoding="utf-8")
    (tmp_path / ".runtime-compiler.toml").write_text('include = "shared.toml"\n', encoding="utf-8")

    config = load_config(tmp_path)

    assert config.compile.inputs == [tmp_path.resolve() / "a.py", tmp_path.resolve() / "b.py"]


@pytest.mark.parametrize(
    "content",
    [
        "[compile\n",
        "[compile]\ngenerate = 'maybe'\n",
        "[bogus]\nvalue = 1\n",
        "compile = 3\n",
    ],
)
def test_invalid_configuration_raises(tmp_path: Path, content: str) -> None:
    (tmp_path / ".runtime-compiler.toml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_suffixes_are_normalised() -> None:
    assert ReferencesConfig(suffixes=["so", ".so", " .pyd ", ""]).suffixes == [".so", ".pyd"]


def test_compile_options_follow_compile_section(tmp_path: Path) -> None:
    config = Config()
    config.compile.generate = True
    config.compile.output = tmp_path / "x.pyz"

    assert config.compile_options() == CompileOptions(produce_durable_output=True, output_path=tmp_path / "x.pyz")


def test_cli_options_only_emit_explicit_values(tmp_path: Path) -> None:
    options = RunCLIOptions(root=tmp_path, generate=True, suffixes=(".so",), emoji=False)

    assert options.overrides() == {
        "compile": {"generate": True},
        "references": {"suffixes": [".so"]},
        "output": {"emoji": False},
    }
    assert RunCLIOptions(root=tmp_path).overrides() == {}


class _BundledParameterSource(enum.Enum):
    COMMANDLINE = enum.auto()
    ENVIRONMENT = enum.auto()
    DEFAULT = enum.auto()


class _StubContext:
    def __init__(self, sources: dict[str, _BundledParameterSource]) -> None:
        self._sources = sources

    def get_parameter_source(self, name: str) -> _BundledParameterSource | None:
        return self._sources.get(name)


def test_explicit_flags_match_sources_by_member_name() -> None:
    ctx: Any = _StubContext(
        {
            "generate": _BundledParameterSource.COMMANDLINE,
            "color": _BundledParameterSource.ENVIRONMENT,
            "debug": _BundledParameterSource.DEFAULT,
        },
    )

    assert explicit_flags(ctx, "generate", "debug", "emoji", "color") == frozenset({"generate", "color"})
