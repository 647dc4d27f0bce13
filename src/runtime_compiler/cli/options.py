# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Typer option declarations and the normalised options they produce."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import typer

INPUT_OPTION = Annotated[
    list[Path] | None,
    typer.Option("--input", "-i", help="Source file to compile (repeatable)."),
]
OUTPUT_OPTION = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Archive written when --generate is set."),
]
GENERATE_OPTION = Annotated[
    bool,
    typer.Option("--generate", "-g", help="Write an executable archive instead of serving commands."),
]
DEBUG_OPTION = Annotated[
    bool,
    typer.Option("--debug/--no-debug", "-d", help="Emit debug details about the compile."),
]
REFERENCES_OPTION = Annotated[
    Path | None,
    typer.Option("--references", "-r", help="Directory scanned for reference modules."),
]
SUFFIX_OPTION = Annotated[
    list[str] | None,
    typer.Option("--suffix", help="Reference module file suffix (repeatable)."),
]
ROOT_OPTION = Annotated[
    Path | None,
    typer.Option("--root", help="Project root holding configuration files."),
]
EMOJI_OPTION = Annotated[
    bool,
    typer.Option("--emoji/--no-emoji", help="Toggle emoji output."),
]
COLOR_OPTION = Annotated[
    bool,
    typer.Option("--color/--no-color", help="Toggle colour output."),
]

# Member names; typer may bundle its own click.
_EXPLICIT_SOURCES = frozenset({"COMMANDLINE", "ENVIRONMENT"})


def normalize_cli_values(values: Sequence[str] | None) -> tuple[str, ...]:
    """Return sanitized CLI values preserving order."""

    if not values:
        return ()
    return tuple(stripped for entry in values if entry and (stripped := entry.strip()))


def explicit_flags(ctx: typer.Context, *names: str) -> frozenset[str]:
    """Return which of ``names`` were given explicitly rather than defaulted."""

    given: set[str] = set()
    for name in names:
        source = ctx.get_parameter_source(name)
        if source is not None and getattr(source, "name", None) in _EXPLICIT_SOURCES:
            given.add(name)
    return frozenset(given)


@dataclass(slots=True)
class RunCLIOptions:
    """Capture CLI overrides supplied to the runtime compiler command.

    ``None`` (or an empty tuple) means the option was not given and the
    configured value applies.
    """

    root: Path
    inputs: tuple[Path, ...] = ()
    output: Path | None = None
    generate: bool | None = None
    references: Path | None = None
    suffixes: tuple[str, ...] = ()
    debug: bool | None = None
    emoji: bool | None = None
    color: bool | None = None

    def overrides(self) -> Mapping[str, Any]:
        """Return the options as a configuration fragment of explicit values only."""

        compile_section: dict[str, Any] = {}
        if self.inputs:
            compile_section["inputs"] = [path.expanduser().resolve() for path in self.inputs]
        if self.output is not None:
            compile_section["output"] = self.output.expanduser().resolve()
        if self.generate is not None:
            compile_section["generate"] = self.generate

        references_section: dict[str, Any] = {}
        if self.references is not None:
            references_section["directory"] = self.references.expanduser().resolve()
        if self.suffixes:
            references_section["suffixes"] = list(self.suffixes)

        output_section = {
            key: value
            for key, value in (("debug", self.debug), ("emoji", self.emoji), ("color", self.color))
            if value is not None
        }

        fragment = {
            "compile": compile_section,
            "references": references_section,
            "output": output_section,
        }
        return {key: value for key, value in fragment.items() if value}


def build_run_options(
    ctx: typer.Context,
    *,
    root: Path | None,
    inputs: Sequence[Path] | None,
    output: Path | None,
    generate: bool,
    references: Path | None,
    suffixes: Sequence[str] | None,
    debug: bool,
    emoji: bool,
    color: bool,
) -> RunCLIOptions:
    """Construct :class:`RunCLIOptions` from Typer callback parameters."""

    given = explicit_flags(ctx, "generate", "debug", "emoji", "color")
    return RunCLIOptions(
        root=(root or Path.cwd()).expanduser().resolve(),
        inputs=tuple(inputs or ()),
        output=output,
        generate=generate if "generate" in given else None,
        references=references,
        suffixes=normalize_cli_values(suffixes),
        debug=debug if "debug" in given else None,
        emoji=emoji if "emoji" in given else None,
        color=color if "color" in given else None,
    )


__all__ = [
    "COLOR_OPTION",
    "DEBUG_OPTION",
    "EMOJI_OPTION",
    "GENERATE_OPTION",
    "INPUT_OPTION",
    "OUTPUT_OPTION",
    "REFERENCES_OPTION",
    "ROOT_OPTION",
    "SUFFIX_OPTION",
    "RunCLIOptions",
    "build_run_options",
    "explicit_flags",
    "normalize_cli_values",
]
