# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the runtime compiler package."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .paths import resolve_path
from .severity import Severity

_NON_IDENTIFIER = re.compile(r"\W")

DEFAULT_OUTPUT_NAME = "Output.pyz"


def module_name_for(path: Path) -> str:
    """Return the module name a source or reference file is loaded under.

    The file stem is used with every non-identifier character replaced by an
    underscore, so ``my-tool.py`` loads as ``my_tool``.
    """

    name = _NON_IDENTIFIER.sub("_", path.stem)
    if not name or name[0].isdigit():
        name = f"_{name}"
    return name


@dataclass(frozen=True, slots=True)
class SourcePath:
    """A validated source file that existed when the source set was built."""

    path: Path

    @property
    def module_name(self) -> str:
        """Return the name of the module compiled from this file."""
        return module_name_for(self.path)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True, slots=True)
class ReferenceHandle:
    """A loaded binary module made available to compiled sources.

    Handles compare by module name only; two files that load the same module
    collapse into one reference.
    """

    name: str
    path: Path = field(compare=False)
    module: ModuleType = field(compare=False, repr=False)


class Diagnostic(BaseModel):
    """Normalized compiler diagnostic reported by the toolchain."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    code: str
    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None

    @field_validator("file", mode="before")
    @classmethod
    def _normalize_file(cls, value: object) -> object:
        """Store diagnostic file paths as absolute POSIX strings."""
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, str) and value.startswith("<"):
            # Pseudo-files such as <string> or <frozen ...> have no path.
            return value
        try:
            return resolve_path(Path(str(value))).as_posix()
        except (OSError, RuntimeError, ValueError):
            return str(value)

    @property
    def is_error(self) -> bool:
        """Return ``True`` when the diagnostic prevents a usable artifact."""
        return self.severity is Severity.ERROR


class CompileOptions(BaseModel):
    """Options accepted by the compilation bridge."""

    model_config = ConfigDict(frozen=True)

    produce_durable_output: bool = False
    output_path: Path = Field(default_factory=lambda: Path.cwd() / DEFAULT_OUTPUT_NAME)

    @field_validator("output_path", mode="after")
    @classmethod
    def _resolve_output(cls, value: Path) -> Path:
        """Anchor relative output paths to the current working directory."""
        return resolve_path(value)


__all__ = [
    "DEFAULT_OUTPUT_NAME",
    "CompileOptions",
    "Diagnostic",
    "ReferenceHandle",
    "SourcePath",
    "module_name_for",
]
