# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for the runtime compiler command line."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import DEFAULT_OUTPUT_NAME, CompileOptions
from .references import DEFAULT_REFERENCE_SUFFIXES

DEFAULT_SOURCE_NAME: Final[str] = "source.py"


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class CompileConfig(BaseModel):
    """Which sources to compile and where durable output goes."""

    model_config = ConfigDict(validate_assignment=True)

    inputs: list[Path] = Field(default_factory=lambda: [Path(DEFAULT_SOURCE_NAME)])
    output: Path = Path(DEFAULT_OUTPUT_NAME)
    generate: bool = False


class ReferencesConfig(BaseModel):
    """Where reference modules are discovered."""

    model_config = ConfigDict(validate_assignment=True)

    directory: Path = Path()
    suffixes: list[str] = Field(default_factory=lambda: list(DEFAULT_REFERENCE_SUFFIXES))

    @field_validator("suffixes")
    @classmethod
    def _dotted_suffixes(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for suffix in value:
            trimmed = suffix.strip()
            if not trimmed:
                continue
            dotted = trimmed if trimmed.startswith(".") else f".{trimmed}"
            if dotted not in normalized:
                normalized.append(dotted)
        return normalized


class OutputConfig(BaseModel):
    """Console presentation settings."""

    model_config = ConfigDict(validate_assignment=True)

    debug: bool = True
    emoji: bool = True
    color: bool = True


class Config(BaseModel):
    """Top-level configuration object."""

    model_config = ConfigDict(validate_assignment=True)

    compile: CompileConfig = Field(default_factory=CompileConfig)
    references: ReferencesConfig = Field(default_factory=ReferencesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def to_dict(self) -> dict[str, Any]:
        """Return a plain mapping of every section."""

        return self.model_dump(mode="python")

    def compile_options(self) -> CompileOptions:
        """Return the bridge options described by the ``compile`` section."""

        return CompileOptions(
            produce_durable_output=self.compile.generate,
            output_path=self.compile.output,
        )


__all__ = [
    "DEFAULT_SOURCE_NAME",
    "CompileConfig",
    "Config",
    "ConfigError",
    "OutputConfig",
    "ReferencesConfig",
]
