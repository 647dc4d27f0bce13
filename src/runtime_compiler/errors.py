# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the compilation bridge and command surface."""

from __future__ import annotations


class RuntimeCompilerError(RuntimeError):
    """Base class for errors raised by the runtime compiler."""


class ToolchainError(RuntimeCompilerError):
    """Raised when the compiler toolchain itself could not run.

    Source problems are never reported through this error; they surface as
    :class:`~runtime_compiler.models.Diagnostic` entries instead.
    """


class NoArtifactLoadedError(RuntimeCompilerError):
    """Raised when a query needs an artifact but no compile has succeeded."""

    def __init__(self, message: str = "no artifact loaded") -> None:
        super().__init__(message)


__all__ = ["NoArtifactLoadedError", "RuntimeCompilerError", "ToolchainError"]
