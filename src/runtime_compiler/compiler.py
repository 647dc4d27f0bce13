# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Compilation bridge between validated sources and the toolchain."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass

from .artifact import Artifact, build_artifact
from .errors import ToolchainError
from .models import CompileOptions, Diagnostic, ReferenceHandle, SourcePath
from .toolchain import CPythonToolchain, Toolchain, ToolchainRequest

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Either a compiled artifact or the diagnostics explaining why not.

    ``artifact`` is set exactly when no diagnostic has error severity.
    ``diagnostics`` always carries everything the toolchain reported,
    warnings included.
    """

    artifact: Artifact | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        """Return ``True`` when the compile produced an artifact."""
        return self.artifact is not None

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        """Return the error-severity diagnostics."""
        return tuple(diagnostic for diagnostic in self.diagnostics if diagnostic.is_error)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        """Return the warning-severity diagnostics."""
        return tuple(diagnostic for diagnostic in self.diagnostics if not diagnostic.is_error)

    @classmethod
    def success(cls, artifact: Artifact, diagnostics: Iterable[Diagnostic] = ()) -> CompileResult:
        return cls(artifact=artifact, diagnostics=tuple(diagnostics))

    @classmethod
    def failure(cls, diagnostics: Iterable[Diagnostic]) -> CompileResult:
        return cls(artifact=None, diagnostics=tuple(diagnostics))


def _ordered_sources(sources: Collection[SourcePath]) -> tuple[SourcePath, ...]:
    return tuple(sorted(sources, key=lambda source: source.path.as_posix()))


def _ordered_references(references: Collection[ReferenceHandle]) -> tuple[ReferenceHandle, ...]:
    return tuple(sorted(references, key=lambda reference: reference.name))


def compile_sources(
    sources: Collection[SourcePath],
    references: Collection[ReferenceHandle] = (),
    options: CompileOptions | None = None,
    *,
    toolchain: Toolchain | None = None,
) -> CompileResult:
    """Compile ``sources`` against ``references`` with a single toolchain call.

    Args:
        sources: Validated source files. Order is not significant; they are
            compiled in path order.
        references: Reference modules made importable to the sources.
        options: Output options; defaults to an in-memory compile.
        toolchain: Toolchain to drive; defaults to :class:`CPythonToolchain`.

    Returns:
        CompileResult: The artifact when no error diagnostic was reported,
        otherwise the full diagnostic list without an artifact.

    Raises:
        ToolchainError: If there is nothing to compile or the toolchain could
            not run.
    """

    if not sources:
        raise ToolchainError("no source files to compile")

    resolved_options = options or CompileOptions()
    active_toolchain = toolchain or CPythonToolchain()
    request = ToolchainRequest(
        sources=_ordered_sources(sources),
        references=_ordered_references(references),
        output_path=resolved_options.output_path,
        generate_executable=resolved_options.produce_durable_output,
        generate_in_memory=not resolved_options.produce_durable_output,
    )
    LOGGER.debug(
        "invoking toolchain=%s sources=%d references=%d durable=%s",
        active_toolchain.name,
        len(request.sources),
        len(request.references),
        request.generate_executable,
    )
    result = active_toolchain.compile(request)

    if any(diagnostic.is_error for diagnostic in result.diagnostics) or result.compiled is None:
        return CompileResult.failure(result.diagnostics)

    location = None
    if resolved_options.produce_durable_output:
        location = result.path_to_artifact or resolved_options.output_path
    artifact = build_artifact(result.compiled, location=location)
    return CompileResult.success(artifact, result.diagnostics)


__all__ = ["CompileResult", "compile_sources"]
