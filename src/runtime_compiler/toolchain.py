# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Compiler toolchain contract and the default CPython implementation.

The toolchain turns a set of source files into byte code, optionally writes an
executable archive, and loads the result into the running interpreter. It never
decides whether a compile succeeded; it only reports diagnostics alongside
whatever it managed to produce.
"""

from __future__ import annotations

import importlib
import importlib.abc
import importlib.util
import marshal
import sys
import tempfile
import tokenize
import traceback
import warnings
import zipapp
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from importlib.machinery import ModuleSpec
from pathlib import Path
from types import CodeType, ModuleType
from typing import Final, Protocol, runtime_checkable

from .errors import ToolchainError
from .models import Diagnostic, ReferenceHandle, SourcePath
from .severity import Severity, severity_from_category

DEFAULT_INTERPRETER: Final[str] = "/usr/bin/env python3"
ARCHIVE_MAIN: Final[str] = "__main__.py"
_PYC_FLAGS: Final[int] = 0
_U32_MASK: Final[int] = 0xFFFFFFFF
_MISSING: Final = object()


@dataclass(frozen=True, slots=True)
class ToolchainRequest:
    """Single invocation of the compiler toolchain.

    ``generate_executable`` and ``generate_in_memory`` are mutually exclusive.
    """

    sources: tuple[SourcePath, ...]
    references: tuple[ReferenceHandle, ...]
    output_path: Path
    generate_executable: bool
    generate_in_memory: bool


@dataclass(frozen=True, slots=True)
class CompiledModules:
    """Handle to the modules produced by one compile, in source order."""

    modules: tuple[ModuleType, ...]
    references: tuple[ReferenceHandle, ...] = ()
    sources: Mapping[str, SourcePath] = field(default_factory=dict)

    def __iter__(self) -> Iterator[ModuleType]:
        return iter(self.modules)

    def __len__(self) -> int:
        return len(self.modules)

    @property
    def names(self) -> tuple[str, ...]:
        """Return the module names in load order."""
        return tuple(module.__name__ for module in self.modules)

    @contextmanager
    def activated(self) -> Iterator[None]:
        """Expose the compiled and referenced modules through ``sys.modules``.

        Previous ``sys.modules`` entries are restored on exit, so compiled code
        can import its siblings lazily without leaking them into the host.
        """

        entries: dict[str, ModuleType] = {ref.name: ref.module for ref in self.references}
        entries.update({module.__name__: module for module in self.modules})
        with _sys_modules_overlay(entries.keys()):
            sys.modules.update(entries)
            yield


@dataclass(frozen=True, slots=True)
class ToolchainResult:
    """Outcome of a toolchain invocation.

    ``compiled`` may be partial when ``diagnostics`` contains errors.
    """

    diagnostics: tuple[Diagnostic, ...]
    compiled: CompiledModules | None
    path_to_artifact: Path | None


@runtime_checkable
class Toolchain(Protocol):
    """Protocol implemented by compiler toolchains."""

    name: str

    def compile(self, request: ToolchainRequest) -> ToolchainResult:
        """Compile ``request`` and report diagnostics plus produced output.

        Raises:
            ToolchainError: If the toolchain could not run at all.
        """

        raise NotImplementedError


@contextmanager
def _sys_modules_overlay(names: Iterable[str]) -> Iterator[None]:
    """Restore the ``sys.modules`` entries for ``names`` when the block exits."""

    saved = {name: sys.modules.get(name, _MISSING) for name in list(names)}
    try:
        yield
    finally:
        for name, previous in saved.items():
            if previous is _MISSING:
                sys.modules.pop(name, None)
            else:
                sys.modules[name] = previous


class _CompiledModuleFinder(importlib.abc.MetaPathFinder, importlib.abc.Loader):
    """Serve already-compiled code objects through the import system."""

    def __init__(self, units: Mapping[str, tuple[SourcePath, CodeType]]) -> None:
        self._units = dict(units)

    def find_spec(
        self,
        fullname: str,
        path: Sequence[str] | None = None,
        target: ModuleType | None = None,
    ) -> ModuleSpec | None:
        unit = self._units.get(fullname)
        if unit is None:
            return None
        source, _ = unit
        return importlib.util.spec_from_loader(fullname, self, origin=str(source.path))

    def create_module(self, spec: ModuleSpec) -> ModuleType | None:
        return None

    def exec_module(self, module: ModuleType) -> None:
        source, code = self._units[module.__name__]
        module.__file__ = str(source.path)
        exec(code, module.__dict__)  # noqa: S102 - executing the operator's own compiled sources


@dataclass(slots=True)
class _DiagnosticSink:
    """Ordered diagnostic collector dropping exact duplicates."""

    entries: list[Diagnostic] = field(default_factory=list)

    def add(self, diagnostic: Diagnostic) -> None:
        if diagnostic not in self.entries:
            self.entries.append(diagnostic)

    def add_warnings(self, records: Sequence[warnings.WarningMessage]) -> None:
        for record in records:
            self.add(
                Diagnostic(
                    severity=severity_from_category(record.category),
                    code=record.category.__name__,
                    message=str(record.message),
                    file=record.filename,
                    line=record.lineno,
                ),
            )

    @property
    def has_errors(self) -> bool:
        return any(entry.is_error for entry in self.entries)


def _syntax_diagnostic(exc: SyntaxError, source: SourcePath) -> Diagnostic:
    return Diagnostic(
        severity=Severity.ERROR,
        code=type(exc).__name__,
        message=exc.msg if isinstance(exc.msg, str) and exc.msg else str(exc),
        file=exc.filename or str(source.path),
        line=exc.lineno,
        column=exc.offset,
    )


def _load_failure(exc: BaseException, source: SourcePath, known_files: set[str]) -> Diagnostic:
    """Return a diagnostic for ``exc`` located at the innermost source frame."""

    file: str = str(source.path)
    line: int | None = None
    for frame, lineno in traceback.walk_tb(exc.__traceback__):
        if frame.f_code.co_filename in known_files:
            file, line = frame.f_code.co_filename, lineno
    return Diagnostic(
        severity=Severity.ERROR,
        code=type(exc).__name__,
        message=str(exc) or type(exc).__name__,
        file=file,
        line=line,
    )


def _pyc_bytes(code: CodeType, source: SourcePath) -> bytes:
    """Serialise ``code`` using the timestamp-based ``.pyc`` layout (PEP 552)."""

    try:
        stat = source.path.stat()
        mtime, size = int(stat.st_mtime), stat.st_size
    except OSError:
        mtime, size = 0, 0
    payload = bytearray(importlib.util.MAGIC_NUMBER)
    payload.extend(_PYC_FLAGS.to_bytes(4, "little"))
    payload.extend((mtime & _U32_MASK).to_bytes(4, "little"))
    payload.extend((size & _U32_MASK).to_bytes(4, "little"))
    payload.extend(marshal.dumps(code))
    return bytes(payload)


def _archive_main(names: Sequence[str]) -> str:
    listing = ", ".join(repr(name) for name in names)
    return (
        '"""Entry point generated by runtime-compiler."""\n\n'
        "import importlib\n\n"
        f"for _name in ({listing},):\n"
        "    importlib.import_module(_name)\n"
    )


def write_archive(
    units: Sequence[tuple[SourcePath, CodeType]],
    output_path: Path,
    *,
    interpreter: str | None = DEFAULT_INTERPRETER,
) -> Path:
    """Write ``units`` to an executable zip application at ``output_path``.

    Raises:
        ToolchainError: If the archive cannot be written.
    """

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="runtime-compiler-") as staging:
            root = Path(staging)
            for source, code in units:
                (root / f"{source.module_name}.pyc").write_bytes(_pyc_bytes(code, source))
            names = [source.module_name for source, _ in units]
            (root / ARCHIVE_MAIN).write_text(_archive_main(names), encoding="utf-8")
            zipapp.create_archive(root, target=output_path, interpreter=interpreter)
    except (OSError, zipapp.ZipAppError) as exc:
        raise ToolchainError(f"cannot write compiled archive to {output_path}: {exc}") from exc
    return output_path


class CPythonToolchain:
    """Compile sources with the running interpreter's byte-code compiler."""

    name = "cpython"

    def __init__(self, *, optimize: int = -1, interpreter: str | None = DEFAULT_INTERPRETER) -> None:
        """Initialise the toolchain.

        Args:
            optimize: Optimisation level forwarded to :func:`compile`.
            interpreter: Shebang interpreter written into durable archives.
        """

        self._optimize = optimize
        self._interpreter = interpreter

    def compile(self, request: ToolchainRequest) -> ToolchainResult:
        """Compile, optionally archive, and load the requested sources."""

        if request.generate_executable == request.generate_in_memory:
            raise ToolchainError("exactly one of generate_executable and generate_in_memory must be set")

        sink = _DiagnosticSink()
        units = self._compile_sources(request.sources, sink)
        if sink.has_errors:
            return ToolchainResult(diagnostics=tuple(sink.entries), compiled=None, path_to_artifact=None)

        compiled = self._load(units, request.references, sink)
        if sink.has_errors:
            return ToolchainResult(diagnostics=tuple(sink.entries), compiled=compiled, path_to_artifact=None)

        path: Path | None = None
        if request.generate_executable:
            path = write_archive(units, request.output_path, interpreter=self._interpreter)
        return ToolchainResult(diagnostics=tuple(sink.entries), compiled=compiled, path_to_artifact=path)

    def _read(self, source: SourcePath, sink: _DiagnosticSink) -> str | None:
        try:
            with tokenize.open(source.path) as handle:
                return handle.read()
        except SyntaxError as exc:
            # tokenize.open rejects unknown or inconsistent coding declarations.
            sink.add(_syntax_diagnostic(exc, source))
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise ToolchainError(f"cannot read source {source.path}: {exc}") from exc

    def _compile_sources(
        self,
        sources: Sequence[SourcePath],
        sink: _DiagnosticSink,
    ) -> list[tuple[SourcePath, CodeType]]:
        units: list[tuple[SourcePath, CodeType]] = []
        claimed: dict[str, SourcePath] = {}
        for source in sources:
            owner = claimed.get(source.module_name)
            if owner is not None:
                sink.add(
                    Diagnostic(
                        severity=Severity.ERROR,
                        code="DuplicateModule",
                        message=f"module '{source.module_name}' is already provided by {owner.path}",
                        file=str(source.path),
                    ),
                )
                continue
            claimed[source.module_name] = source
            text = self._read(source, sink)
            if text is None:
                continue
            code = self._compile_text(text, source, sink)
            if code is not None:
                units.append((source, code))
        return units

    def _compile_text(self, text: str, source: SourcePath, sink: _DiagnosticSink) -> CodeType | None:
        failure: Diagnostic | None = None
        code: CodeType | None = None
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                code = compile(text, str(source.path), "exec", dont_inherit=True, optimize=self._optimize)
            except SyntaxError as exc:
                failure = _syntax_diagnostic(exc, source)
            except ValueError as exc:
                failure = Diagnostic(
                    severity=Severity.ERROR,
                    code=type(exc).__name__,
                    message=str(exc),
                    file=str(source.path),
                )
        sink.add_warnings(caught)
        if failure is not None:
            sink.add(failure)
        return code

    def _load(
        self,
        units: Sequence[tuple[SourcePath, CodeType]],
        references: Sequence[ReferenceHandle],
        sink: _DiagnosticSink,
    ) -> CompiledModules:
        by_name = {source.module_name: (source, code) for source, code in units}
        known_files = {str(source.path) for source, _ in units}
        finder = _CompiledModuleFinder(by_name)
        loaded: list[ModuleType] = []
        overlay = [*by_name, *(ref.name for ref in references)]
        with _sys_modules_overlay(overlay):
            for ref in references:
                sys.modules[ref.name] = ref.module
            for name in by_name:
                sys.modules.pop(name, None)
            sys.meta_path.insert(0, finder)
            try:
                for source, _ in units:
                    with warnings.catch_warnings(record=True) as caught:
                        warnings.simplefilter("always")
                        try:
                            loaded.append(importlib.import_module(source.module_name))
                        except (Exception, SystemExit) as exc:  # noqa: BLE001 - reported as a diagnostic
                            sink.add(_load_failure(exc, source, known_files))
                    sink.add_warnings(caught)
            finally:
                sys.meta_path.remove(finder)
        return CompiledModules(
            modules=tuple(loaded),
            references=tuple(references),
            sources={source.module_name: source for source, _ in units},
        )


__all__ = [
    "ARCHIVE_MAIN",
    "DEFAULT_INTERPRETER",
    "CPythonToolchain",
    "CompiledModules",
    "Toolchain",
    "ToolchainRequest",
    "ToolchainResult",
    "write_archive",
]
