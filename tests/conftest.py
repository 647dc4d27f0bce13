# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import textwrap
from collections.abc import Callable, Collection, Mapping
from pathlib import Path

import pytest

from runtime_compiler.artifact import Artifact, ArtifactHolder
from runtime_compiler.compiler import CompileResult, compile_sources
from runtime_compiler.models import CompileOptions, ReferenceHandle
from runtime_compiler.sources import validate_sources

SAMPLE_MODULE = "rc_sample"

SAMPLE_SOURCE = '''
import abc
import enum
from dataclasses import dataclass
from typing import Generic, TypeVar, final

T = TypeVar("T")
INSTANCE_CALLS = []


class Color(enum.Enum):
    RED = 1
    GREEN = 2


@dataclass(frozen=True)
class Point:
    x: int
    y: int = 0

    def norm(self) -> int:
        return abs(self.x) + abs(self.y)


class Box(Generic[T]):
    hidden = property()

    def __init__(self, item: T) -> None:
        self._item = item

    @property
    def item(self) -> T:
        return self._item

    @item.setter
    def item(self, value: T) -> None:
        self._item = value


class Stack(list):
    pass


class Shape(abc.ABC):
    sides: int = 0

    @abc.abstractmethod
    def area(self) -> float: ...


class Square(Shape):
    sides = 4

    def area(self) -> float:
        return 1.0


class _Hidden:
    pass


class Outer:
    class Inner:
        @staticmethod
        def ping() -> str:
            return "pong"


@final
class MathUtils(abc.ABC):
    VERSION = "1.0"

    @abc.abstractmethod
    def _sealed(self) -> None: ...

    @staticmethod
    def add() -> int:
        return 1 + 1

    @staticmethod
    def shout() -> None:
        return None

    @classmethod
    def describe(cls) -> str:
        return cls.__name__

    @staticmethod
    def explode() -> int:
        raise RuntimeError("kaboom")

    @staticmethod
    def scale(factor: int) -> int:
        return factor * 2

    @staticmethod
    async def later() -> int:
        return 5

    def instance_only(self) -> int:
        INSTANCE_CALLS.append(self)
        return 3
'''

CompileProject = Callable[..., CompileResult]


def write_sources(root: Path, files: Mapping[str, str]) -> list[Path]:
    """Write ``files`` (name to dedented text) below ``root`` and return their paths."""

    paths: list[Path] = []
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
        paths.append(path)
    return paths


@pytest.fixture
def compile_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CompileProject:
    """Return a helper compiling a mapping of file names to source text."""

    monkeypatch.chdir(tmp_path)

    def _compile(
        files: Mapping[str, str],
        *,
        options: CompileOptions | None = None,
        references: Collection[ReferenceHandle] = (),
    ) -> CompileResult:
        paths = write_sources(tmp_path, files)
        sources = validate_sources(paths)
        return compile_sources(sources.valid, references, options)

    return _compile


@pytest.fixture
def sample_artifact(compile_project: CompileProject) -> Artifact:
    """Return the in-memory artifact compiled from :data:`SAMPLE_SOURCE`."""

    result = compile_project({f"{SAMPLE_MODULE}.py": SAMPLE_SOURCE})
    assert result.ok, result.diagnostics
    assert result.artifact is not None
    return result.artifact


@pytest.fixture
def sample_holder(sample_artifact: Artifact) -> ArtifactHolder:
    return ArtifactHolder(sample_artifact)
