# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Frozen descriptors for a compiled program and the single-slot holder.

The descriptors are built once per compile by reflecting over the loaded
modules. Every later query reads these descriptors; nothing re-inspects the
live modules.
"""

from __future__ import annotations

import array
import dataclasses
import enum
import inspect
from collections.abc import Callable, Iterator, Mapping
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from types import GenericAlias, ModuleType
from typing import Any, Final, get_origin

from .errors import NoArtifactLoadedError
from .toolchain import CompiledModules

UNANNOTATED: Final[str] = "object"
_ARRAY_BASES: Final[tuple[type, ...]] = (list, bytearray, array.array)
_DEFAULT_ARITY: Final[int] = 1


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """A public data attribute of a type."""

    type_name: str
    declaring_type: str
    name: str


@dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    """A public property; both access flags may be false."""

    type_name: str
    declaring_type: str
    name: str
    readable: bool
    writable: bool

    @property
    def access_mode(self) -> str:
        """Return ``get/set``, ``get``, ``set`` or an empty string."""
        return "/".join(mode for mode, enabled in (("get", self.readable), ("set", self.writable)) if enabled)


@dataclass(frozen=True, slots=True)
class MethodDescriptor:
    """A public method together with the callable used to invoke it."""

    return_type: str
    declaring_type: str
    name: str
    is_static: bool
    parameter_count: int
    target: Callable[..., Any] | None = field(default=None, compare=False, repr=False)

    @property
    def invocable(self) -> bool:
        """Return ``True`` for static methods that take no parameters."""
        return self.is_static and self.parameter_count == 0


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Structure of one class declared by the compiled program."""

    full_name: str
    qualified_name: str
    module: str
    is_public: bool = True
    is_enum: bool = False
    is_generic: bool = False
    is_value_type: bool = False
    is_array: bool = False
    is_abstract: bool = False
    is_sealed: bool = False
    fields: tuple[FieldDescriptor, ...] = ()
    properties: tuple[PropertyDescriptor, ...] = ()
    methods: tuple[MethodDescriptor, ...] = ()

    @property
    def name(self) -> str:
        """Return the unqualified class name."""
        return self.qualified_name.rsplit(".", 1)[-1]

    @property
    def is_static(self) -> bool:
        """Return ``True`` when the type is both sealed and abstract."""
        return self.is_sealed and self.is_abstract

    def find_method(self, name: str) -> MethodDescriptor | None:
        """Return the first method called ``name``; parameters are not considered."""
        return next((method for method in self.methods if method.name == name), None)


@dataclass(frozen=True, slots=True)
class Artifact:
    """Immutable model of one successful compile.

    ``location`` is ``None`` for an in-memory artifact and the archive path
    otherwise.
    """

    types: tuple[TypeDescriptor, ...]
    location: Path | None = None
    compiled: CompiledModules | None = field(default=None, compare=False, repr=False)

    @property
    def in_memory(self) -> bool:
        """Return ``True`` when the artifact has no durable location."""
        return self.location is None

    def find_types(self, name: str) -> tuple[TypeDescriptor, ...]:
        """Return the types matching ``name``.

        Full names are tried first, then qualified names, then simple names;
        the first tier with any match wins.
        """

        for key in ("full_name", "qualified_name", "name"):
            matches = tuple(descriptor for descriptor in self.types if getattr(descriptor, key) == name)
            if matches:
                return matches
        return ()

    def activated(self) -> AbstractContextManager[None]:
        """Return a context exposing the artifact's modules to the import system."""
        if self.compiled is None:
            return nullcontext()
        return self.compiled.activated()


class ArtifactHolder:
    """Single slot holding the most recently compiled artifact.

    A new artifact replaces the previous one wholesale; readers observe either
    nothing or a fully built artifact.
    """

    def __init__(self, artifact: Artifact | None = None) -> None:
        self._current = artifact

    @property
    def current(self) -> Artifact | None:
        """Return the held artifact, if any."""
        return self._current

    def replace(self, artifact: Artifact) -> Artifact | None:
        """Swap in ``artifact`` and return the artifact it replaced."""
        previous, self._current = self._current, artifact
        return previous

    def clear(self) -> None:
        """Drop the held artifact."""
        self._current = None

    def require(self) -> Artifact:
        """Return the held artifact.

        Raises:
            NoArtifactLoadedError: If no compile has succeeded yet.
        """

        if self._current is None:
            raise NoArtifactLoadedError()
        return self._current


def type_name(cls: type) -> str:
    """Return the display name of ``cls``; builtins are shown unqualified."""

    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def format_annotation(annotation: object) -> str:
    """Render an annotation the way member listings show types."""

    if annotation is inspect.Parameter.empty:
        return UNANNOTATED
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, GenericAlias) or get_origin(annotation) is not None:
        return repr(annotation).replace("typing.", "")
    if isinstance(annotation, type):
        return type_name(annotation)
    return repr(annotation).replace("typing.", "")


def _own_annotations(obj: object) -> Mapping[str, object]:
    try:
        return inspect.get_annotations(obj)  # type: ignore[arg-type]
    except (NameError, AttributeError, TypeError):
        return {}


def _return_annotation(func: object) -> str:
    return format_annotation(_own_annotations(func).get("return", inspect.Parameter.empty))


def _arity(func: Callable[..., Any]) -> int:
    try:
        return len(inspect.signature(func).parameters)
    except (TypeError, ValueError):
        code = getattr(func, "__code__", None)
        return code.co_argcount if code is not None else _DEFAULT_ARITY


def _is_public(qualname: str) -> bool:
    return not any(part.startswith("_") for part in qualname.split(".") if part != "<locals>")


def _is_value_type(cls: type) -> bool:
    if issubclass(cls, tuple):
        return True
    params = getattr(cls, "__dataclass_params__", None)
    return dataclasses.is_dataclass(cls) and bool(getattr(params, "frozen", False))


def _member_sources(cls: type) -> Iterator[type]:
    """Yield the classes whose members are listed for ``cls``, most derived first."""

    for klass in cls.__mro__:
        if klass is object or klass.__module__ == "builtins":
            continue
        yield klass


@dataclass(slots=True)
class _MemberCollector:
    """Accumulate the members of one type while walking its MRO."""

    owner: type
    seen: set[str] = field(default_factory=set)
    fields: list[FieldDescriptor] = field(default_factory=list)
    properties: list[PropertyDescriptor] = field(default_factory=list)
    methods: list[MethodDescriptor] = field(default_factory=list)

    def collect(self) -> None:
        if issubclass(self.owner, enum.Enum):
            declaring = type_name(self.owner)
            for name in self.owner.__members__:
                self.seen.add(name)
                self.fields.append(FieldDescriptor(type_name=declaring, declaring_type=declaring, name=name))
        for klass in _member_sources(self.owner):
            self._collect_from(klass)

    def _collect_from(self, klass: type) -> None:
        declaring = type_name(klass)
        annotations = _own_annotations(klass)
        for name, raw in vars(klass).items():
            if name.startswith("_") or name in self.seen or isinstance(raw, type):
                continue
            self.seen.add(name)
            self._add_member(klass, declaring, name, raw, annotations)
        for name, annotation in annotations.items():
            if name.startswith("_") or name in self.seen:
                continue
            self.seen.add(name)
            self.fields.append(
                FieldDescriptor(type_name=format_annotation(annotation), declaring_type=declaring, name=name),
            )

    def _add_member(
        self,
        klass: type,
        declaring: str,
        name: str,
        raw: object,
        annotations: Mapping[str, object],
    ) -> None:
        if isinstance(raw, (staticmethod, classmethod)):
            target = getattr(self.owner, name)
            self.methods.append(
                MethodDescriptor(
                    return_type=_return_annotation(raw.__func__),
                    declaring_type=declaring,
                    name=name,
                    is_static=True,
                    parameter_count=_arity(target),
                    target=target,
                ),
            )
            return
        if inspect.isroutine(raw):
            self.methods.append(
                MethodDescriptor(
                    return_type=_return_annotation(raw),
                    declaring_type=declaring,
                    name=name,
                    is_static=False,
                    parameter_count=max(_arity(raw) - 1, 0),
                    target=raw,
                ),
            )
            return
        if isinstance(raw, cached_property):
            self.properties.append(
                PropertyDescriptor(
                    type_name=_return_annotation(raw.func),
                    declaring_type=declaring,
                    name=name,
                    readable=True,
                    writable=False,
                ),
            )
            return
        if hasattr(raw, "fget") and hasattr(raw, "__get__"):
            fget = getattr(raw, "fget", None)
            fset = getattr(raw, "fset", None)
            self.properties.append(
                PropertyDescriptor(
                    type_name=_return_annotation(fget) if fget is not None else UNANNOTATED,
                    declaring_type=declaring,
                    name=name,
                    readable=fget is not None,
                    writable=fset is not None,
                ),
            )
            return
        if name in annotations:
            field_type = format_annotation(annotations[name])
        else:
            field_type = type_name(type(raw))
        self.fields.append(FieldDescriptor(type_name=field_type, declaring_type=declaring, name=name))


def describe_type(cls: type) -> TypeDescriptor:
    """Reflect over ``cls`` once and return its descriptor."""

    collector = _MemberCollector(owner=cls)
    collector.collect()
    is_enum = issubclass(cls, enum.Enum)
    return TypeDescriptor(
        full_name=type_name(cls),
        qualified_name=cls.__qualname__,
        module=cls.__module__,
        is_public=_is_public(cls.__qualname__),
        is_enum=is_enum,
        is_generic=bool(getattr(cls, "__parameters__", ())),
        is_value_type=_is_value_type(cls),
        is_array=issubclass(cls, _ARRAY_BASES),
        is_abstract=inspect.isabstract(cls),
        is_sealed=bool(getattr(cls, "__final__", False)) or (is_enum and len(cls.__members__) > 0),
        fields=tuple(collector.fields),
        properties=tuple(collector.properties),
        methods=tuple(collector.methods),
    )


def _walk_types(namespace: Mapping[str, object], module_name: str, seen: set[int]) -> Iterator[type]:
    for value in list(namespace.values()):
        if not isinstance(value, type) or value.__module__ != module_name or id(value) in seen:
            continue
        seen.add(id(value))
        yield value
        yield from _walk_types(vars(value), module_name, seen)


def iter_declared_types(module: ModuleType) -> Iterator[type]:
    """Yield the classes declared by ``module``, nested classes included."""

    yield from _walk_types(vars(module), module.__name__, set())


def build_artifact(compiled: CompiledModules, *, location: Path | None = None) -> Artifact:
    """Reflect over ``compiled`` in a single pass and freeze the result."""

    with compiled.activated():
        types = tuple(describe_type(cls) for module in compiled for cls in iter_declared_types(module))
    return Artifact(types=types, location=location, compiled=compiled)


__all__ = [
    "UNANNOTATED",
    "Artifact",
    "ArtifactHolder",
    "FieldDescriptor",
    "MethodDescriptor",
    "PropertyDescriptor",
    "TypeDescriptor",
    "build_artifact",
    "describe_type",
    "format_annotation",
    "iter_declared_types",
    "type_name",
]
