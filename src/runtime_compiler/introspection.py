# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Read-only listings over an :class:`~runtime_compiler.artifact.Artifact`."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from enum import Enum
from typing import Final

from .artifact import Artifact, TypeDescriptor


class ListKind(str, Enum):
    """Member kinds accepted by ``LIST``."""

    FIELD = "FIELD"
    PROPERTY = "PROPERTY"
    METHOD = "METHOD"
    TYPE = "TYPE"

    @classmethod
    def parse(cls, token: str) -> ListKind | None:
        """Return the kind named by ``token`` (case-insensitive), if any."""
        try:
            return cls(token.upper())
        except ValueError:
            return None


def list_fields(artifact: Artifact) -> Iterator[str]:
    """Yield ``<fieldType>::<declaringType>.<fieldName>`` for every field."""

    for descriptor in artifact.types:
        for entry in descriptor.fields:
            yield f"{entry.type_name}::{entry.declaring_type}.{entry.name}"


def list_properties(artifact: Artifact) -> Iterator[str]:
    """Yield ``<accessMode> <propType>::<declaringType>.<propName>``."""

    for descriptor in artifact.types:
        for entry in descriptor.properties:
            yield f"{entry.access_mode} {entry.type_name}::{entry.declaring_type}.{entry.name}"


def list_methods(artifact: Artifact) -> Iterator[str]:
    """Yield ``<returnType>::<declaringType>.<methodName>`` for every method."""

    for descriptor in artifact.types:
        for entry in descriptor.methods:
            yield f"{entry.return_type}::{entry.declaring_type}.{entry.name}"


def type_modifiers(descriptor: TypeDescriptor) -> str:
    """Return the visibility and inheritance modifiers of ``descriptor``."""

    modifiers = ["public" if descriptor.is_public else "private"]
    if descriptor.is_sealed and descriptor.is_abstract:
        modifiers.append("static")
    elif descriptor.is_sealed:
        modifiers.append("sealed")
    elif descriptor.is_abstract:
        modifiers.append("abstract")
    return " ".join(modifiers)


def structural_flags(descriptor: TypeDescriptor) -> str:
    """Return the space separated structural flags of ``descriptor``."""

    flags = (
        ("enum", descriptor.is_enum),
        ("generic", descriptor.is_generic),
        ("valuetype", descriptor.is_value_type),
        ("array", descriptor.is_array),
    )
    return " ".join(label for label, enabled in flags if enabled)


def list_types(artifact: Artifact) -> Iterator[str]:
    """Yield ``<modifiers> <fullName> (<structuralFlags>)`` for every type."""

    for descriptor in artifact.types:
        yield f"{type_modifiers(descriptor)} {descriptor.full_name} ({structural_flags(descriptor)})"


LIST_QUERIES: Final[dict[ListKind, Callable[[Artifact], Iterator[str]]]] = {
    ListKind.FIELD: list_fields,
    ListKind.PROPERTY: list_properties,
    ListKind.METHOD: list_methods,
    ListKind.TYPE: list_types,
}


__all__ = [
    "LIST_QUERIES",
    "ListKind",
    "list_fields",
    "list_methods",
    "list_properties",
    "list_types",
    "structural_flags",
    "type_modifiers",
]
