# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the artifact descriptors built by reflection."""

from __future__ import annotations

import typing

import pytest

from runtime_compiler.artifact import (
    Artifact,
    ArtifactHolder,
    FieldDescriptor,
    MethodDescriptor,
    PropertyDescriptor,
    TypeDescriptor,
    format_annotation,
)
from runtime_compiler.errors import NoArtifactLoadedError


def _type(artifact: Artifact, name: str) -> TypeDescriptor:
    (descriptor,) = artifact.find_types(name)
    return descriptor


def test_declared_types_include_nested_classes(sample_artifact: Artifact) -> None:
    names = {descriptor.full_name for descriptor in sample_artifact.types}

    assert "rc_sample.Outer.Inner" in names
    assert "rc_sample.MathUtils" in names
    assert all(name.startswith("rc_sample.") for name in names)


def test_type_flags(sample_artifact: Artifact) -> None:
    assert _type(sample_artifact, "Color").is_enum
    assert _type(sample_artifact, "Color").is_sealed
    assert _type(sample_artifact, "Point").is_value_type
    assert _type(sample_artifact, "Box").is_generic
    assert _type(sample_artifact, "Stack").is_array
    assert _type(sample_artifact, "Shape").is_abstract
    assert not _type(sample_artifact, "Square").is_abstract
    assert not _type(sample_artifact, "_Hidden").is_public
    math_utils = _type(sample_artifact, "MathUtils")
    assert math_utils.is_sealed and math_utils.is_abstract
    assert math_utils.is_static


def test_enum_members_are_fields(sample_artifact: Artifact) -> None:
    fields = _type(sample_artifact, "Color").fields

    assert fields[:2] == (
        FieldDescriptor(type_name="rc_sample.Color", declaring_type="rc_sample.Color", name="RED"),
        FieldDescriptor(type_name="rc_sample.Color", declaring_type="rc_sample.Color", name="GREEN"),
    )


def test_dataclass_fields_use_annotations(sample_artifact: Artifact) -> None:
    point = _type(sample_artifact, "Point")

    assert {(entry.name, entry.type_name) for entry in point.fields} == {("x", "int"), ("y", "int")}
    assert point.find_method("norm") == MethodDescriptor(
        return_type="int",
        declaring_type="rc_sample.Point",
        name="norm",
        is_static=False,
        parameter_count=0,
    )


def test_properties_record_access(sample_artifact: Artifact) -> None:
    properties = {entry.name: entry for entry in _type(sample_artifact, "Box").properties}

    assert properties["item"] == PropertyDescriptor(
        type_name="~T",
        declaring_type="rc_sample.Box",
        name="item",
        readable=True,
        writable=True,
    )
    assert properties["item"].access_mode == "get/set"
    assert properties["hidden"].access_mode == ""


def test_inherited_members_keep_declaring_type(sample_artifact: Artifact) -> None:
    square = _type(sample_artifact, "Square")

    (sides,) = [entry for entry in square.fields if entry.name == "sides"]
    assert sides.declaring_type == "rc_sample.Square"
    area = square.find_method("area")
    assert area is not None
    assert area.declaring_type == "rc_sample.Square"
    assert [entry.name for entry in square.methods].count("area") == 1


def test_static_and_class_methods_are_static(sample_artifact: Artifact) -> None:
    math_utils = _type(sample_artifact, "MathUtils")
    methods = {entry.name: entry for entry in math_utils.methods}

    assert methods["add"].invocable
    assert methods["describe"].invocable
    assert methods["scale"].is_static and methods["scale"].parameter_count == 1
    assert not methods["instance_only"].is_static
    assert "_sealed" not in methods


def test_find_types_prefers_full_then_qualified_then_simple(sample_artifact: Artifact) -> None:
    assert _type(sample_artifact, "rc_sample.Outer.Inner").qualified_name == "Outer.Inner"
    assert _type(sample_artifact, "Outer.Inner").name == "Inner"
    assert _type(sample_artifact, "Inner").full_name == "rc_sample.Outer.Inner"
    assert sample_artifact.find_types("Nope") == ()


def test_format_annotation_rendering() -> None:
    assert format_annotation(int) == "int"
    assert format_annotation(None) == "None"
    assert format_annotation("Forward") == "Forward"
    assert format_annotation(list[int]) == "list[int]"
    assert format_annotation(typing.List[int]) == "List[int]"


def test_holder_replaces_and_requires(sample_artifact: Artifact) -> None:
    holder = ArtifactHolder()
    with pytest.raises(NoArtifactLoadedError):
        holder.require()

    assert holder.replace(sample_artifact) is None
    assert holder.require() is sample_artifact

    replacement = Artifact(types=())
    assert holder.replace(replacement) is sample_artifact
    assert holder.current is replacement

    holder.clear()
    assert holder.current is None


def test_artifact_is_frozen(sample_artifact: Artifact) -> None:
    with pytest.raises(AttributeError):
        sample_artifact.location = None  # type: ignore[misc]
