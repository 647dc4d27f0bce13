# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Resolve and invoke static, parameterless methods of the loaded artifact."""

from __future__ import annotations

import asyncio
import inspect
import traceback
from dataclasses import dataclass
from enum import Enum

from .artifact import Artifact, ArtifactHolder, MethodDescriptor, type_name


class RejectionReason(str, Enum):
    """Why an ``EXECUTE`` request was refused before running any code."""

    NO_ARTIFACT = "no-artifact"
    MALFORMED = "malformed"
    TYPE_NOT_FOUND = "type-not-found"
    METHOD_NOT_FOUND = "method-not-found"
    REQUIRES_INSTANCE = "requires-instance"
    UNSUPPORTED_PARAMETERS = "unsupported-parameters"


@dataclass(frozen=True, slots=True)
class Invoked:
    """The method ran and returned a value."""

    return_type_name: str
    rendered_value: str

    def describe(self) -> str:
        return (
            f"Method executed, it has returned an object of type {self.return_type_name} "
            f"with value: {self.rendered_value}"
        )


@dataclass(frozen=True, slots=True)
class InvokedVoid:
    """The method ran and returned ``None``."""

    def describe(self) -> str:
        return "Method executed, it has returned no value."


@dataclass(frozen=True, slots=True)
class Rejected:
    """The request was refused; the method was not run."""

    reason: RejectionReason
    message: str

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class RuntimeFailure:
    """The invoked code raised an exception."""

    description: str
    traceback: str = ""

    def describe(self) -> str:
        return f"Method raised {self.description}"


InvocationOutcome = Invoked | InvokedVoid | Rejected | RuntimeFailure

NO_ARTIFACT_MESSAGE = "no artifact loaded"
REQUIRES_INSTANCE_MESSAGE = "not invocable: requires an instance"
UNSUPPORTED_PARAMETERS_MESSAGE = "not invocable: unsupported parameters"


def _artifact_of(source: ArtifactHolder | Artifact | None) -> Artifact | None:
    if isinstance(source, ArtifactHolder):
        return source.current
    return source


def resolve_method(artifact: Artifact, type_ref: str, method_name: str) -> MethodDescriptor | Rejected:
    """Resolve ``type_ref``/``method_name`` and check the method may be invoked."""

    candidates = artifact.find_types(type_ref)
    if not candidates:
        return Rejected(RejectionReason.TYPE_NOT_FOUND, f"Type {type_ref} not found.")
    if len(candidates) > 1:
        names = ", ".join(candidate.full_name for candidate in candidates)
        return Rejected(RejectionReason.TYPE_NOT_FOUND, f"Type {type_ref} is ambiguous: {names}.")
    descriptor = candidates[0]

    method = descriptor.find_method(method_name)
    if method is None:
        return Rejected(
            RejectionReason.METHOD_NOT_FOUND,
            f"Method {descriptor.full_name}::{method_name} not found.",
        )
    if not method.is_static:
        return Rejected(
            RejectionReason.REQUIRES_INSTANCE,
            f"{REQUIRES_INSTANCE_MESSAGE} ({descriptor.full_name}::{method.name} is an instance method).",
        )
    if method.parameter_count != 0:
        return Rejected(
            RejectionReason.UNSUPPORTED_PARAMETERS,
            f"{UNSUPPORTED_PARAMETERS_MESSAGE} ({descriptor.full_name}::{method.name} "
            f"takes {method.parameter_count}).",
        )
    return method


def invoke(source: ArtifactHolder | Artifact | None, type_ref: str, method_name: str) -> InvocationOutcome:
    """Invoke ``type_ref::method_name`` with no receiver and no arguments.

    Args:
        source: Holder (or artifact) providing the current artifact.
        type_ref: Full, qualified, or simple name of the declaring type.
        method_name: Method name; resolution ignores parameters.

    Returns:
        InvocationOutcome: What happened. Failures raised by the invoked code
        are captured as :class:`RuntimeFailure`; nothing propagates.
    """

    artifact = _artifact_of(source)
    if artifact is None:
        return Rejected(RejectionReason.NO_ARTIFACT, NO_ARTIFACT_MESSAGE)

    resolved = resolve_method(artifact, type_ref, method_name)
    if isinstance(resolved, Rejected):
        return resolved
    if resolved.target is None:
        return Rejected(
            RejectionReason.METHOD_NOT_FOUND,
            f"Method {resolved.declaring_type}::{resolved.name} has no callable target.",
        )

    try:
        with artifact.activated():
            value = resolved.target()
            if inspect.iscoroutine(value):
                value = asyncio.run(value)
            if value is None:
                return InvokedVoid()
            # __str__ of the returned object is compiled code as well.
            return Invoked(return_type_name=type_name(type(value)), rendered_value=str(value))
    except (Exception, SystemExit) as exc:  # noqa: BLE001 - invoked code must never take the host down
        return RuntimeFailure(
            description=f"{type_name(type(exc))}: {_safe_str(exc)}",
            traceback="".join(traceback.format_exception(exc)),
        )


def _safe_str(exc: BaseException) -> str:
    """Render ``exc`` even when its own ``__str__`` raises."""

    try:
        return str(exc)
    except Exception:  # noqa: BLE001 - the exception type is still reported
        return "<unprintable exception>"


__all__ = [
    "NO_ARTIFACT_MESSAGE",
    "REQUIRES_INSTANCE_MESSAGE",
    "UNSUPPORTED_PARAMETERS_MESSAGE",
    "InvocationOutcome",
    "Invoked",
    "InvokedVoid",
    "Rejected",
    "RejectionReason",
    "RuntimeFailure",
    "invoke",
    "resolve_method",
]
