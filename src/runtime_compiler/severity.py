# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Severity levels reported by the compiler toolchain."""

    ERROR = "error"
    WARNING = "warning"


_SEVERITY_LABELS: Final[dict[Severity, str]] = {
    Severity.ERROR: "ERROR",
    Severity.WARNING: "WARNING",
}

_SEVERITY_STYLES: Final[dict[Severity, str]] = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
}


def severity_label(severity: Severity) -> str:
    """Return the upper-case tag used when rendering ``severity``."""

    return _SEVERITY_LABELS.get(severity, severity.value.upper())


def severity_style(severity: Severity) -> str:
    """Return the Rich style associated with ``severity``."""

    return _SEVERITY_STYLES.get(severity, "yellow")


def severity_from_category(category: type[Warning] | type[BaseException]) -> Severity:
    """Infer severity from a Python exception or warning class.

    Warning categories map to :attr:`Severity.WARNING`; everything else is an
    error.
    """

    if issubclass(category, Warning):
        return Severity.WARNING
    return Severity.ERROR


__all__ = ["Severity", "severity_from_category", "severity_label", "severity_style"]
