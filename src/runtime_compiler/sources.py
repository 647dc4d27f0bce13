# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Validation of the requested source file set."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

from .models import SourcePath
from .paths import resolve_path

InvalidSourceCallback = Callable[[Path], None]


@dataclass(frozen=True, slots=True)
class SourceSet:
    """Outcome of validating a requested list of source paths.

    Attributes:
        valid: Existing regular files, unique by resolved path.
        rejected: Requested paths that were dropped, in request order.
    """

    valid: frozenset[SourcePath] = field(default_factory=frozenset)
    rejected: tuple[Path, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.valid)

    def __len__(self) -> int:
        return len(self.valid)

    def ordered(self) -> tuple[SourcePath, ...]:
        """Return the valid sources in a deterministic (path-sorted) order."""
        return tuple(sorted(self.valid, key=lambda source: source.path.as_posix()))


def validate_sources(
    requested: Iterable[str | PathLike[str]],
    *,
    on_invalid: InvalidSourceCallback | None = None,
) -> SourceSet:
    """Partition ``requested`` into existing source files and rejected paths.

    Args:
        requested: Source paths in the order the operator supplied them.
        on_invalid: Callback invoked once per rejected path, used to surface
            the warning to the operator.

    Returns:
        SourceSet: Valid sources plus the rejected paths. An empty valid set is
        returned as-is; deciding whether that is fatal is left to the
        compilation bridge.
    """

    valid: set[SourcePath] = set()
    rejected: list[Path] = []
    for entry in requested:
        candidate = Path(entry)
        resolved = resolve_path(candidate)
        if not resolved.is_file():
            rejected.append(candidate)
            if on_invalid is not None:
                on_invalid(candidate)
            continue
        valid.add(SourcePath(resolved))
    return SourceSet(valid=frozenset(valid), rejected=tuple(rejected))


__all__ = ["InvalidSourceCallback", "SourceSet", "validate_sources"]
