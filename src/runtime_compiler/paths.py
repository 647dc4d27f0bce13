# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Helpers for reasoning about filesystem paths."""

from __future__ import annotations

import os
from functools import lru_cache
from os import PathLike
from pathlib import Path
from typing import Final

_Pathish = str | PathLike[str] | Path
_DEFAULT_CACHE_SIZE: Final[int] = 1024


@lru_cache(maxsize=_DEFAULT_CACHE_SIZE)
def _best_effort_resolve(path: Path) -> Path:
    """Return ``path`` resolved where possible without raising.

    Args:
        path: Candidate path to resolve.

    Returns:
        Path: Absolute variant when resolution succeeds; otherwise the closest
        achievable approximation.

    """

    try:
        return path.resolve(strict=False)
    except (OSError, RuntimeError):
        return path.absolute() if not path.is_absolute() else path


def resolve_path(path: _Pathish, *, base_dir: _Pathish | None = None) -> Path:
    """Return an absolute, resolved variant of ``path``.

    Args:
        path: Filesystem path supplied by the caller.
        base_dir: Directory used to anchor relative paths. Defaults to
            ``Path.cwd()`` when omitted.

    Returns:
        Path: Absolute path with symlinks resolved where possible.

    Raises:
        ValueError: If ``path`` is ``None``.

    """

    if path is None:
        raise ValueError("path must not be None")

    raw_path = Path(path).expanduser()
    if raw_path.is_absolute():
        return _best_effort_resolve(raw_path)
    base = Path.cwd() if base_dir is None else Path(base_dir).expanduser()
    return _best_effort_resolve(base / raw_path)


def normalize_path(path: _Pathish, *, base_dir: _Pathish | None = None) -> Path:
    """Return ``path`` normalised relative to ``base_dir``.

    Args:
        path: Filesystem path supplied by the caller.
        base_dir: Base directory used to relativise the path. Defaults to
            ``Path.cwd()`` when omitted.

    Returns:
        Path: Relative path when both inputs share a lineage, otherwise the
        resolved absolute candidate.

    """

    base = resolve_path(Path.cwd() if base_dir is None else base_dir)
    candidate = resolve_path(path, base_dir=base)

    try:
        return candidate.relative_to(base)
    except ValueError:
        try:
            return Path(os.path.relpath(candidate, base))
        except ValueError:
            return candidate


def display_relative_path(path: _Pathish, root: _Pathish | None = None) -> str:
    """Return a display-friendly representation of ``path`` relative to ``root``.

    Paths that would have to climb out of ``root`` are shown absolute.
    """

    try:
        relative = normalize_path(path, base_dir=root)
    except ValueError:
        return str(path)
    if relative.is_absolute() or relative.parts[:1] == ("..",):
        return resolve_path(path).as_posix()
    return relative.as_posix()


__all__ = (
    "display_relative_path",
    "normalize_path",
    "resolve_path",
)
