# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Discovery of loadable reference modules next to the sources."""

from __future__ import annotations

import importlib.util
import logging
from collections.abc import Callable, Iterable, Sequence
from importlib.machinery import EXTENSION_SUFFIXES
from pathlib import Path
from types import ModuleType

from .models import ReferenceHandle, module_name_for

LOGGER = logging.getLogger(__name__)

DEFAULT_REFERENCE_SUFFIXES: tuple[str, ...] = tuple(EXTENSION_SUFFIXES)

ReferenceLoader = Callable[[str, Path], ModuleType]


def load_module_from_file(name: str, path: Path) -> ModuleType:
    """Load ``path`` as a module called ``name`` without registering it.

    Raises:
        ImportError: If no import loader accepts the file.
    """

    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"no loader available for {path}", name=name, path=str(path))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _matching_suffix(filename: str, suffixes: Sequence[str]) -> str | None:
    matches = [suffix for suffix in suffixes if filename.endswith(suffix)]
    if not matches:
        return None
    return max(matches, key=len)


def _reference_name(path: Path, suffix: str) -> str:
    return module_name_for(Path(path.name[: -len(suffix)]))


def iter_candidates(directory: Path, suffixes: Sequence[str]) -> Iterable[tuple[str, Path]]:
    """Yield ``(module_name, path)`` for candidate files directly in ``directory``."""

    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return
    for entry in entries:
        if not entry.is_file():
            continue
        suffix = _matching_suffix(entry.name, suffixes)
        if suffix is None or len(suffix) == len(entry.name):
            continue
        yield _reference_name(entry, suffix), entry


def resolve_references(
    directory: Path,
    *,
    suffixes: Sequence[str] = DEFAULT_REFERENCE_SUFFIXES,
    loader: ReferenceLoader = load_module_from_file,
) -> frozenset[ReferenceHandle]:
    """Return a handle for every loadable module file in ``directory``.

    Candidates that fail to load are not references and are dropped without
    raising. Handles are unique by module name; the first file (in sorted
    order) that loads a given module wins.

    Args:
        directory: Directory scanned non-recursively.
        suffixes: File name suffixes that identify candidate modules.
        loader: Callable loading a single candidate.

    Returns:
        frozenset[ReferenceHandle]: Loaded references, in no particular order.
    """

    handles: dict[str, ReferenceHandle] = {}
    for name, path in iter_candidates(directory, suffixes):
        if name in handles:
            continue
        try:
            module = loader(name, path)
        except Exception as exc:  # noqa: BLE001 - unloadable candidates are simply not references
            LOGGER.debug("skipping reference candidate %s: %s", path, exc)
            continue
        handles[name] = ReferenceHandle(name=name, path=path, module=module)
    return frozenset(handles.values())


__all__ = [
    "DEFAULT_REFERENCE_SUFFIXES",
    "ReferenceLoader",
    "iter_candidates",
    "load_module_from_file",
    "resolve_references",
]
