# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Config loading utilities with layered precedence."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from pydantic import ValidationError

from .config import Config, ConfigError

DEFAULT_INCLUDE_KEY: Final[str] = "include"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "runtime-compiler"
PROJECT_CONFIG_NAME: Final[str] = ".runtime-compiler.toml"

_KNOWN_SECTIONS: Final[frozenset[str]] = frozenset({"compile", "references", "output"})
# (section, field, is_list) entries holding filesystem paths.
_PATH_FIELDS: Final[tuple[tuple[str, str, bool], ...]] = (
    ("compile", "inputs", True),
    ("compile", "output", False),
    ("references", "directory", False),
)
_ENV_VAR_PATTERN = re.compile(r"\$(\w+)|\$\{([^}]+)\}")


@runtime_checkable
class ConfigSource(Protocol):
    """Anything able to contribute a configuration fragment."""

    name: str

    def load(self) -> Mapping[str, Any]: ...


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    return {key: _expand_env_value(value, env) for key, value in data.items()}


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _expand_env_string(value, env)
    if isinstance(value, Mapping):
        return {k: _expand_env_value(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(v, env) for v in value]
    return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        if key is None:
            return match.group(0)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _anchor_paths(fragment: Mapping[str, Any], base_dir: Path) -> dict[str, Any]:
    """Return ``fragment`` with relative path values anchored to ``base_dir``."""

    def anchor(raw: Any) -> Any:
        if not isinstance(raw, (str, Path)):
            return raw
        candidate = Path(raw).expanduser()
        return candidate if candidate.is_absolute() else base_dir / candidate

    result = dict(fragment)
    for section, key, is_list in _PATH_FIELDS:
        table = result.get(section)
        if not isinstance(table, Mapping) or key not in table:
            continue
        updated = dict(table)
        value = updated[key]
        if is_list and isinstance(value, list):
            updated[key] = [anchor(item) for item in value]
        elif is_list and isinstance(value, str):
            updated[key] = [anchor(value)]
        else:
            updated[key] = anchor(value)
        result[section] = updated
    return result


def _check_sections(fragment: Mapping[str, Any], origin: str) -> None:
    for key, value in fragment.items():
        if key not in _KNOWN_SECTIONS:
            raise ConfigError(f"{origin}: unknown configuration section '{key}'")
        if not isinstance(value, Mapping):
            raise ConfigError(f"{origin}: section '{key}' must be a table")


class DefaultConfigSource:
    """Return the built-in defaults as a configuration fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        return Config().to_dict()


class MappingConfigSource:
    """Wrap an in-memory fragment, typically command-line overrides."""

    def __init__(self, data: Mapping[str, Any], *, name: str = "cli") -> None:
        self.name = name
        self._data = data

    def load(self) -> Mapping[str, Any]:
        return dict(self._data)


class TomlConfigSource:
    """Load configuration data from a TOML document with include support."""

    def __init__(
        self,
        path: Path,
        *,
        name: str | None = None,
        include_key: str = DEFAULT_INCLUDE_KEY,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._root_path = path
        self.name = name or str(path)
        self._include_key = include_key
        self._env = env if env is not None else os.environ

    def load(self) -> Mapping[str, Any]:
        return self._load(self._root_path, ())

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Malformed TOML in {path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Unable to read {path}: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigError(f"Configuration at {path} must be a table")
        return dict(data)

    def _load(self, path: Path, stack: tuple[Path, ...]) -> Mapping[str, Any]:
        if not path.exists():
            return {}
        resolved = path.resolve()
        if resolved in stack:
            include_chain = " -> ".join(str(entry) for entry in (*stack, resolved))
            raise ConfigError(f"Circular include detected: {include_chain}")
        document = self._select(self._read(resolved))
        includes = document.pop(self._include_key, None)
        merged: dict[str, Any] = {}
        for include_path in self._coerce_includes(includes, resolved.parent):
            fragment = self._load(include_path, stack + (resolved,))
            merged = _deep_merge(merged, fragment)
        expanded = _expand_env(document, self._env)
        return _deep_merge(merged, _anchor_paths(expanded, resolved.parent))

    def _select(self, document: dict[str, Any]) -> dict[str, Any]:
        """Return the part of ``document`` holding configuration sections."""
        return document

    def _coerce_includes(self, raw: Any, base_dir: Path) -> Iterable[Path]:
        if raw is None:
            return []
        if isinstance(raw, str):
            return [self._resolve_path(Path(raw), base_dir)]
        if isinstance(raw, list) and all(isinstance(item, str) for item in raw):
            return [self._resolve_path(Path(item), base_dir) for item in raw]
        raise ConfigError(f"Unsupported include declaration: {raw!r}")

    @staticmethod
    def _resolve_path(path: Path, base_dir: Path) -> Path:
        return path if path.is_absolute() else (base_dir / path)


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.runtime-compiler]`` within ``pyproject.toml``."""

    def __init__(self, path: Path, *, env: Mapping[str, str] | None = None) -> None:
        super().__init__(path, name=str(path), env=env)

    def _select(self, document: dict[str, Any]) -> dict[str, Any]:
        tool_section = document.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return dict(section)


class ConfigLoader:
    """Apply layered configuration sources with predictable precedence."""

    def __init__(self, *, project_root: Path, sources: Sequence[ConfigSource]) -> None:
        if not sources:
            raise ValueError("at least one configuration source is required")
        self._sources = list(sources)
        self._project_root = project_root.resolve()

    @property
    def project_root(self) -> Path:
        return self._project_root

    @property
    def sources(self) -> tuple[ConfigSource, ...]:
        return tuple(self._sources)

    @classmethod
    def for_root(
        cls,
        project_root: Path,
        *,
        overrides: Mapping[str, Any] | None = None,
        project_config: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ConfigLoader:
        """Build a loader reading defaults, ``pyproject.toml``, the project file, then overrides.

        Args:
            project_root: Directory used to discover configuration files.
            overrides: Optional command-line fragment applied last.
            project_config: Optional project-level file replacing
                ``.runtime-compiler.toml``.
            env: Environment used for ``$VAR`` expansion; defaults to
                ``os.environ``.

        Returns:
            ConfigLoader: Loader configured with default precedence ordering.
        """

        root = project_root.resolve()
        project_file = project_config if project_config is not None else root / PROJECT_CONFIG_NAME
        pyproject = root / "pyproject.toml"
        sources: list[ConfigSource] = [DefaultConfigSource()]
        if pyproject.exists():
            sources.append(PyProjectConfigSource(pyproject, env=env))
        sources.append(TomlConfigSource(project_file, name=str(project_file), env=env))
        if overrides:
            sources.append(MappingConfigSource(overrides))
        return cls(project_root=root, sources=sources)

    def load(self) -> Config:
        """Return the merged configuration.

        Raises:
            ConfigError: If a source is malformed or the merged values are invalid.
        """

        merged: dict[str, Any] = {}
        for source in self._sources:
            if not (fragment := source.load()):
                continue
            _check_sections(fragment, source.name)
            merged = _deep_merge(merged, fragment)
        try:
            return Config.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


def load_config(project_root: Path, *, overrides: Mapping[str, Any] | None = None) -> Config:
    """Load configuration for ``project_root`` using the default tiered sources."""
    return ConfigLoader.for_root(project_root, overrides=overrides).load()


__all__ = [
    "PROJECT_CONFIG_NAME",
    "PYPROJECT_SECTION_KEY",
    "ConfigLoader",
    "ConfigSource",
    "DefaultConfigSource",
    "MappingConfigSource",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "load_config",
]
