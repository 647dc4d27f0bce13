# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for the command line (logging adapter and errors)."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from rich.console import Console
from rich.text import Text

from ..console import get_console_manager
from ..errors import RuntimeCompilerError
from ..logging import emit_diagnostics
from ..logging import fail as core_fail
from ..logging import info as core_info
from ..logging import ok as core_ok
from ..logging import plain as core_plain
from ..logging import section as core_section
from ..logging import warn as core_warn
from ..models import Diagnostic


class CLIError(RuntimeCompilerError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI emoji and colour settings."""

    console: Console
    use_emoji: bool
    use_color: bool = True
    debug_enabled: bool = False
    _key_value_re: re.Pattern[str] = re.compile(r"([\w-]+)=(\".*?\"|\S+)")

    def fail(self, message: str) -> None:
        """Log a failure message."""

        core_fail(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def warn(self, message: str) -> None:
        """Log a warning message."""

        core_warn(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def ok(self, message: str) -> None:
        """Log a success message."""

        core_ok(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def info(self, message: str) -> None:
        """Log an informational message."""

        core_info(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def section(self, title: str) -> None:
        """Print a section header."""

        core_section(title, use_color=self.use_color)

    def output(self, lines: Iterable[str]) -> None:
        """Print command output lines verbatim."""

        for line in lines:
            core_plain(line, use_color=self.use_color)

    def diagnostics(self, diagnostics: Iterable[Diagnostic]) -> int:
        """Print ``diagnostics`` and return how many were printed."""

        return emit_diagnostics(diagnostics, use_color=self.use_color)

    def debug(self, message: str) -> None:
        """Emit a debug message when debug logging is enabled.

        Args:
            message: Debug payload rendered with simple ``key=value`` highlighting.
        """

        if not self.debug_enabled:
            return
        text = Text("[debug] ", style="bold cyan")
        cursor = 0
        for match in self._key_value_re.finditer(message):
            start, end = match.span()
            if start > cursor:
                text.append(message[cursor:start], style="dim")
            key, raw_value = match.group(1), match.group(2)
            text.append(key, style="bold magenta")
            text.append("=", style="dim")
            text.append(raw_value, style="bold blue" if key in {"command", "cmd"} else "bold green")
            cursor = end
        if cursor < len(message):
            text.append(message[cursor:], style="dim")
        self.console.print(text)


def build_cli_logger(*, emoji: bool, debug: bool = False, color: bool = True) -> CLILogger:
    """Return a ``CLILogger`` configured for the provided presentation preferences.

    Args:
        emoji: Whether log output may include emoji glyphs.
        debug: Whether debug logging should be enabled.
        color: Whether terminal colour output may be used.

    Returns:
        CLILogger: Logger bound to the shared Rich console for those preferences.
    """

    console = get_console_manager().get(color=color, emoji=emoji)
    return CLILogger(console=console, use_emoji=emoji, use_color=color, debug_enabled=debug)


__all__ = ["CLIError", "CLILogger", "build_cli_logger"]
