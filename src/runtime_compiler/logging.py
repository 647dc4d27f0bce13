# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing logging helpers with optional colour and emoji support."""

from __future__ import annotations

from collections.abc import Iterable

from rich.rule import Rule
from rich.text import Text

from .console import detect_tty, get_console_manager
from .models import Diagnostic
from .severity import severity_label, severity_style


def emoji(symbol: str, enable: bool) -> str:
    """Select an emoji symbol based on the caller's preference.

    Args:
        symbol: Emoji text to include in the output.
        enable: Flag indicating whether emoji output is desired.

    Returns:
        str: Emoji symbol when enabled, otherwise an empty string.
    """

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
) -> None:
    color_enabled = detect_tty() if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def section(title: str, *, use_color: bool) -> None:
    """Render a section header to delineate console output blocks."""

    console = get_console_manager().get(color=use_color, emoji=True)
    if use_color and detect_tty():
        console.print()
        console.print(Rule(title))
    else:
        console.print(Text(f"\n--- {title} ---"))


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    prefix = emoji("ℹ️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message."""

    prefix = emoji("✅ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message."""

    prefix = emoji("⚠️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message."""

    prefix = emoji("❌ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="red", use_emoji=use_emoji, use_color=use_color)


def plain(msg: str, *, use_color: bool | None = None) -> None:
    """Emit ``msg`` verbatim, without prefix or styling."""

    _print_line(msg, style=None, use_emoji=False, use_color=use_color)


def render_diagnostic(diagnostic: Diagnostic) -> str:
    """Return the single-line textual form of ``diagnostic``.

    The location suffix lists only the parts the toolchain reported; a
    diagnostic without a file carries no suffix at all.
    """

    text = f"[{severity_label(diagnostic.severity)}] [{diagnostic.code}] {diagnostic.message}"
    if diagnostic.file is None:
        return text
    location = [f"File: {diagnostic.file}"]
    if diagnostic.line is not None:
        location.append(f"line: {diagnostic.line}")
        if diagnostic.column is not None:
            location.append(f"column: {diagnostic.column}")
    return f"{text} ({', '.join(location)})"


def emit_diagnostics(diagnostics: Iterable[Diagnostic], *, use_color: bool | None = None) -> int:
    """Print every diagnostic on its own line and return how many were printed."""

    color_enabled = detect_tty() if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=False)
    count = 0
    for diagnostic in diagnostics:
        text = Text(render_diagnostic(diagnostic))
        if color_enabled:
            text.stylize(severity_style(diagnostic.severity))
        console.print(text)
        count += 1
    return count


__all__ = [
    "emit_diagnostics",
    "emoji",
    "fail",
    "info",
    "ok",
    "plain",
    "render_diagnostic",
    "section",
    "warn",
]
