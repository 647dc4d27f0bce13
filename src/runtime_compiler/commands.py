# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Line-oriented command surface over the current artifact."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .artifact import ArtifactHolder
from .errors import NoArtifactLoadedError
from .introspection import LIST_QUERIES, ListKind
from .invocation import InvocationOutcome, RejectionReason, Rejected, invoke

EXECUTE_SEPARATOR: Final[str] = "::"
LIST_USAGE: Final[str] = "You need to supply more arguments for this command (FIELD, PROPERTY, METHOD, TYPE)"
EXECUTE_USAGE: Final[str] = "You have to supply a type and a method in this format: typeName::methodName"


class CommandName(str, Enum):
    """Top-level commands understood by the router."""

    CMDS = "CMDS"
    LIST = "LIST"
    EXECUTE = "EXECUTE"


COMMAND_HELP: Final[dict[CommandName, str]] = {
    CommandName.CMDS: "CMDS - list available commands",
    CommandName.LIST: "LIST FIELD|PROPERTY|METHOD|TYPE - enumerate members of the loaded artifact",
    CommandName.EXECUTE: "EXECUTE <type>::<method> - invoke a static method that takes no parameters",
}


@dataclass(frozen=True, slots=True)
class CommandResponse:
    """Lines produced by one command.

    Attributes:
        command: Command that produced the response.
        lines: Output lines in display order.
        outcome: Invocation outcome for ``EXECUTE`` commands that got that far.
        is_hint: ``True`` when the response is a usage hint for a malformed command.
    """

    command: CommandName
    lines: tuple[str, ...]
    outcome: InvocationOutcome | None = None
    is_hint: bool = False


class CommandRouter:
    """Parse single command lines and dispatch them; holds no state of its own."""

    def __init__(self, holder: ArtifactHolder) -> None:
        self._holder = holder

    def handle(self, line: str) -> CommandResponse | None:
        """Dispatch ``line``; blank lines and unknown commands return ``None``."""

        tokens = line.split()
        if not tokens:
            return None
        try:
            command = CommandName(tokens[0].upper())
        except ValueError:
            return None
        if command is CommandName.CMDS:
            return self._cmds()
        if command is CommandName.LIST:
            return self._list(tokens[1:])
        return self._execute(line)

    @staticmethod
    def _cmds() -> CommandResponse:
        return CommandResponse(command=CommandName.CMDS, lines=tuple(COMMAND_HELP.values()))

    def _list(self, arguments: list[str]) -> CommandResponse:
        kind = ListKind.parse(arguments[0]) if arguments else None
        if kind is None:
            return CommandResponse(command=CommandName.LIST, lines=(LIST_USAGE,), is_hint=True)
        try:
            artifact = self._holder.require()
        except NoArtifactLoadedError as exc:
            return CommandResponse(command=CommandName.LIST, lines=(str(exc),))
        return CommandResponse(command=CommandName.LIST, lines=tuple(LIST_QUERIES[kind](artifact)))

    def _execute(self, line: str) -> CommandResponse:
        parts = line.strip().split(maxsplit=1)
        target = parts[1].strip() if len(parts) > 1 else ""
        pieces = target.split(EXECUTE_SEPARATOR)
        if len(pieces) < 2:
            outcome = Rejected(RejectionReason.MALFORMED, EXECUTE_USAGE)
            return CommandResponse(command=CommandName.EXECUTE, lines=(EXECUTE_USAGE,), outcome=outcome, is_hint=True)
        type_ref, method_name = pieces[0].strip(), pieces[1].strip()
        outcome = invoke(self._holder, type_ref, method_name)
        return CommandResponse(command=CommandName.EXECUTE, lines=(outcome.describe(),), outcome=outcome)


def run_command_loop(
    router: CommandRouter,
    lines: Iterable[str],
    emit: Callable[[CommandResponse], None],
) -> int:
    """Process ``lines`` one at a time, in order, until the input ends.

    Returns:
        int: Number of lines that produced a response.
    """

    handled = 0
    for line in lines:
        response = router.handle(line.rstrip("\r\n"))
        if response is None:
            continue
        handled += 1
        emit(response)
    return handled


__all__ = [
    "COMMAND_HELP",
    "EXECUTE_SEPARATOR",
    "EXECUTE_USAGE",
    "LIST_USAGE",
    "CommandName",
    "CommandResponse",
    "CommandRouter",
    "run_command_loop",
]
