"""Logical editing commands consumed by the list engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .document_model import ContentNode

__all__ = ["CommandKind", "CommandResult", "ListCommand", "parse_command_kind"]


class CommandKind(str, Enum):
    """Commands derived from raw key input."""

    CONVERT_TRIGGER = "convert_trigger"
    INDENT = "indent"
    UNINDENT = "unindent"
    SPLIT = "split"
    EXIT_OR_NEWLINE = "exit_or_newline"
    DELETE_BACKWARD = "delete_backward"


_COMMAND_ALIASES = {
    "convert": CommandKind.CONVERT_TRIGGER,
    "space": CommandKind.CONVERT_TRIGGER,
    "tab": CommandKind.INDENT,
    "shift-tab": CommandKind.UNINDENT,
    "outdent": CommandKind.UNINDENT,
    "newitem": CommandKind.SPLIT,
    "new-item": CommandKind.SPLIT,
    "enter": CommandKind.EXIT_OR_NEWLINE,
    "exit": CommandKind.EXIT_OR_NEWLINE,
    "backspace": CommandKind.DELETE_BACKWARD,
    "delete": CommandKind.DELETE_BACKWARD,
}


@dataclass(slots=True)
class ListCommand:
    """A command plus the content node holding the caret.

    ``offset`` is the caret position inside ``node.content``; only
    :attr:`CommandKind.SPLIT` (and Enter on a non-empty item) reads it, and it
    defaults to the end of the content.
    """

    kind: CommandKind
    node: ContentNode | None
    offset: int | None = None


@dataclass(slots=True)
class CommandResult:
    """Outcome of dispatching a command.

    ``handled`` is ``False`` when the engine declined the command; the host
    surface should then run its default behavior for the key.
    """

    kind: CommandKind
    handled: bool
    action: str | None = None
    reason: str = ""


def parse_command_kind(name: str) -> CommandKind:
    """Resolve a command name or alias (``tab``, ``enter``...) to a kind."""

    normalized = name.strip().lower().replace("_", "-")
    alias = _COMMAND_ALIASES.get(normalized)
    if alias is not None:
        return alias
    try:
        return CommandKind(normalized.replace("-", "_"))
    except ValueError as exc:
        raise ValueError(f"Unknown list command '{name}'") from exc
