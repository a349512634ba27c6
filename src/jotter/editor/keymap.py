"""Mapping from raw key presses to logical list commands."""

from __future__ import annotations

from dataclasses import dataclass

from .commands import CommandKind

__all__ = ["KeyPress", "command_for_key"]

_KEY_ALIASES = {
    " ": "space",
    "space": "space",
    "spacebar": "space",
    "tab": "tab",
    "backtab": "backtab",
    "enter": "enter",
    "return": "enter",
    "backspace": "backspace",
}


@dataclass(frozen=True, slots=True)
class KeyPress:
    """A key name as reported by the host surface plus the Shift state."""

    key: str
    shift: bool = False

    @property
    def name(self) -> str:
        raw = self.key if self.key == " " else self.key.strip().lower()
        return _KEY_ALIASES.get(raw, raw)


def command_for_key(press: KeyPress) -> CommandKind | None:
    """Return the list command bound to ``press`` or ``None`` for ordinary keys."""

    name = press.name
    if name == "space":
        return CommandKind.CONVERT_TRIGGER
    if name == "backtab":
        return CommandKind.UNINDENT
    if name == "tab":
        return CommandKind.UNINDENT if press.shift else CommandKind.INDENT
    if name == "enter" and not press.shift:
        return CommandKind.EXIT_OR_NEWLINE
    if name == "backspace":
        return CommandKind.DELETE_BACKWARD
    return None
