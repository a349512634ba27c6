"""Bridge from PySide6 key events to :class:`~jotter.editor.keymap.KeyPress`."""

from __future__ import annotations

from typing import Any

from .keymap import KeyPress

__all__ = ["key_press_from_qt"]


def _load_qt() -> Any:
    try:  # Local import to avoid a mandatory PySide6 dependency at import time.
        from PySide6.QtCore import Qt
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("PySide6 must be installed to translate Qt key events.") from exc
    return Qt


def key_press_from_qt(event: Any) -> KeyPress | None:
    """Translate a ``QKeyEvent`` into a :class:`KeyPress`.

    Returns ``None`` for keys that never map to a list command.
    """

    qt = _load_qt()
    key = int(event.key())
    shift = bool(event.modifiers() & qt.KeyboardModifier.ShiftModifier)
    names = {
        int(qt.Key.Key_Tab): "tab",
        int(qt.Key.Key_Backtab): "backtab",
        int(qt.Key.Key_Return): "enter",
        int(qt.Key.Key_Enter): "enter",
        int(qt.Key.Key_Backspace): "backspace",
        int(qt.Key.Key_Space): "space",
    }
    name = names.get(key)
    if name is None:
        return None
    return KeyPress(name, shift=shift)
