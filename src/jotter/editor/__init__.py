"""Editor package containing the document tree and the list engine."""

from importlib import import_module
from typing import Any

from . import caret, cleanup, commands, document_model, engine, keymap, markdown, mutators, serialization
from .engine import ListEngine

__all__ = [
    "ListEngine",
    "caret",
    "cleanup",
    "commands",
    "document_model",
    "engine",
    "keymap",
    "markdown",
    "mutators",
    "serialization",
]


def __getattr__(name: str) -> Any:
    if name == "qt_keys":
        module = import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
