"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from jotter.editor.caret import CaretTracker
from jotter.utils import logging as logging_utils


@pytest.fixture
def caret() -> CaretTracker:
    return CaretTracker()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    """Keep logs and settings of the developer machine out of the tests."""

    for name in (
        "JOTTER_CONVERT_TRIGGER",
        "JOTTER_BULLET",
        "JOTTER_INDENT_WIDTH",
        "JOTTER_PREVIEW_MAX_CHARS",
        "JOTTER_DEBUG_LOGGING",
        "JOTTER_SETTINGS_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JOTTER_LOG_DIR", str(tmp_path_factory.mktemp("logs")))


@pytest.fixture
def restore_root_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Undo root logger changes made by ``setup_logging``."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(logging_utils, "_LOG_PATH", None)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(False)
