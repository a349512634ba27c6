"""Command dispatcher driving the structural list mutators.

The engine owns one :class:`~jotter.editor.document_model.Document` (injected
at construction) and processes one command at a time: resolve the acting
node, run the matching mutator, then notify change listeners. Commands whose
preconditions are not met are declined so the host surface can fall back to
its default key behavior.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from ..services.settings import Settings
from .caret import CaretService, CaretTracker
from .commands import CommandKind, CommandResult, ListCommand
from .document_model import ContentNode, Document, Paragraph, document_of, enclosing_item, is_empty
from .keymap import KeyPress, command_for_key
from .markdown import render_markdown
from . import mutators

__all__ = ["ChangeListener", "ListEngine"]

LOGGER = logging.getLogger(__name__)


class ChangeListener(Protocol):
    """Callback fired after a handled command mutated the document."""

    def __call__(self, document: Document, result: CommandResult) -> None:
        ...


class ListEngine:
    """Dispatch logical commands to the tree mutators."""

    def __init__(
        self,
        document: Document | None = None,
        *,
        caret: CaretService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._document = document if document is not None else Document()
        self._caret: CaretService = caret if caret is not None else CaretTracker()
        self._settings = settings or Settings()
        self._listeners: list[ChangeListener] = []
        self._handlers: dict[CommandKind, Callable[[ListCommand], CommandResult]] = {
            CommandKind.CONVERT_TRIGGER: self._convert,
            CommandKind.INDENT: self._indent,
            CommandKind.UNINDENT: self._unindent,
            CommandKind.SPLIT: self._split,
            CommandKind.EXIT_OR_NEWLINE: self._exit_or_newline,
            CommandKind.DELETE_BACKWARD: self._delete_backward,
        }

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def document(self) -> Document:
        return self._document

    @property
    def caret(self) -> CaretService:
        return self._caret

    @property
    def settings(self) -> Settings:
        return self._settings

    def add_change_listener(self, listener: ChangeListener) -> None:
        """Register a callback fired after every handled command."""

        self._listeners.append(listener)

    def render(self) -> str:
        """Return the Markdown projection of the current document."""

        return render_markdown(
            self._document,
            bullet=self._settings.bullet,
            indent_width=self._settings.indent_width,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, command: ListCommand) -> CommandResult:
        """Run ``command`` to completion and report whether it was handled."""

        node = command.node
        if node is not None and document_of(node) is not self._document:
            result = self._decline(command, "caret node is not part of this document")
        else:
            result = self._handlers[command.kind](command)
        if result.handled:
            self._finish(result)
        else:
            LOGGER.debug("Declined %s: %s", command.kind.value, result.reason)
        return result

    def handle_key(self, press: KeyPress, node: ContentNode | None, offset: int | None = None) -> CommandResult | None:
        """Map a raw key press and dispatch it; ``None`` for non-list keys."""

        kind = command_for_key(press)
        if kind is None:
            return None
        return self.dispatch(ListCommand(kind=kind, node=node, offset=offset))

    def _finish(self, result: CommandResult) -> None:
        seeded = self._document.ensure_not_empty()
        if seeded is not None:
            LOGGER.warning("Document emptied by %s; seeded an empty paragraph", result.action)
        self._document.mark_changed(self.render())
        LOGGER.debug(
            "Applied %s (%s); document version %d",
            result.kind.value,
            result.action,
            self._document.version_id,
        )
        for listener in list(self._listeners):
            listener(self._document, result)

    @staticmethod
    def _decline(command: ListCommand, reason: str) -> CommandResult:
        return CommandResult(kind=command.kind, handled=False, reason=reason)

    @staticmethod
    def _handled(command: ListCommand, action: str) -> CommandResult:
        return CommandResult(kind=command.kind, handled=True, action=action)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def _convert(self, command: ListCommand) -> CommandResult:
        node = command.node
        if not isinstance(node, Paragraph):
            return self._decline(command, "trigger only applies to paragraphs")
        if node.content.strip() != self._settings.convert_trigger:
            return self._decline(command, "paragraph does not hold the list trigger")
        mutators.convert_paragraph(node, self._caret)
        return self._handled(command, "convert_paragraph")

    def _indent(self, command: ListCommand) -> CommandResult:
        item = enclosing_item(command.node)
        if item is None:
            return self._decline(command, "no enclosing list item")
        mutators.indent(item, self._caret)
        return self._handled(command, "indent")

    def _unindent(self, command: ListCommand) -> CommandResult:
        item = enclosing_item(command.node)
        if item is None:
            return self._decline(command, "no enclosing list item")
        mutators.unindent(item, self._caret)
        return self._handled(command, "unindent")

    def _split(self, command: ListCommand) -> CommandResult:
        item = enclosing_item(command.node)
        if item is None:
            return self._decline(command, "no enclosing list item")
        mutators.split_item(item, command.offset, self._caret)
        return self._handled(command, "split_item")

    def _exit_or_newline(self, command: ListCommand) -> CommandResult:
        item = enclosing_item(command.node)
        if item is None:
            return self._decline(command, "no enclosing list item")
        if is_empty(item):
            mutators.exit_list(item, self._caret)
            return self._handled(command, "exit_list")
        mutators.split_item(item, command.offset, self._caret)
        return self._handled(command, "split_item")

    def _delete_backward(self, command: ListCommand) -> CommandResult:
        item = enclosing_item(command.node)
        if item is None:
            return self._decline(command, "no enclosing list item")
        if not is_empty(item):
            return self._decline(command, "item has content")
        mutators.delete_empty_item(item, self._caret)
        return self._handled(command, "delete_empty_item")
