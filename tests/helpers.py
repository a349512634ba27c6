"""Shared test helpers for building and inspecting document trees.

Trees are written in a compact nested form:

* a paragraph is ``("p", "text")``
* a list is ``("ul", [item, ...])``
* an item is either its text, or ``("text", [child item, ...])``
"""

from __future__ import annotations

from typing import Any

from jotter.editor.document_model import Document, ListBlock, ListItem, Paragraph


def build(*blocks: Any) -> Document:
    """Create a :class:`Document` from the compact nested form."""

    built = []
    for kind, payload in blocks:
        if kind == "p":
            built.append(Paragraph(payload))
        elif kind == "ul":
            built.append(_build_list(payload))
        else:  # pragma: no cover - guards against typos in tests
            raise ValueError(f"unknown block kind {kind!r}")
    return Document(built)


def _build_list(entries: list[Any]) -> ListBlock:
    lst = ListBlock()
    for entry in entries:
        if isinstance(entry, tuple):
            text, children = entry
            lst.append(ListItem(text, sublist=_build_list(children)))
        else:
            lst.append(ListItem(entry))
    return lst


def outline(document: Document) -> list[Any]:
    """Return the compact nested form of ``document``."""

    view: list[Any] = []
    for block in document.blocks:
        if isinstance(block, Paragraph):
            view.append(("p", block.content))
        else:
            view.append(("ul", _outline_list(block)))
    return view


def _outline_list(lst: ListBlock) -> list[Any]:
    entries: list[Any] = []
    for item in lst:
        if item.sublist is not None:
            entries.append((item.content, _outline_list(item.sublist)))
        else:
            entries.append(item.content)
    return entries


def assert_well_formed(document: Document) -> None:
    """Check parent links, non-empty lists and a non-empty document."""

    assert len(document) > 0, "document must never be empty"
    for block in document.blocks:
        assert block.parent is document
        if isinstance(block, ListBlock):
            _check_list(block)


def _check_list(lst: ListBlock) -> None:
    assert len(lst) > 0, "lists must hold at least one item"
    for item in lst:
        assert item.parent is lst
        if item.sublist is not None:
            assert item.sublist.parent is item
            _check_list(item.sublist)


def item_at(document: Document, *indexes: int) -> ListItem:
    """Return the item addressed by ``block, item, item...`` indexes."""

    block_index, *item_indexes = indexes
    block = document.blocks[block_index]
    assert isinstance(block, ListBlock)
    current: ListBlock | None = block
    item: ListItem | None = None
    for index in item_indexes:
        assert current is not None
        item = current[index]
        current = item.sublist
    assert item is not None
    return item


class RecordingCaret:
    """Caret service double recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def place_start(self, node) -> None:
        self.calls.append(("start", node))

    def place_end(self, node) -> None:
        self.calls.append(("end", node))
