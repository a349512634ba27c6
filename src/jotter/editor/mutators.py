"""Structural rewrite operations applied to the document tree.

Each mutator performs its edits, runs the cleanup pass where items were
removed, and finishes with exactly one call to the caret service.
"""

from __future__ import annotations

import logging

from .caret import CaretService
from .cleanup import cleanup_upwards
from .document_model import (
    Document,
    ListBlock,
    ListItem,
    Paragraph,
    containing_list,
    document_of,
    next_sibling,
    owner_item,
    previous_sibling,
    root_list,
)

__all__ = [
    "convert_paragraph",
    "delete_empty_item",
    "exit_list",
    "indent",
    "split_item",
    "unindent",
]

LOGGER = logging.getLogger(__name__)


def _require_list(item: ListItem) -> ListBlock:
    lst = containing_list(item)
    if lst is None:
        raise ValueError("List item is not attached to a list")
    return lst


def _require_document(node: ListBlock | Paragraph) -> Document:
    document = document_of(node)
    if document is None:
        raise ValueError("Node is not attached to a document")
    return document


def convert_paragraph(paragraph: Paragraph, caret: CaretService) -> ListBlock:
    """Replace ``paragraph`` with a root list holding one empty item."""

    document = _require_document(paragraph)
    item = ListItem()
    lst = ListBlock([item])
    document.replace(paragraph, lst)
    caret.place_start(item)
    return lst


def indent(item: ListItem, caret: CaretService) -> None:
    """Nest ``item`` one level deeper.

    The item moves to the end of its previous sibling's sublist. A topmost
    item gets an empty placeholder sibling inserted before it to own the new
    nesting level.
    """

    lst = _require_list(item)
    previous = previous_sibling(item)
    if previous is not None:
        target = previous.ensure_sublist()
        lst.remove(item)
        target.append(item)
    else:
        position = lst.remove(item)
        placeholder = ListItem(sublist=ListBlock([item]))
        lst.insert(position, placeholder)
    caret.place_end(item)


def unindent(item: ListItem, caret: CaretService) -> Paragraph | None:
    """Move ``item`` one level up; root items become paragraphs.

    Returns the paragraph created when the item left all list nesting.
    """

    lst = _require_list(item)
    owner = owner_item(lst)
    if owner is not None:
        outer = _require_list(owner)
        position = lst.remove(item)
        outer.insert(outer.index(owner) + 1, item)
        cleanup_upwards(lst, removed_at=position)
        caret.place_end(item)
        return None

    document = _require_document(lst)
    paragraph = Paragraph(item.content)
    document.insert_after(lst, paragraph)
    children = item.sublist
    if children is not None:
        item.set_sublist(None)
        if len(children):
            document.insert_after(paragraph, children)
    position = lst.remove(item)
    cleanup_upwards(lst, removed_at=position)
    caret.place_start(paragraph)
    return paragraph


def split_item(item: ListItem, offset: int | None, caret: CaretService) -> ListItem:
    """Split the inline content of ``item`` at ``offset`` into two siblings.

    The trailing half becomes a new item right after ``item`` and takes over
    its sublist so the text keeps its reading order.
    """

    lst = _require_list(item)
    text = item.content
    cut = len(text) if offset is None else max(0, min(int(offset), len(text)))
    children = item.sublist
    item.set_sublist(None)
    item.content = text[:cut]
    tail = ListItem(text[cut:], sublist=children)
    lst.insert(lst.index(item) + 1, tail)
    caret.place_start(tail)
    return tail


def exit_list(item: ListItem, caret: CaretService) -> Paragraph:
    """Leave the whole list chain from an empty ``item``.

    A new paragraph is placed after the outermost list, regardless of how
    deep ``item`` sits.
    """

    lst = _require_list(item)
    outermost = root_list(lst)
    document = _require_document(outermost)
    paragraph = Paragraph()
    document.insert_after(outermost, paragraph)
    position = lst.remove(item)
    cleanup_upwards(lst, removed_at=position)
    if outermost.parent is document and len(outermost) == 0:
        document.remove(outermost)
    caret.place_start(paragraph)
    return paragraph


def delete_empty_item(item: ListItem, caret: CaretService) -> None:
    """Remove an empty ``item`` and park the caret on the closest survivor."""

    lst = _require_list(item)
    document = _require_document(lst)
    owner = owner_item(lst)
    following = next_sibling(item)
    position = lst.remove(item)
    result = cleanup_upwards(lst, removed_at=position)

    if following is not None and document_of(following) is document:
        caret.place_start(following)
        return
    if owner is not None and document_of(owner) is document:
        caret.place_end(owner)
        return
    if result.removed_root_index is not None:
        paragraph = Paragraph()
        document.insert(result.removed_root_index, paragraph)
        caret.place_start(paragraph)
        return
    if result.anchor_owner is not None:
        caret.place_end(result.anchor_owner)
        return
    anchor = result.anchor_list
    index = result.anchor_index or 0
    if anchor is not None:
        if index < len(anchor):
            caret.place_start(anchor[index])
        else:
            caret.place_end(anchor[index - 1])
        return
    LOGGER.warning("Cleanup stopped outside the document; placing caret at a fresh paragraph")
    paragraph = Paragraph()
    document.append(paragraph)
    caret.place_start(paragraph)
