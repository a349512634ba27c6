"""Tests for the document tree model and its structural queries."""

from __future__ import annotations

import pytest

from jotter.editor.document_model import (
    Document,
    ListBlock,
    ListItem,
    Paragraph,
    depth,
    document_of,
    enclosing_item,
    is_blank,
    is_empty,
    is_leaf,
    iter_items,
    next_sibling,
    node_path,
    owner_item,
    previous_sibling,
    resolve_path,
    root_list,
)
from tests.helpers import assert_well_formed, build, item_at


def test_is_blank_normalizes_non_breaking_spaces() -> None:
    assert is_blank("")
    assert is_blank("\u00a0 \u00a0\t")
    assert not is_blank("\u00a0x")


def test_is_empty_considers_descendants() -> None:
    document = build(("ul", [("", ["", ("", [""])]), ("", ["child"])]))
    placeholder_chain = item_at(document, 0, 0)
    with_text_below = item_at(document, 0, 1)

    assert is_empty(placeholder_chain)
    assert not is_empty(with_text_below)
    assert not is_leaf(with_text_below)
    assert is_leaf(item_at(document, 0, 1, 0))


def test_owner_and_root_list_follow_structure() -> None:
    document = build(("ul", [("A", [("B", ["C"])])]))
    root = document.blocks[0]
    a = item_at(document, 0, 0)
    b = item_at(document, 0, 0, 0)
    c = item_at(document, 0, 0, 0, 0)

    assert owner_item(root) is None
    assert owner_item(c.parent) is b
    assert owner_item(b.parent) is a
    assert root_list(c.parent) is root
    assert root_list(root) is root
    assert depth(a) == 1
    assert depth(c) == 3


def test_owner_relation_updates_after_moves() -> None:
    document = build(("ul", ["A", "B"]))
    a = item_at(document, 0, 0)
    b = item_at(document, 0, 1)

    document.blocks[0].remove(b)
    a.ensure_sublist().append(b)

    assert owner_item(b.parent) is a
    assert root_list(b.parent) is document.blocks[0]
    assert_well_formed(document)


def test_ensure_sublist_creates_the_list_once() -> None:
    item = ListItem("A")

    created = item.ensure_sublist()

    assert created.parent is item
    assert item.ensure_sublist() is created


def test_enclosing_item_resolves_items_only() -> None:
    document = build(("p", "text"), ("ul", ["A"]))

    assert enclosing_item(document.blocks[0]) is None
    assert enclosing_item(item_at(document, 1, 0)) is item_at(document, 1, 0)
    assert enclosing_item(ListItem("detached")) is None
    assert enclosing_item(None) is None


def test_siblings_and_iteration_order() -> None:
    document = build(("ul", ["A", ("B", ["B1", "B2"]), "C"]), ("p", "tail"), ("ul", ["D"]))
    b = item_at(document, 0, 1)

    assert previous_sibling(b) is item_at(document, 0, 0)
    assert next_sibling(b) is item_at(document, 0, 2)
    assert previous_sibling(item_at(document, 0, 0)) is None
    assert next_sibling(item_at(document, 0, 2)) is None
    assert [item.content for item in iter_items(document)] == ["A", "B", "B1", "B2", "C", "D"]


def test_node_path_round_trips_through_resolve_path() -> None:
    document = build(("p", "intro"), ("ul", ["A", ("B", ["B1"])]))
    nested = item_at(document, 1, 1, 0)

    assert node_path(document.blocks[0]) == "0"
    assert node_path(nested) == "1/1/0"
    assert resolve_path(document, "1/1/0") is nested
    assert resolve_path(document, "0") is document.blocks[0]


@pytest.mark.parametrize("path", ["5", "0/1", "1", "1/7", "x/1"])
def test_resolve_path_rejects_invalid_paths(path: str) -> None:
    document = build(("p", "intro"), ("ul", ["A"]))

    with pytest.raises(ValueError):
        resolve_path(document, path)


def test_containers_refuse_attached_nodes() -> None:
    document = build(("ul", ["A"]))
    item = item_at(document, 0, 0)
    other = ListBlock()

    with pytest.raises(ValueError, match="already attached"):
        other.append(item)
    with pytest.raises(ValueError, match="already attached"):
        document.append(document.blocks[0])
    with pytest.raises(ValueError, match="not part"):
        other.remove(item)


def test_document_seeds_an_empty_paragraph() -> None:
    document = Document()

    assert len(document) == 1
    block = document.blocks[0]
    assert isinstance(block, Paragraph)
    assert block.content == ""
    assert document_of(block) is document


def test_mark_changed_bumps_version_and_hash() -> None:
    document = Document([Paragraph("x")])
    before = document.version_signature()

    document.mark_changed("x\n")

    assert document.version_id == 2
    assert document.content_hash
    assert document.version_signature() != before


def test_nodes_compare_by_identity() -> None:
    first = Paragraph("same")
    second = Paragraph("same")
    lst = ListBlock([ListItem("same"), ListItem("same")])

    assert first != second
    assert lst.index(lst[1]) == 1
