"""Tests for JSON document snapshots."""

from __future__ import annotations

import json

import pytest

from jotter.editor.markdown import load_markdown
from jotter.editor.serialization import DocumentPayloadError, from_payload, loads, to_payload
from tests.helpers import assert_well_formed, build, outline


def test_payload_describes_nested_tree() -> None:
    document = build(("p", "intro"), ("ul", [("A", ["A1"]), "B"]))

    payload = to_payload(document)

    assert payload["version"] == 1
    assert payload["document_id"] == document.document_id
    assert payload["blocks"] == [
        {"type": "paragraph", "content": "intro"},
        {
            "type": "list",
            "items": [
                {"content": "A", "children": [{"content": "A1"}]},
                {"content": "B"},
            ],
        },
    ]


def test_loads_rebuilds_document_from_json() -> None:
    document = build(("ul", [("A", [("", ["deep"])])]), ("p", "tail"))
    text = json.dumps(to_payload(document))

    restored = loads(text.encode("utf-8"))

    assert outline(restored) == outline(document)
    assert restored.document_id == document.document_id
    assert_well_formed(restored)


def test_verbatim_paragraphs_keep_their_flag() -> None:
    document = load_markdown("# Title\n\nplain\n")

    payload = to_payload(document)

    assert payload["blocks"] == [
        {"type": "paragraph", "content": "# Title", "verbatim": True},
        {"type": "paragraph", "content": "plain"},
    ]
    restored = from_payload(payload)
    assert [block.verbatim for block in restored.blocks] == [True, False]


def test_from_payload_drops_empty_lists_and_parses_frontmatter() -> None:
    payload = {
        "frontmatter": "title: Notes",
        "blocks": [
            {"type": "list", "items": []},
            {"type": "list", "items": [{"content": "A", "children": []}]},
        ],
    }

    document = from_payload(payload)

    assert outline(document) == [("ul", ["A"])]
    assert document.metadata.frontmatter == {"title": "Notes"}


def test_from_payload_with_no_blocks_seeds_paragraph() -> None:
    assert outline(from_payload({"blocks": []})) == [("p", "")]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"blocks": [{"type": "heading", "content": "x"}]},
        {"blocks": [{"type": "list", "items": [{"text": "A"}]}]},
        {"version": 2, "blocks": []},
        {"blocks": [], "extra": True},
    ],
)
def test_invalid_payloads_are_rejected(payload) -> None:
    with pytest.raises(DocumentPayloadError):
        from_payload(payload)


def test_error_message_names_the_failing_location() -> None:
    with pytest.raises(DocumentPayloadError, match=r"^blocks/0/items/0: "):
        from_payload({"blocks": [{"type": "list", "items": [{"content": 5}]}]})


def test_loads_rejects_invalid_json() -> None:
    with pytest.raises(DocumentPayloadError, match="not valid JSON"):
        loads("{not json")
