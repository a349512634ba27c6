"""JSON-compatible snapshots of the document tree."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from jsonschema import Draft7Validator, ValidationError

from .document_model import Block, Document, DocumentMetadata, ListBlock, ListItem, Paragraph
from .markdown import parse_frontmatter

__all__ = ["DOCUMENT_SCHEMA", "DocumentPayloadError", "from_payload", "loads", "to_payload"]

PAYLOAD_VERSION = 1

DOCUMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["blocks"],
    "properties": {
        "version": {"type": "integer", "const": PAYLOAD_VERSION},
        "document_id": {"type": "string", "minLength": 1},
        "frontmatter": {"type": ["string", "null"]},
        "blocks": {"type": "array", "items": {"$ref": "#/definitions/block"}},
    },
    "definitions": {
        "item": {
            "type": "object",
            "required": ["content"],
            "properties": {
                "content": {"type": "string"},
                "children": {"type": "array", "items": {"$ref": "#/definitions/item"}},
            },
            "additionalProperties": False,
        },
        "block": {
            "oneOf": [
                {
                    "type": "object",
                    "required": ["type", "content"],
                    "properties": {
                        "type": {"const": "paragraph"},
                        "content": {"type": "string"},
                        "verbatim": {"type": "boolean"},
                    },
                    "additionalProperties": False,
                },
                {
                    "type": "object",
                    "required": ["type", "items"],
                    "properties": {
                        "type": {"const": "list"},
                        "items": {"type": "array", "items": {"$ref": "#/definitions/item"}},
                    },
                    "additionalProperties": False,
                },
            ]
        },
    },
    "additionalProperties": False,
}

_DOCUMENT_VALIDATOR = Draft7Validator(DOCUMENT_SCHEMA)


class DocumentPayloadError(ValueError):
    """Raised when a serialized document does not match :data:`DOCUMENT_SCHEMA`."""


def to_payload(document: Document) -> Dict[str, Any]:
    """Return a nested dict describing ``document``."""

    blocks: list[Dict[str, Any]] = []
    for block in document.blocks:
        if isinstance(block, Paragraph):
            entry: Dict[str, Any] = {"type": "paragraph", "content": block.content}
            if block.verbatim:
                entry["verbatim"] = True
            blocks.append(entry)
        else:
            blocks.append({"type": "list", "items": [_item_payload(item) for item in block]})
    return {
        "version": PAYLOAD_VERSION,
        "document_id": document.document_id,
        "frontmatter": document.metadata.frontmatter_block,
        "blocks": blocks,
    }


def _item_payload(item: ListItem) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"content": item.content}
    if item.sublist is not None and len(item.sublist):
        payload["children"] = [_item_payload(child) for child in item.sublist]
    return payload


def from_payload(payload: Mapping[str, Any]) -> Document:
    """Build a document from ``payload``; empty lists are dropped on the way in."""

    if not isinstance(payload, Mapping):
        raise DocumentPayloadError("Document payload must be a mapping")
    try:
        _DOCUMENT_VALIDATOR.validate(dict(payload))
    except ValidationError as error:
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        raise DocumentPayloadError(f"{location}: {error.message}") from error

    blocks: list[Block] = []
    for entry in payload["blocks"]:
        if entry["type"] == "paragraph":
            blocks.append(Paragraph(entry["content"], verbatim=entry.get("verbatim", False)))
        elif entry["items"]:
            blocks.append(_build_list(entry["items"]))
    frontmatter_block = payload.get("frontmatter")
    metadata = DocumentMetadata(
        frontmatter_block=frontmatter_block,
        frontmatter=parse_frontmatter(frontmatter_block),
    )
    return Document(blocks, metadata=metadata, document_id=payload.get("document_id"))


def _build_list(entries: list[Mapping[str, Any]]) -> ListBlock:
    lst = ListBlock()
    for entry in entries:
        children = entry.get("children") or []
        item = ListItem(entry["content"], sublist=_build_list(children) if children else None)
        lst.append(item)
    return lst


def loads(text: str | bytes) -> Document:
    """Decode a JSON document snapshot."""

    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentPayloadError(f"Document payload is not valid JSON: {exc}") from exc
    return from_payload(payload)
