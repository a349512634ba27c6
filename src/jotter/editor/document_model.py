"""Tree model for documents mixing free-form paragraphs and nested bullet lists.

A :class:`Document` is an ordered sequence of blocks. Each block is either a
:class:`Paragraph` (inline content only) or a :class:`ListBlock` holding
:class:`ListItem` nodes; an item may own a single nested :class:`ListBlock`.

Parent links are maintained exclusively by the container mutation methods
(``insert``, ``append``, ``remove``, ``replace`` and
:meth:`ListItem.set_sublist`), so the owner queries below stay correct after
every structural edit. Nodes compare by identity.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional, Union

__all__ = [
    "Block",
    "ContentNode",
    "Document",
    "DocumentMetadata",
    "ListBlock",
    "ListItem",
    "Paragraph",
    "containing_list",
    "depth",
    "document_of",
    "enclosing_item",
    "is_attached",
    "is_blank",
    "is_empty",
    "is_leaf",
    "iter_items",
    "next_sibling",
    "node_path",
    "owner_item",
    "previous_sibling",
    "resolve_path",
    "root_list",
]

_NBSP = "\u00a0"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _hash_text(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def is_blank(text: str | None) -> bool:
    """Return ``True`` when ``text`` is empty once NBSPs are normalized and trimmed."""

    return not (text or "").replace(_NBSP, " ").strip()


@dataclass(slots=True, eq=False)
class Paragraph:
    """Free-form block holding inline content only.

    ``verbatim`` paragraphs carry a Markdown block (heading, fence, quote...)
    loaded from a file; they are written back untouched instead of escaped.
    """

    content: str = ""
    verbatim: bool = False
    parent: Optional["Document"] = field(default=None, init=False, repr=False)


class ListItem:
    """Bullet item with inline content and at most one nested list."""

    __slots__ = ("content", "parent", "_sublist")

    def __init__(self, content: str = "", sublist: "ListBlock | None" = None) -> None:
        self.content = content
        self.parent: ListBlock | None = None
        self._sublist: ListBlock | None = None
        if sublist is not None:
            self.set_sublist(sublist)

    @property
    def sublist(self) -> "ListBlock | None":
        return self._sublist

    def set_sublist(self, sublist: "ListBlock | None") -> None:
        """Attach ``sublist`` (or detach the current one when ``None``)."""

        if sublist is not None and sublist.parent is not None:
            raise ValueError("List is already attached to a container")
        if self._sublist is not None:
            self._sublist.parent = None
        self._sublist = sublist
        if sublist is not None:
            sublist.parent = self

    def ensure_sublist(self) -> "ListBlock":
        """Return the nested list, creating an empty one when absent."""

        if self._sublist is not None:
            return self._sublist
        sublist = ListBlock()
        self.set_sublist(sublist)
        return sublist

    def __repr__(self) -> str:
        children = len(self._sublist) if self._sublist is not None else 0
        return f"ListItem(content={self.content!r}, children={children})"


class ListBlock:
    """Ordered sequence of :class:`ListItem` nodes."""

    __slots__ = ("parent", "_items")

    def __init__(self, items: Iterable[ListItem] = ()) -> None:
        self.parent: ListItem | Document | None = None
        self._items: list[ListItem] = []
        for item in items:
            self.append(item)

    @property
    def items(self) -> tuple[ListItem, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ListItem]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> ListItem:
        return self._items[index]

    def index(self, item: ListItem) -> int:
        for position, candidate in enumerate(self._items):
            if candidate is item:
                return position
        raise ValueError("Item is not part of this list")

    def insert(self, index: int, item: ListItem) -> None:
        if item.parent is not None:
            raise ValueError("Item is already attached to a list")
        self._items.insert(index, item)
        item.parent = self

    def append(self, item: ListItem) -> None:
        self.insert(len(self._items), item)

    def remove(self, item: ListItem) -> int:
        """Detach ``item`` and return the index it occupied."""

        position = self.index(item)
        del self._items[position]
        item.parent = None
        return position

    def __repr__(self) -> str:
        return f"ListBlock(items={self._items!r})"


Block = Union[Paragraph, ListBlock]
ContentNode = Union[Paragraph, ListItem]


@dataclass(slots=True)
class DocumentMetadata:
    """Metadata describing where a document came from."""

    path: Optional[Path] = None
    frontmatter_block: Optional[str] = None
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


class Document:
    """Root block sequence. Never left empty once a command completes."""

    def __init__(
        self,
        blocks: Iterable[Block] = (),
        *,
        metadata: DocumentMetadata | None = None,
        document_id: str | None = None,
    ) -> None:
        self._blocks: list[Block] = []
        self.metadata = metadata or DocumentMetadata()
        self.document_id = document_id or uuid.uuid4().hex
        self.version_id = 1
        self.content_hash = ""
        for block in blocks:
            self.append(block)
        self.ensure_not_empty()

    @property
    def blocks(self) -> tuple[Block, ...]:
        return tuple(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def index_of(self, block: Block) -> int:
        for position, candidate in enumerate(self._blocks):
            if candidate is block:
                return position
        raise ValueError("Block is not part of this document")

    def insert(self, index: int, block: Block) -> None:
        if block.parent is not None:
            raise ValueError("Block is already attached to a container")
        self._blocks.insert(index, block)
        block.parent = self

    def append(self, block: Block) -> None:
        self.insert(len(self._blocks), block)

    def insert_after(self, anchor: Block, block: Block) -> None:
        self.insert(self.index_of(anchor) + 1, block)

    def remove(self, block: Block) -> int:
        """Detach ``block`` and return the index it occupied."""

        position = self.index_of(block)
        del self._blocks[position]
        block.parent = None
        return position

    def replace(self, old: Block, new: Block) -> None:
        position = self.remove(old)
        self.insert(position, new)

    def ensure_not_empty(self) -> Paragraph | None:
        """Seed an empty paragraph when no blocks remain."""

        if self._blocks:
            return None
        paragraph = Paragraph()
        self.append(paragraph)
        return paragraph

    def mark_changed(self, rendered: str) -> None:
        """Record a structural change; ``rendered`` is the current projection."""

        self.version_id += 1
        self.content_hash = _hash_text(rendered)
        self.metadata.updated_at = _utcnow()

    def version_signature(self) -> str:
        return f"{self.document_id}:{self.version_id}:{self.content_hash}"

    def __repr__(self) -> str:
        return f"Document(blocks={self._blocks!r})"


# ---------------------------------------------------------------------------
# Structural queries
# ---------------------------------------------------------------------------
def is_empty(item: ListItem) -> bool:
    """Return ``True`` when the item and all of its descendants carry no text."""

    if not is_blank(item.content):
        return False
    sublist = item.sublist
    if sublist is None:
        return True
    return all(is_empty(child) for child in sublist)


def is_leaf(item: ListItem) -> bool:
    return item.sublist is None or len(item.sublist) == 0


def owner_item(lst: ListBlock) -> ListItem | None:
    """Return the item whose sublist is ``lst``; ``None`` for root lists."""

    parent = lst.parent
    if isinstance(parent, ListItem):
        return parent
    return None


def containing_list(item: ListItem) -> ListBlock | None:
    return item.parent


def root_list(lst: ListBlock) -> ListBlock:
    """Ascend through owner items and return the topmost list of the chain."""

    current = lst
    owner = owner_item(current)
    while owner is not None and owner.parent is not None:
        current = owner.parent
        owner = owner_item(current)
    return current


def enclosing_item(node: ContentNode | None) -> ListItem | None:
    """Resolve the nearest list item for the node holding the caret."""

    if isinstance(node, ListItem) and node.parent is not None:
        return node
    return None


def previous_sibling(item: ListItem) -> ListItem | None:
    lst = item.parent
    if lst is None:
        return None
    position = lst.index(item)
    return lst[position - 1] if position > 0 else None


def next_sibling(item: ListItem) -> ListItem | None:
    lst = item.parent
    if lst is None:
        return None
    position = lst.index(item)
    return lst[position + 1] if position + 1 < len(lst) else None


def depth(item: ListItem) -> int:
    """Return the nesting level of ``item`` (1 for items of a root list)."""

    level = 0
    current: ListItem | None = item
    while current is not None and current.parent is not None:
        level += 1
        current = owner_item(current.parent)
    return level


def document_of(node: ContentNode | ListBlock) -> Document | None:
    current: Any = node
    while current is not None:
        if isinstance(current, Document):
            return current
        current = current.parent
    return None


def is_attached(node: ContentNode | ListBlock) -> bool:
    return document_of(node) is not None


def iter_items(container: Document | ListBlock) -> Iterator[ListItem]:
    """Yield every list item below ``container`` in document order."""

    lists: Iterable[ListBlock]
    if isinstance(container, Document):
        lists = [block for block in container.blocks if isinstance(block, ListBlock)]
    else:
        lists = [container]
    for lst in lists:
        for item in lst:
            yield item
            if item.sublist is not None:
                yield from iter_items(item.sublist)


def node_path(node: ContentNode) -> str:
    """Return the slash-separated index path of ``node`` (``block/item/item...``)."""

    indexes: list[int] = []
    current: Any = node
    while isinstance(current, ListItem):
        lst = current.parent
        if lst is None:
            raise ValueError("Item is not attached to a list")
        indexes.append(lst.index(current))
        parent = lst.parent
        if isinstance(parent, Document):
            current = lst
            break
        current = parent
    document = current.parent if current is not None else None
    if not isinstance(document, Document):
        raise ValueError("Node is not attached to a document")
    indexes.append(document.index_of(current))
    return "/".join(str(index) for index in reversed(indexes))


def resolve_path(document: Document, path: str) -> ContentNode:
    """Return the content node addressed by a path produced by :func:`node_path`."""

    try:
        indexes = [int(part, 10) for part in path.strip().strip("/").split("/")]
    except ValueError as exc:
        raise ValueError(f"Invalid node path '{path}'") from exc
    blocks = document.blocks
    head, rest = indexes[0], indexes[1:]
    if not 0 <= head < len(blocks):
        raise ValueError(f"Block index {head} out of range")
    block = blocks[head]
    if isinstance(block, Paragraph):
        if rest:
            raise ValueError(f"Block {head} is a paragraph and has no items")
        return block
    if not rest:
        raise ValueError(f"Block {head} is a list; address one of its items")
    current_list: ListBlock | None = block
    for position, index in enumerate(rest):
        if current_list is None or not 0 <= index < len(current_list):
            raise ValueError(f"Item index {index} out of range in path '{path}'")
        node = current_list[index]
        if position == len(rest) - 1:
            return node
        current_list = node.sublist
    raise ValueError(f"Invalid node path '{path}'")
