"""Ascending normalization run after every structural mutation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .document_model import Document, ListBlock, ListItem, is_empty

__all__ = ["CleanupResult", "cleanup_upwards"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class CleanupResult:
    """Where the cleanup pass stopped and what it removed.

    Exactly one of the anchors is populated when the pass stops inside the
    tree: ``anchor_list`` when a non-empty list halted the ascent (with
    ``anchor_index`` naming the position of the last removal inside it), or
    ``anchor_owner`` when the owner of a removed list still has content.
    ``removed_root_index`` is set when a root list disappeared from the
    document.
    """

    anchor_list: ListBlock | None = None
    anchor_index: int | None = None
    anchor_owner: ListItem | None = None
    removed_root_index: int | None = None
    removed_lists: int = 0
    removed_items: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.removed_lists or self.removed_items)


def cleanup_upwards(lst: ListBlock, *, removed_at: int | None = None) -> CleanupResult:
    """Remove ``lst`` if it has no items, then cascade through emptied owners.

    ``removed_at`` is the index of the item the caller just detached from
    ``lst``; it is reported back through :attr:`CleanupResult.anchor_index`
    when ``lst`` survives.
    """

    result = CleanupResult()
    current = lst
    index = removed_at
    while True:
        if len(current) > 0:
            result.anchor_list = current
            result.anchor_index = index
            break
        container = current.parent
        if isinstance(container, Document):
            result.removed_root_index = container.remove(current)
            result.removed_lists += 1
            break
        if container is None:
            break
        owner = container
        owner.set_sublist(None)
        result.removed_lists += 1
        if not is_empty(owner):
            result.anchor_owner = owner
            break
        parent_list = owner.parent
        if parent_list is None:
            break
        index = parent_list.remove(owner)
        result.removed_items += 1
        current = parent_list
    if result.changed:
        LOGGER.debug(
            "Cleanup removed %d list(s) and %d item(s)",
            result.removed_lists,
            result.removed_items,
        )
    return result
