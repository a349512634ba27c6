"""Caret placement contract and the in-memory tracker used by the engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from .document_model import ContentNode

__all__ = ["CaretBias", "CaretPosition", "CaretService", "CaretTracker"]

CaretBias = Literal["start", "end"]


@dataclass(slots=True)
class CaretPosition:
    """Caret locator: a content node, a start/end bias and the resolved offset."""

    node: ContentNode
    bias: CaretBias
    offset: int = 0


class CaretService(Protocol):
    """Service able to move the editing caret to the edge of a content node."""

    def place_start(self, node: ContentNode) -> None:
        ...

    def place_end(self, node: ContentNode) -> None:
        ...


class CaretTracker(CaretService):
    """Headless caret service remembering the most recent placement."""

    def __init__(self) -> None:
        self._position: CaretPosition | None = None
        self._placements = 0

    @property
    def position(self) -> CaretPosition | None:
        return self._position

    @property
    def placements(self) -> int:
        """Number of placement calls received (primarily for tests)."""

        return self._placements

    @property
    def node(self) -> ContentNode | None:
        return self._position.node if self._position is not None else None

    def place_start(self, node: ContentNode) -> None:
        self._position = CaretPosition(node=node, bias="start", offset=0)
        self._placements += 1

    def place_end(self, node: ContentNode) -> None:
        self._position = CaretPosition(node=node, bias="end", offset=len(node.content))
        self._placements += 1

