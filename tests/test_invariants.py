"""Property-based tests for tree invariants using Hypothesis.

Random command sequences run over random trees; after every step the tree
must stay well formed and the caret must have moved exactly as promised.
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from jotter.editor.commands import CommandKind, ListCommand
from jotter.editor.document_model import Document, ListItem, Paragraph, document_of, iter_items
from jotter.editor.engine import ListEngine
from tests.helpers import RecordingCaret, assert_well_formed, build

TEXTS = st.sampled_from(["", " ", "\u00a0", "/-", "note", "1. step", "# idea"])

ITEMS = st.recursive(
    TEXTS,
    lambda children: st.tuples(TEXTS, st.lists(children, min_size=1, max_size=3)),
    max_leaves=12,
)

BLOCKS = st.one_of(
    st.tuples(st.just("p"), TEXTS),
    st.tuples(st.just("ul"), st.lists(ITEMS, min_size=1, max_size=4)),
)

STEPS = st.lists(
    st.tuples(
        st.sampled_from(list(CommandKind)),
        st.integers(min_value=0, max_value=1_000),
        st.one_of(st.none(), st.integers(min_value=-2, max_value=10)),
    ),
    min_size=1,
    max_size=30,
)


def _content_nodes(document: Document) -> list[Paragraph | ListItem]:
    nodes: list[Paragraph | ListItem] = [block for block in document.blocks if isinstance(block, Paragraph)]
    nodes.extend(iter_items(document))
    return nodes


class TestDispatchInvariants:
    """Invariants that hold for every tree reachable through the engine."""

    @given(st.lists(BLOCKS, min_size=1, max_size=4), STEPS)
    @settings(max_examples=300, deadline=None)
    def test_every_reachable_tree_is_well_formed(self, blocks, steps) -> None:
        """Lists never end up empty and each handled command places the caret once."""
        document = build(*blocks)
        caret = RecordingCaret()
        engine = ListEngine(document, caret=caret)
        # Nodes seen so far, including ones a command has since detached.
        seen: list[Paragraph | ListItem] = []

        for kind, pick, offset in steps:
            seen.extend(node for node in _content_nodes(document) if node not in seen)
            node = seen[pick % len(seen)]
            before = len(caret.calls)

            result = engine.dispatch(ListCommand(kind=kind, node=node, offset=offset))

            placed = caret.calls[before:]
            assert_well_formed(document)
            if result.handled:
                assert len(placed) == 1, f"{kind.value} placed the caret {len(placed)} times"
                assert document_of(placed[0][1]) is document
            else:
                assert placed == [], f"declined {kind.value} still moved the caret"

    @given(st.lists(BLOCKS, min_size=1, max_size=4), STEPS)
    @settings(max_examples=100, deadline=None)
    def test_version_only_moves_on_handled_commands(self, blocks, steps) -> None:
        document = build(*blocks)
        engine = ListEngine(document, caret=RecordingCaret())

        for kind, pick, offset in steps:
            nodes = _content_nodes(document)
            version = document.version_id

            result = engine.dispatch(ListCommand(kind=kind, node=nodes[pick % len(nodes)], offset=offset))

            assert document.version_id >= version
            if not result.handled:
                assert document.version_id == version

    @given(st.lists(BLOCKS, min_size=1, max_size=4))
    @settings(max_examples=100, deadline=None)
    def test_detached_nodes_are_always_declined(self, blocks) -> None:
        document = build(*blocks)
        caret = RecordingCaret()
        engine = ListEngine(document, caret=caret)
        stranger = build(("ul", ["elsewhere"]))
        (item,) = list(iter_items(stranger))

        for kind in CommandKind:
            result = engine.dispatch(ListCommand(kind=kind, node=item))

            assert result.handled is False
        assert caret.calls == []
        assert_well_formed(document)
