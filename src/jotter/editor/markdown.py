"""Markdown projection of the document tree: text, HTML preview and loading."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from markdown_it import MarkdownIt
from markdown_it.token import Token
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .document_model import (
    Block,
    Document,
    DocumentMetadata,
    ListBlock,
    ListItem,
    Paragraph,
    depth,
    is_blank,
    iter_items,
)

__all__ = [
    "MarkdownPreview",
    "load_markdown",
    "parse_frontmatter",
    "render_markdown",
    "render_preview",
    "split_frontmatter",
]

LOGGER = logging.getLogger(__name__)

MAX_PREVIEW_CHARS = 20_000
_TRUNCATION_NOTICE = "\n\n> _Preview truncated for performance._\n"
_LIST_OPEN = {"bullet_list_open", "ordered_list_open"}
_LIST_CLOSE = {"bullet_list_close", "ordered_list_close"}
_FRONTMATTER_FENCES = {"---", "+++"}

# Line openings CommonMark reads as block syntax rather than text.
_BLOCK_MARKER = re.compile(
    r"#{1,6}(?:[ \t]|$)"  # ATX heading
    r"|[-+*](?:[ \t]|$)"  # bullet item
    r"|>"  # block quote
    r"|[-=]+[ \t]*$"  # setext underline
    r"|[-*_](?:[ \t]*[-*_]){2,}[ \t]*$"  # thematic break
    r"|`{3,}|~{3,}"  # code fence
)
_ORDERED_MARKER = re.compile(r"\d{1,9}(?=\\*[.)](?:[ \t]|$))")
_LINE_LEAD = re.compile(r"( {0,3})(\\*)(.*)\Z", re.DOTALL)


@dataclass(slots=True)
class MarkdownPreview:
    """Container holding rendered HTML preview content and metadata."""

    html: str
    metadata: Dict[str, Any]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def render_markdown(
    document: Document,
    *,
    bullet: str = "-",
    indent_width: int = 2,
    include_frontmatter: bool = True,
) -> str:
    """Project ``document`` to Markdown text.

    Blocks are separated by a blank line; list items are indented by
    ``indent_width`` spaces per nesting level (never less than the marker
    width, so CommonMark keeps the nesting).

    Lines of inline content that would open a Markdown block, such as a
    heading or a list marker, get a backslash so they load back as text.
    """

    width = max(indent_width, len(bullet) + 1)
    chunks: list[str] = []
    for block in document.blocks:
        if isinstance(block, Paragraph):
            chunks.append(block.content if block.verbatim else _escape_text(block.content))
        else:
            chunks.append("\n".join(_render_list(block, 0, bullet, width)))
    body = "\n\n".join(chunks).strip("\n")
    frontmatter = document.metadata.frontmatter_block
    if include_frontmatter and frontmatter is not None:
        fence = f"---\n{frontmatter}\n---"
        body = f"{fence}\n\n{body}" if body else fence
    return f"{body}\n" if body else ""


def _render_list(lst: ListBlock, level: int, bullet: str, width: int) -> list[str]:
    lines: list[str] = []
    pad = " " * (level * width)
    continuation = " " * (level * width + len(bullet) + 1)
    for item in lst:
        first, *rest = [_escape_line(line) for line in item.content.split("\n")]
        lines.append(f"{pad}{bullet} {first}".rstrip())
        lines.extend(f"{continuation}{line}".rstrip() for line in rest)
        if item.sublist is not None:
            # A bare marker right under item text would read as a setext underline.
            if not is_blank(item.content) and is_blank(item.sublist[0].content):
                lines.append("")
            lines.extend(_render_list(item.sublist, level + 1, bullet, width))
    return lines


def _escape_text(text: str) -> str:
    return "\n".join(_escape_line(line) for line in text.split("\n"))


def _escape_line(line: str) -> str:
    lead, slashes, rest = _LINE_LEAD.match(line).groups()
    if _BLOCK_MARKER.match(rest):
        return f"{lead}\\{slashes}{rest}"
    ordered = None if slashes else _ORDERED_MARKER.match(rest)
    if ordered is not None:
        cut = ordered.end()
        return f"{lead}{rest[:cut]}\\{rest[cut:]}"
    return line


def _unescape_line(line: str) -> str:
    """Undo :func:`_escape_line`; other backslashes are left alone."""

    lead, slashes, rest = _LINE_LEAD.match(line).groups()
    if slashes and _BLOCK_MARKER.match(rest):
        return f"{lead}{slashes[1:]}{rest}"
    ordered = None if slashes else _ORDERED_MARKER.match(rest)
    if ordered is not None and rest.startswith("\\", ordered.end()):
        cut = ordered.end()
        return f"{lead}{rest[:cut]}{rest[cut + 1 :]}"
    return line


def render_preview(
    document: Document,
    *,
    bullet: str = "-",
    indent_width: int = 2,
    max_chars: Optional[int] = MAX_PREVIEW_CHARS,
) -> MarkdownPreview:
    """Render ``document`` to HTML with ``markdown-it-py``."""

    text = render_markdown(
        document, bullet=bullet, indent_width=indent_width, include_frontmatter=False
    )
    render_body, truncated = _maybe_truncate(text, max_chars)
    html_body = _build_renderer().render(render_body)
    items = list(iter_items(document))
    blocks = document.blocks
    metadata = {
        "paragraphs": sum(1 for block in blocks if isinstance(block, Paragraph)),
        "lists": sum(1 for block in blocks if isinstance(block, ListBlock)),
        "items": len(items),
        "empty_items": sum(1 for item in items if is_blank(item.content)),
        "max_depth": max((depth(item) for item in items), default=0),
        "frontmatter": dict(document.metadata.frontmatter),
        "truncated": truncated,
    }
    return MarkdownPreview(html=f'<div class="jotter-preview">{html_body}</div>', metadata=metadata)


def _maybe_truncate(text: str, max_chars: Optional[int]) -> Tuple[str, bool]:
    if max_chars is None or len(text) <= max_chars:
        return text, False
    truncated = text[:max_chars]
    last_newline = truncated.rfind("\n")
    if last_newline > max_chars * 0.5:
        truncated = truncated[:last_newline]
    return truncated.rstrip() + _TRUNCATION_NOTICE, True


_MARKDOWN_PARSER: Optional[MarkdownIt] = None


def _build_renderer() -> MarkdownIt:
    global _MARKDOWN_PARSER
    if _MARKDOWN_PARSER is None:
        _MARKDOWN_PARSER = MarkdownIt("commonmark", {"html": False})
    return _MARKDOWN_PARSER


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------
def load_markdown(text: str, *, metadata: DocumentMetadata | None = None) -> Document:
    """Parse Markdown ``text`` into a :class:`Document`.

    Bullet and ordered lists become list blocks (numbering is dropped); any
    other top-level block is kept verbatim as a paragraph. Blocks nested in an
    item, a heading say, add their source lines to the item text. YAML
    frontmatter is parsed into ``metadata.frontmatter`` and re-emitted on
    render.
    """

    frontmatter_block, body = split_frontmatter(text or "")
    resolved = metadata or DocumentMetadata()
    resolved.frontmatter_block = frontmatter_block
    resolved.frontmatter = parse_frontmatter(frontmatter_block)
    tokens = _build_renderer().parse(body)
    blocks = _blocks_from_tokens(tokens, body.splitlines())
    return Document(blocks, metadata=resolved)


def _blocks_from_tokens(tokens: Sequence[Token], lines: Sequence[str]) -> list[Block]:
    blocks: list[Block] = []
    lists: list[ListBlock] = []
    # Open items with the line holding their marker and their content column.
    items: list[tuple[ListItem, int, int]] = []
    skip_until: tuple[str, int] | None = None

    for token in tokens:
        if skip_until is not None:
            if (token.type, token.level) == skip_until:
                skip_until = None
            continue
        kind = token.type
        if kind in _LIST_OPEN:
            lists.append(_open_list(blocks, [entry[0] for entry in items]))
        elif kind in _LIST_CLOSE:
            lists.pop()
        elif kind == "list_item_open":
            item = ListItem()
            lists[-1].append(item)
            items.append((item, *_item_origin(token, lines)))
        elif kind == "list_item_close":
            items.pop()
        elif kind == "inline":
            text = "\n".join(_unescape_line(line) for line in token.content.split("\n"))
            if items:
                _append_content(items[-1][0], text)
            else:
                blocks.append(Paragraph(text))
        elif kind == "paragraph_open" or token.nesting == -1 or not token.map:
            continue
        else:
            start, end = token.map
            if items:
                item, marker_line, column = items[-1]
                _append_content(item, _item_source(lines, start, end, marker_line, column))
            else:
                blocks.append(Paragraph("\n".join(lines[start:end]).rstrip(), verbatim=True))
            if token.nesting == 1:
                skip_until = (kind[: -len("_open")] + "_close", token.level)
    return blocks


def _open_list(blocks: list[Block], items: list[ListItem]) -> ListBlock:
    if not items:
        lst = ListBlock()
        blocks.append(lst)
        return lst
    return items[-1].ensure_sublist()


def _item_origin(token: Token, lines: Sequence[str]) -> tuple[int, int]:
    marker_line = token.map[0] if token.map else 0
    line = lines[marker_line] if marker_line < len(lines) else ""
    marker_end = len(line) - len(line.lstrip(" ")) + len(token.info) + len(token.markup)
    after = line[marker_end:]
    gap = len(after) - len(after.lstrip(" "))
    return marker_line, marker_end + (gap if 1 <= gap <= 4 else 1)


def _item_source(lines: Sequence[str], start: int, end: int, marker_line: int, column: int) -> str:
    """Return the source of a block nested in an item, minus the item indentation."""

    kept: list[str] = []
    for number in range(start, min(end, len(lines))):
        line = lines[number]
        if number == marker_line:
            kept.append(line[column:])
        else:
            indent = len(line) - len(line.lstrip(" "))
            kept.append(line[min(indent, column) :])
    return "\n".join(kept).rstrip()


def _append_content(item: ListItem, text: str) -> None:
    item.content = f"{item.content}\n{text}" if item.content else text


# ---------------------------------------------------------------------------
# Frontmatter helpers
# ---------------------------------------------------------------------------
def split_frontmatter(text: str) -> tuple[Optional[str], str]:
    """Separate a leading ``---`` (or ``+++``) fenced block from the body.

    Returns ``(None, text)`` when the text does not open with a complete
    fenced block.
    """

    body = (text or "").lstrip("\ufeff")
    opening, _, rest = body.partition("\n")
    fence = opening.strip()
    if fence not in _FRONTMATTER_FENCES:
        return None, body
    remaining = rest.splitlines()
    for position, line in enumerate(remaining):
        if line.strip() == fence:
            tail = "\n".join(remaining[position + 1 :]).lstrip("\r\n")
            return "\n".join(remaining[:position]), tail
    return None, body


def parse_frontmatter(block: Optional[str]) -> Dict[str, Any]:
    """Load a frontmatter block as a mapping; anything else yields ``{}``."""

    if not block:
        return {}
    try:
        loaded = YAML(typ="safe").load(block)
    except YAMLError as exc:
        LOGGER.warning("Ignoring malformed frontmatter: %s", exc)
        return {}
    return dict(loaded) if isinstance(loaded, dict) else {}
