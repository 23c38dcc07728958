"""Block parser: split Markdown source into typed line-range blocks.

Each line is classified on its own, by a fixed precedence of patterns:

1. heading            ``#`` x 1-6, whitespace, text
2. unordered list     ``-``/``*``/``+`` and whitespace (any indentation)
3. ordered list       digits, ``.``, whitespace (any indentation)
4. code fence         a line starting with three backticks, optional tag
5. blockquote         a line starting with ``>``
6. blank line
7. horizontal rule    three or more of ``-``/``*``/``_`` alone on the line
8. paragraph          anything else

Consecutive list-item, blockquote and paragraph lines accumulate into one
block. Headings, code-fence lines, blank lines and horizontal rules always
open a new block. Bullet and ordered lines share the ``list_item`` type, so a
switch from one list kind to the other stays in one block; the block's attrs
describe its first line only.

Thread Safety:
    ``parse_to_blocks`` is a pure function, safe to call from any thread.

"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class BlockType(StrEnum):
    """Markdown block classifications."""

    HEADING = "heading"
    LIST_ITEM = "list_item"
    CODE_BLOCK = "code_block"
    BLOCKQUOTE = "blockquote"
    EMPTY = "empty"
    HORIZONTAL_RULE = "horizontal_rule"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True, slots=True)
class Block:
    """A maximal run of source lines sharing one classification.

    Attributes:
        type: Block classification (see BlockType)
        content: Raw source lines, newline-free
        start_line: First line index (0-indexed, inclusive)
        end_line: Last line index (inclusive)
        level: Heading level 1-6 (headings only)
        attrs: Classification attributes (heading level, list kind and
            order, code-fence language)

    """

    type: str
    content: tuple[str, ...]
    start_line: int
    end_line: int
    level: int | None = None
    attrs: dict[str, Any] | None = None

    @property
    def text(self) -> str:
        """The block's lines joined with newlines."""
        return "\n".join(self.content)


@dataclass(frozen=True, slots=True)
class LineClass:
    """Classification of a single source line."""

    type: BlockType
    starts_new: bool
    level: int | None = None
    attrs: dict[str, Any] | None = field(default=None)


_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")
_UNORDERED_ITEM = re.compile(r"^\s*[-*+]\s+")
_ORDERED_ITEM = re.compile(r"^\s*(\d+)\.\s+")
_FENCE_LANGUAGE = re.compile(r"^```(\w+)?")
_HORIZONTAL_RULE = re.compile(r"^[-*_]{3,}$")


def identify_line(line: str) -> LineClass:
    """Classify one line of Markdown source.

    Args:
        line: A single source line without its newline

    Returns:
        The line's block type, whether it must open a new block, and any
        attributes carried by the classification
    """
    heading = _HEADING.match(line)
    if heading:
        level = len(heading.group(1))
        return LineClass(BlockType.HEADING, True, level=level, attrs={"level": level})

    if _UNORDERED_ITEM.match(line):
        return LineClass(BlockType.LIST_ITEM, False, attrs={"listType": "bullet"})

    ordered = _ORDERED_ITEM.match(line)
    if ordered:
        return LineClass(
            BlockType.LIST_ITEM,
            False,
            attrs={"listType": "ordered", "order": int(ordered.group(1))},
        )

    if line.startswith("```"):
        language = _FENCE_LANGUAGE.match(line)
        attrs = {"language": language.group(1)} if language and language.group(1) else {}
        return LineClass(BlockType.CODE_BLOCK, True, attrs=attrs)

    if line.startswith(">"):
        return LineClass(BlockType.BLOCKQUOTE, False)

    if not line.strip():
        return LineClass(BlockType.EMPTY, True)

    if _HORIZONTAL_RULE.match(line):
        return LineClass(BlockType.HORIZONTAL_RULE, True)

    return LineClass(BlockType.PARAGRAPH, False)


def parse_to_blocks(markdown: str) -> list[Block]:
    """Split Markdown source into an ordered list of blocks.

    The returned blocks tile the source lines exactly: the first starts at
    line 0, each starts one line after its predecessor ends, and the last
    ends at the final line. Empty input is one line and yields one
    ``empty`` block.

    Args:
        markdown: Markdown source text

    Returns:
        Blocks in source order

    Example:
        >>> [b.type for b in parse_to_blocks("# Title\\n\\nSome text")]
        ['heading', 'empty', 'paragraph']
    """
    blocks: list[Block] = []
    current: LineClass | None = None
    lines: list[str] = []
    start = 0

    for index, line in enumerate(markdown.split("\n")):
        info = identify_line(line)
        if current is None or info.type != current.type or info.starts_new:
            if current is not None:
                blocks.append(_make_block(current, lines, start))
            current = info
            lines = [line]
            start = index
        else:
            lines.append(line)

    if current is not None:
        blocks.append(_make_block(current, lines, start))

    return blocks


def _make_block(info: LineClass, lines: list[str], start: int) -> Block:
    return Block(
        type=str(info.type),
        content=tuple(lines),
        start_line=start,
        end_line=start + len(lines) - 1,
        level=info.level,
        attrs=info.attrs,
    )


def content_blocks(blocks: list[Block]) -> list[Block]:
    """Drop blank-line blocks, keeping the blocks that carry content."""
    return [block for block in blocks if block.type != BlockType.EMPTY]


__all__ = [
    "Block",
    "BlockType",
    "LineClass",
    "content_blocks",
    "identify_line",
    "parse_to_blocks",
]
