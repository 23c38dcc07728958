"""Diff-to-operation mapper: turn block diffs into tree-edit operations.

Each block operation becomes one or more MarkdownDiffOperation records that
name a tree path to act on and carry a Markdown character offset as an
anchor. The anchor is informational (for tracing an operation back to its
source); the applier addresses nodes by path only.

Mapping rules:

=================  ==========================================================
block operation    tree operations
=================  ==========================================================
insert_block       ``insert_node`` at ``[position]`` (an insertion index)
delete_block       ``delete_node`` at the path of tree block ``position``
modify_block       one ``replace`` per content change, at the tree block path,
                   plus ``modify_node`` when a tree-visible attr changed
replace_block      ``delete_node`` followed by ``insert_node``
=================  ==========================================================

Tree blocks are looked up by position in the analysis' ``block_structure``,
or through an explicit block mapping from the position mapper when one is
given. Block operations whose tree block cannot be found are dropped and
reported in :attr:`OperationMapping.dropped`.

"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from mdsplice.analyzer import DocumentAnalysis, NodeInfo
from mdsplice.blocks import Block
from mdsplice.differ import BlockDiffOperation, BlockDiffType
from mdsplice.utils.logger import get_logger

logger = get_logger(__name__)


class OperationType(StrEnum):
    INSERT_NODE = "insert_node"
    DELETE_NODE = "delete_node"
    REPLACE = "replace"
    MODIFY_NODE = "modify_node"


STRUCTURAL_OPERATIONS: frozenset[OperationType] = frozenset(
    {OperationType.INSERT_NODE, OperationType.DELETE_NODE, OperationType.MODIFY_NODE}
)

# Markdown block type -> tree node type (anything else becomes a paragraph)
_BLOCK_TYPE_MAP: dict[str, str] = {
    "heading": "heading",
    "paragraph": "paragraph",
    "list_item": "list_item",
    "code_block": "code_block",
    "blockquote": "blockquote",
    "horizontal_rule": "horizontal_rule",
}


@dataclass(frozen=True, slots=True)
class MarkdownDiffOperation:
    """One tree-edit instruction.

    Attributes:
        type: Operation kind
        markdown_position: Character offset of the change in the Markdown
            source (anchor only)
        prosemirror_path: Target node path; for ``insert_node`` the last
            component is an insertion index into the parent's children
        length: Length of the replaced original text (``replace``)
        content: New raw Markdown text
        original_content: Replaced raw Markdown text (``replace``)
        node_type: Tree node type to create, or of the deleted node
        node_attrs: Attributes for the created or modified node

    """

    type: OperationType
    markdown_position: int
    prosemirror_path: tuple[int, ...]
    length: int | None = None
    content: str | None = None
    original_content: str | None = None
    node_type: str | None = None
    node_attrs: Mapping[str, Any] | None = None

    @property
    def is_structural(self) -> bool:
        return self.type in STRUCTURAL_OPERATIONS


def map_block_type(markdown_type: str) -> str:
    """Tree node type for a Markdown block type (default "paragraph")."""
    return _BLOCK_TYPE_MAP.get(markdown_type, "paragraph")


def calculate_markdown_position(block: Block, markdown: str) -> int:
    """Character offset of a block's first line in ``markdown``.

    Sums each preceding line's length plus one for its newline.
    """
    lines = markdown.split("\n")
    return sum(len(line) + 1 for line in lines[: block.start_line])


@dataclass(frozen=True, slots=True)
class OperationMapping:
    """Operations mapped from a block diff, plus the block operations that
    had no tree block to act on (one reason string each)."""

    operations: tuple[MarkdownDiffOperation, ...]
    dropped: tuple[str, ...] = ()


def map_block_diff(
    block_diff: Sequence[BlockDiffOperation],
    analysis: DocumentAnalysis,
    original_markdown: str,
    modified_markdown: str,
    *,
    block_mapping: Mapping[int, NodeInfo] | None = None,
) -> OperationMapping:
    """Translate block operations into tree-edit operations.

    Args:
        block_diff: Output of the block differ
        analysis: Analysis of the original tree
        original_markdown: Source the original blocks were parsed from
        modified_markdown: Source the modified blocks were parsed from
        block_mapping: Original block index -> tree block. When given it
            replaces the positional ``block_structure`` lookup, and insertion
            indices are taken from the neighbouring mapped blocks

    Returns:
        OperationMapping with operations in block-diff order and a reason for
        every block operation that could not be mapped
    """
    operations: list[MarkdownDiffOperation] = []
    dropped: list[str] = []

    def tree_block(position: int) -> NodeInfo | None:
        if block_mapping is not None:
            return block_mapping.get(position)
        if 0 <= position < len(analysis.block_structure):
            return analysis.block_structure[position]
        return None

    def insertion_index(position: int) -> int:
        if block_mapping is None:
            return position
        info = block_mapping.get(position)
        if info is not None:
            return info.path[-1]
        for previous in range(position - 1, -1, -1):
            info = block_mapping.get(previous)
            if info is not None:
                return info.path[-1] + 1
        return 0

    def drop(diff: BlockDiffOperation) -> None:
        reason = f"{diff.type} at block {diff.position} dropped: no matching tree block"
        logger.warning(reason)
        dropped.append(reason)

    for diff in block_diff:
        match diff.type:
            case BlockDiffType.INSERT_BLOCK:
                if diff.new_block is not None:
                    operations.append(
                        _insert_operation(insertion_index(diff.position), diff.new_block, modified_markdown)
                    )

            case BlockDiffType.DELETE_BLOCK:
                info = tree_block(diff.position)
                if info is None or diff.original_block is None:
                    drop(diff)
                    continue
                operations.append(_delete_operation(info, diff.original_block, original_markdown))

            case BlockDiffType.MODIFY_BLOCK:
                info = tree_block(diff.position)
                if info is None:
                    drop(diff)
                    continue
                for change in diff.content_changes:
                    operations.append(
                        MarkdownDiffOperation(
                            type=OperationType.REPLACE,
                            markdown_position=info.text_offset + change.position,
                            prosemirror_path=info.path,
                            length=change.length,
                            original_content=change.old_text,
                            content=change.new_text,
                        )
                    )
                attrs_op = _modify_attrs_operation(info, diff)
                if attrs_op is not None:
                    operations.append(attrs_op)

            case BlockDiffType.REPLACE_BLOCK:
                info = tree_block(diff.position)
                if info is None or diff.original_block is None or diff.new_block is None:
                    drop(diff)
                    continue
                operations.append(_delete_operation(info, diff.original_block, original_markdown))
                operations.append(_insert_operation(info.path[-1], diff.new_block, modified_markdown))

    return OperationMapping(operations=tuple(operations), dropped=tuple(dropped))


def map_diff_to_tree(
    block_diff: Sequence[BlockDiffOperation],
    analysis: DocumentAnalysis,
    original_markdown: str,
    modified_markdown: str,
    *,
    block_mapping: Mapping[int, NodeInfo] | None = None,
) -> list[MarkdownDiffOperation]:
    """Operations only; see :func:`map_block_diff`."""
    mapping = map_block_diff(
        block_diff, analysis, original_markdown, modified_markdown, block_mapping=block_mapping
    )
    return list(mapping.operations)


def _modify_attrs_operation(info: NodeInfo, diff: BlockDiffOperation) -> MarkdownDiffOperation | None:
    """``modify_node`` for a same-type block whose tree-visible attrs changed.

    Only keys the tree node already carries are compared; block attrs such
    as a fence's ``language`` have no counterpart in the tree schema.
    """
    original, modified = diff.original_block, diff.new_block
    if original is None or modified is None or not modified.attrs or not info.attrs:
        return None
    if info.type != map_block_type(modified.type):
        return None
    changed = {
        key: copy.deepcopy(value)
        for key, value in modified.attrs.items()
        if key in info.attrs and info.attrs[key] != value
    }
    if not changed:
        return None
    return MarkdownDiffOperation(
        type=OperationType.MODIFY_NODE,
        markdown_position=info.text_offset,
        prosemirror_path=info.path,
        node_type=info.type,
        node_attrs=changed,
    )


def _insert_operation(position: int, block: Block, markdown: str) -> MarkdownDiffOperation:
    return MarkdownDiffOperation(
        type=OperationType.INSERT_NODE,
        markdown_position=calculate_markdown_position(block, markdown),
        prosemirror_path=(position,),
        node_type=map_block_type(block.type),
        content=block.text,
        node_attrs=copy.deepcopy(block.attrs) if block.attrs else None,
    )


def _delete_operation(info: NodeInfo, block: Block, markdown: str) -> MarkdownDiffOperation:
    return MarkdownDiffOperation(
        type=OperationType.DELETE_NODE,
        markdown_position=calculate_markdown_position(block, markdown),
        prosemirror_path=info.path,
        node_type=info.type,
    )


__all__ = [
    "MarkdownDiffOperation",
    "OperationMapping",
    "OperationType",
    "STRUCTURAL_OPERATIONS",
    "calculate_markdown_position",
    "map_block_diff",
    "map_block_type",
    "map_diff_to_tree",
]
