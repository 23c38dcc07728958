"""Block differ: align two block sequences and describe what changed.

The alignment is a linear two-pointer walk, not an edit-distance search:

- both blocks equal (type, lines, attrs): advance both, no operation;
- same type, different content: ``modify_block``, advance both;
- different type: ``replace_block``, advance both;
- one sequence exhausted: the rest of the other becomes ``insert_block`` or
  ``delete_block`` operations.

This runs in O(n) but cannot recognise a block inserted or deleted in the
middle of a document. Such an edit shows up as a run of ``replace_block``
(or ``modify_block``) operations for every block after it, followed by one
trailing insert or delete.

Modified blocks get one whole-block ``text_change``; there is no sub-block
granularity.

Thread Safety:
    All functions are pure, safe to call from any thread.

"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from mdsplice.blocks import Block


class BlockDiffType(StrEnum):
    INSERT_BLOCK = "insert_block"
    DELETE_BLOCK = "delete_block"
    MODIFY_BLOCK = "modify_block"
    REPLACE_BLOCK = "replace_block"


@dataclass(frozen=True, slots=True)
class ContentChange:
    """A text change inside one block.

    Attributes:
        type: Always "text_change"
        position: Offset of the change within the block's joined text
        length: Length of the replaced original text
        old_text: Original text
        new_text: Replacement text

    """

    position: int
    length: int
    old_text: str
    new_text: str
    type: str = "text_change"


@dataclass(frozen=True, slots=True)
class BlockDiffOperation:
    """One step of a block-level diff.

    ``position`` indexes the original block sequence.
    """

    type: BlockDiffType
    position: int
    original_block: Block | None = None
    new_block: Block | None = None
    content_changes: tuple[ContentChange, ...] = ()


def blocks_equal(first: Block, second: Block) -> bool:
    """Exact structural equality: type, content lines and attrs."""
    return (
        first.type == second.type
        and first.content == second.content
        and (first.attrs or None) == (second.attrs or None)
    )


def compute_block_content_diff(original: Block, modified: Block) -> list[ContentChange]:
    """Describe the content change between two blocks of the same type.

    Returns:
        Empty list when the joined content is identical, otherwise one
        change spanning the whole original content
    """
    old_text = original.text
    new_text = modified.text
    if old_text == new_text:
        return []
    return [ContentChange(position=0, length=len(old_text), old_text=old_text, new_text=new_text)]


def compute_block_diff(
    original_blocks: Sequence[Block],
    modified_blocks: Sequence[Block],
) -> list[BlockDiffOperation]:
    """Diff two block sequences with the linear alignment described above.

    Args:
        original_blocks: Blocks of the original Markdown
        modified_blocks: Blocks of the modified Markdown

    Returns:
        Block operations in walk order
    """
    operations: list[BlockDiffOperation] = []
    i = j = 0

    while i < len(original_blocks) or j < len(modified_blocks):
        if i >= len(original_blocks):
            operations.append(
                BlockDiffOperation(BlockDiffType.INSERT_BLOCK, i, new_block=modified_blocks[j])
            )
            j += 1
            continue

        if j >= len(modified_blocks):
            operations.append(
                BlockDiffOperation(BlockDiffType.DELETE_BLOCK, i, original_block=original_blocks[i])
            )
            i += 1
            continue

        original = original_blocks[i]
        modified = modified_blocks[j]
        if blocks_equal(original, modified):
            pass
        elif original.type == modified.type:
            changes = compute_block_content_diff(original, modified)
            if changes:
                operations.append(
                    BlockDiffOperation(
                        BlockDiffType.MODIFY_BLOCK,
                        i,
                        original_block=original,
                        new_block=modified,
                        content_changes=tuple(changes),
                    )
                )
        else:
            operations.append(
                BlockDiffOperation(
                    BlockDiffType.REPLACE_BLOCK, i, original_block=original, new_block=modified
                )
            )
        i += 1
        j += 1

    return operations


__all__ = [
    "BlockDiffOperation",
    "BlockDiffType",
    "ContentChange",
    "blocks_equal",
    "compute_block_content_diff",
    "compute_block_diff",
]
