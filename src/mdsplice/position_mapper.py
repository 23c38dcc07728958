"""Position mapper: align Markdown blocks with top-level tree blocks.

Used when plain positional correspondence between the block parser's output
and the tree's block nodes is not trustworthy.

Alignment policy:

1. Equal counts map by position (block i to tree block i). This is also what
   happens when counts match by coincidence despite structural edits.
2. Otherwise each Markdown block, in order, takes the best-scoring unused tree
   block, provided the score exceeds 0.7. A tree block is consumed by at most
   one Markdown block. Blocks without a match get no entry.

Score = 0.5 x type compatibility + 0.4 x text similarity + 0.1 x length
similarity. An incompatible type scores 0 outright.

"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from mdsplice.analyzer import NodeInfo, analyze_document, find_node_at_path
from mdsplice.blocks import Block
from mdsplice.text import extract_text
from mdsplice.utils.logger import get_logger
from mdsplice.utils.text import levenshtein_distance, strip_markdown_syntax

logger = get_logger(__name__)

MATCH_THRESHOLD = 0.7

TYPE_WEIGHT = 0.5
TEXT_WEIGHT = 0.4
LENGTH_WEIGHT = 0.1

# Markdown block type -> tree node types it may stand for (scored 0.8)
_COMPATIBLE_TYPES: dict[str, frozenset[str]] = {
    "paragraph": frozenset({"paragraph"}),
    "heading": frozenset({"heading"}),
    "list_item": frozenset({"bullet_list", "ordered_list"}),
    "code_block": frozenset({"code_block"}),
    "blockquote": frozenset({"blockquote"}),
}


@dataclass(frozen=True, slots=True)
class BlockCandidate:
    """A top-level tree block together with its flattened text."""

    info: NodeInfo
    text: str


def build_block_mapping(
    markdown_blocks: Sequence[Block],
    tree: Mapping[str, Any],
) -> dict[int, NodeInfo]:
    """Map Markdown block indices to top-level tree blocks.

    Args:
        markdown_blocks: Blocks from the block parser
        tree: Document tree the blocks should be aligned with

    Returns:
        Markdown block index -> NodeInfo for every aligned block
    """
    analysis = analyze_document(tree, top_level_only=True)
    candidates = [
        BlockCandidate(info=info, text=extract_text(find_node_at_path(tree, info.path) or {}))
        for info in analysis.block_structure
    ]
    logger.debug(
        "Aligning %d markdown blocks with %d tree blocks", len(markdown_blocks), len(candidates)
    )

    if len(markdown_blocks) == len(candidates):
        return {index: candidate.info for index, candidate in enumerate(candidates)}

    mapping: dict[int, NodeInfo] = {}
    used: set[int] = set()
    for md_index, block in enumerate(markdown_blocks):
        best_index = -1
        best_score = 0.0
        for tree_index, candidate in enumerate(candidates):
            if tree_index in used:
                continue
            score = calculate_content_similarity(block, candidate)
            if score > best_score and score > MATCH_THRESHOLD:
                best_score = score
                best_index = tree_index

        if best_index == -1:
            logger.debug("No tree block matches markdown block %d (%s)", md_index, block.type)
            continue

        used.add(best_index)
        mapping[md_index] = candidates[best_index].info
        logger.debug(
            "Mapped markdown block %d (%s) to %s at %s, score=%.2f",
            md_index,
            block.type,
            candidates[best_index].info.type,
            list(candidates[best_index].info.path),
            best_score,
        )

    return mapping


def calculate_content_similarity(block: Block, candidate: BlockCandidate) -> float:
    """Weighted similarity between a Markdown block and a tree block."""
    type_score = get_type_match_score(block.type, candidate.info.type)
    if type_score == 0:
        return 0.0

    md_text = strip_markdown_syntax(" ".join(block.content))
    tree_text = candidate.text.strip().lower() or candidate.info.type.lower()
    text_score = get_text_similarity(md_text, tree_text)
    length_score = get_length_similarity(len(md_text), len(tree_text))

    return type_score * TYPE_WEIGHT + text_score * TEXT_WEIGHT + length_score * LENGTH_WEIGHT


def get_type_match_score(markdown_type: str, node_type: str) -> float:
    """1.0 for identical types, 0.8 for compatible ones, else 0.0."""
    if markdown_type == node_type:
        return 1.0
    if node_type in _COMPATIBLE_TYPES.get(markdown_type, frozenset()):
        return 0.8
    return 0.0


def get_text_similarity(first: str, second: str) -> float:
    """Similarity in [0, 1] of two normalized strings.

    Equal strings score 1.0, one empty string 0.0, containment 0.8, and
    anything else one minus the edit distance over the longer length.
    """
    if first == second:
        return 1.0
    if not first or not second:
        return 0.0
    if first in second or second in first:
        return 0.8
    distance = levenshtein_distance(first, second)
    return 1 - distance / max(len(first), len(second))


def get_length_similarity(first: int, second: int) -> float:
    if first == 0 and second == 0:
        return 1.0
    return min(first, second) / max(first, second)


__all__ = [
    "BlockCandidate",
    "MATCH_THRESHOLD",
    "build_block_mapping",
    "calculate_content_similarity",
    "get_length_similarity",
    "get_text_similarity",
    "get_type_match_score",
]
