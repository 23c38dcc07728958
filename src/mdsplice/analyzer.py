"""Tree analyzer: flatten a document tree into a position index.

One depth-first traversal records, for every node, its path, its type and
attrs, and where its text falls in the document's flattened text (all text
leaves concatenated in document order). Text leaves additionally get a
TextPosition entry, and block-level nodes are collected into
``block_structure`` in document order.

Two block-collection policies exist, chosen by the consumer:

- baseline (default): every paragraph, heading, list_item, code_block and
  blockquote node at any depth;
- ``top_level_only=True``: only the root's direct children, with lists and
  horizontal rules counted as blocks. A list and its items are then one
  entry, which keeps ``block_structure`` index-aligned with the blocks the
  block parser produces. The transform pipeline and the position mapper use
  this policy.

The traversal is functional: each call returns its NodeInfo together with
the next text offset, and results are gathered into fresh lists. Nothing is
cached between calls; any mutation of the tree invalidates an analysis.

"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from mdsplice.nodes import BLOCK_NODE_TYPES, TOP_LEVEL_BLOCK_NODE_TYPES, TreeNode, child_nodes

Path = tuple[int, ...]


@dataclass(frozen=True, slots=True)
class NodeInfo:
    """Derived metadata for one tree node.

    Attributes:
        type: Node type
        path: Child indices from the root (root is ``()``)
        text_offset: Start of the node's text in the flattened document text
        text_length: Length of all text under the node
        attrs: The node's attrs, if any
        children: Paths of the node's direct children

    """

    type: str
    path: Path
    text_offset: int
    text_length: int
    attrs: Mapping[str, Any] | None = None
    children: tuple[Path, ...] = ()

    @property
    def text_end(self) -> int:
        """End offset (exclusive) of the node's text."""
        return self.text_offset + self.text_length


@dataclass(frozen=True, slots=True)
class TextPosition:
    """Location of one text leaf in the flattened document text."""

    path: Path
    start: int
    end: int
    text: str


@dataclass(frozen=True, slots=True)
class DocumentAnalysis:
    """Result of :func:`analyze_document`.

    Attributes:
        node_map: NodeInfo per node, keyed by dot-joined path ("" for root)
        text_positions: Text leaves in document order
        block_structure: Block-level nodes in document order

    """

    node_map: dict[str, NodeInfo] = field(default_factory=dict)
    text_positions: tuple[TextPosition, ...] = ()
    block_structure: tuple[NodeInfo, ...] = ()


def path_key(path: Sequence[int]) -> str:
    """Serialize a path as dot-joined indices ("" for the root)."""
    return ".".join(str(index) for index in path)


def analyze_document(tree: Mapping[str, Any], *, top_level_only: bool = False) -> DocumentAnalysis:
    """Index every node of a document tree.

    Args:
        tree: Document tree (root node)
        top_level_only: Collect only the root's direct block children into
            ``block_structure`` (see module docstring)

    Returns:
        DocumentAnalysis with one node_map entry per reachable node
    """
    _, _, infos, text_positions = _visit(tree, (), 0)

    if top_level_only:
        blocks = tuple(
            info for info in infos if len(info.path) == 1 and info.type in TOP_LEVEL_BLOCK_NODE_TYPES
        )
    else:
        blocks = tuple(info for info in infos if info.type in BLOCK_NODE_TYPES)

    return DocumentAnalysis(
        node_map={path_key(info.path): info for info in infos},
        text_positions=tuple(text_positions),
        block_structure=blocks,
    )


def _visit(
    node: Mapping[str, Any],
    path: Path,
    offset: int,
) -> tuple[NodeInfo, int, list[NodeInfo], list[TextPosition]]:
    """Analyze ``node`` and its subtree.

    Returns:
        (node info, next text offset, subtree infos in pre-order, subtree
        text positions)
    """
    text = node.get("text")
    infos: list[NodeInfo] = []
    positions: list[TextPosition] = []
    children: list[Path] = []
    end = offset

    if isinstance(text, str) and text:
        end = offset + len(text)
        positions.append(TextPosition(path=path, start=offset, end=end, text=text))
    else:
        for index, child in enumerate(child_nodes(node)):
            child_path = (*path, index)
            _, end, child_infos, child_positions = _visit(child, child_path, end)
            infos.extend(child_infos)
            positions.extend(child_positions)
            children.append(child_path)

    info = NodeInfo(
        type=node.get("type", ""),
        path=path,
        text_offset=offset,
        text_length=end - offset,
        attrs=node.get("attrs") or None,
        children=tuple(children),
    )
    return info, end, [info, *infos], positions


def find_node_at_path(tree: Mapping[str, Any], path: Sequence[int]) -> TreeNode | None:
    """Resolve a path to a node, or None when any step is out of range."""
    current: Mapping[str, Any] = tree
    for index in path:
        children = child_nodes(current)
        if index < 0 or index >= len(children):
            return None
        current = children[index]
    return current  # type: ignore[return-value]


def get_text_at_offset(analysis: DocumentAnalysis, offset: int) -> tuple[NodeInfo | None, int]:
    """Find the text leaf covering a flattened-text offset.

    Returns:
        (leaf NodeInfo, offset within the leaf), or (None, 0) when no leaf
        covers the offset
    """
    for position in analysis.text_positions:
        if position.start <= offset < position.end:
            return analysis.node_map.get(path_key(position.path)), offset - position.start
    return None, 0


def find_block_containing_offset(analysis: DocumentAnalysis, offset: int) -> NodeInfo | None:
    """Return the first block whose text span covers ``offset``."""
    for block in analysis.block_structure:
        if block.text_offset <= offset < block.text_end:
            return block
    return None


def get_path_depth(path: Sequence[int]) -> int:
    return len(path)


def is_path_descendant_of(child_path: Sequence[int], parent_path: Sequence[int]) -> bool:
    """True when ``child_path`` lies strictly below ``parent_path``."""
    if len(child_path) <= len(parent_path):
        return False
    return tuple(child_path[: len(parent_path)]) == tuple(parent_path)


def find_common_ancestor_path(first: Sequence[int], second: Sequence[int]) -> Path:
    """Longest shared prefix of two paths."""
    common: list[int] = []
    for a, b in zip(first, second):
        if a != b:
            break
        common.append(a)
    return tuple(common)


def calculate_text_length(node: Mapping[str, Any]) -> int:
    """Total length of all text under a node."""
    text = node.get("text")
    if isinstance(text, str):
        return len(text)
    return sum(calculate_text_length(child) for child in child_nodes(node))


__all__ = [
    "DocumentAnalysis",
    "NodeInfo",
    "Path",
    "TextPosition",
    "analyze_document",
    "calculate_text_length",
    "find_block_containing_offset",
    "find_common_ancestor_path",
    "find_node_at_path",
    "get_path_depth",
    "get_text_at_offset",
    "is_path_descendant_of",
    "path_key",
]
