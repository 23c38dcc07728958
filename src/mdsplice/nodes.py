"""Document tree shapes and node-type vocabulary for mdsplice.

The document tree is plain JSON-compatible data in the ProseMirror layout:
every node is a dict with a ``type``, optional ``attrs``, and either
``text`` (text leaves, optionally with ``marks``) or ``content`` (an ordered
list of child nodes). The root node type is always ``"doc"``.

Keeping the tree as plain data means it can be exchanged with an editor as
JSON without conversion; the TypedDicts below exist for type checkers only.

Node Hierarchy (default Markdown schema):
doc
├── paragraph, heading, code_block, horizontal_rule
├── blockquote (block children)
├── bullet_list, ordered_list
│   └── list_item (block children)
└── inline: text (with marks), image, hard_break

Marks: strong, em, code, link{href, title}

"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any, NotRequired, TypedDict


class Mark(TypedDict):
    """Inline formatting annotation on a text node."""

    type: str
    attrs: NotRequired[dict[str, Any]]


class TreeNode(TypedDict):
    """One node of the document tree."""

    type: str
    attrs: NotRequired[dict[str, Any]]
    content: NotRequired[list[TreeNode]]
    text: NotRequired[str]
    marks: NotRequired[list[Mark]]


class DocumentTree(TypedDict):
    """Root of the document tree."""

    type: str
    content: list[TreeNode]


# Block-level node types recognized at any depth
BLOCK_NODE_TYPES: frozenset[str] = frozenset(
    {"paragraph", "heading", "list_item", "code_block", "blockquote"}
)

# Block-level node types recognized among the root's direct children.
# Lists are counted as one block (their items are not), matching the way the
# block parser folds consecutive list lines into one block.
TOP_LEVEL_BLOCK_NODE_TYPES: frozenset[str] = BLOCK_NODE_TYPES | {
    "bullet_list",
    "ordered_list",
    "horizontal_rule",
}

SUPPORTED_NODE_TYPES: tuple[str, ...] = (
    "paragraph",
    "heading",
    "list_item",
    "code_block",
    "blockquote",
    "horizontal_rule",
    "text",
)

SUPPORTED_MARK_TYPES: tuple[str, ...] = ("strong", "em", "code", "link")


def create_empty_document() -> DocumentTree:
    """Return a new document with no content."""
    return {"type": "doc", "content": []}


def text_node(text: str, marks: Sequence[Mark] | None = None) -> TreeNode:
    """Build a text leaf, omitting ``marks`` when there are none."""
    node: TreeNode = {"type": "text", "text": text}
    if marks:
        node["marks"] = copy.deepcopy(list(marks))
    return node


def block_node(
    node_type: str,
    content: Sequence[TreeNode] = (),
    attrs: Mapping[str, Any] | None = None,
) -> TreeNode:
    """Build a container node, omitting ``attrs`` when not given."""
    node: TreeNode = {"type": node_type}
    if attrs:
        node["attrs"] = copy.deepcopy(dict(attrs))
    node["content"] = list(content)
    return node


def is_text_node(node: Mapping[str, Any]) -> bool:
    """True for text leaves (a ``text`` key holding a string)."""
    return isinstance(node.get("text"), str)


def child_nodes(node: Mapping[str, Any]) -> list[TreeNode]:
    """Return the node's child list, or an empty list for leaves."""
    content = node.get("content")
    if isinstance(content, list):
        return content
    return []


__all__ = [
    "BLOCK_NODE_TYPES",
    "DocumentTree",
    "Mark",
    "SUPPORTED_MARK_TYPES",
    "SUPPORTED_NODE_TYPES",
    "TOP_LEVEL_BLOCK_NODE_TYPES",
    "TreeNode",
    "block_node",
    "child_nodes",
    "create_empty_document",
    "is_text_node",
    "text_node",
]
