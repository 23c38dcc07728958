"""Operation applier: execute tree-edit operations on a copy of a tree.

The caller's tree is deep-copied first and never touched.

Ordering:
    Operations run deepest path first; among paths of equal depth, the path
    that is greater when compared from its last component backwards runs
    first. Editing later siblings and deeper descendants before earlier,
    shallower ones means no edit shifts the index of a path still waiting
    to be applied. For identical paths, deletions run before replacements
    and attribute changes, which run before insertions; insertions at the
    same index run in reverse emission order so they end up in emission
    order.

Failure handling:
    Every operation yields an ApplyOutcome. A path that does not resolve or
    a malformed payload skips that operation (logged at warning level) and
    the remaining operations still apply. The final tree is a best-effort
    partial application, never an all-or-nothing rollback.

"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from mdsplice.analyzer import find_node_at_path
from mdsplice.errors import PathResolutionError
from mdsplice.inline import inline_to_nodes
from mdsplice.mapper import MarkdownDiffOperation, OperationType
from mdsplice.nodes import TreeNode, block_node, text_node
from mdsplice.utils.logger import get_logger

logger = get_logger(__name__)

_HEADING_MARKER = re.compile(r"^#{1,6}\s+")
_QUOTE_MARKER = re.compile(r"^>\s?")
_LIST_MARKER = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+")

_RANK = {
    OperationType.DELETE_NODE: 0,
    OperationType.REPLACE: 1,
    OperationType.MODIFY_NODE: 1,
    OperationType.INSERT_NODE: 2,
}


@dataclass(frozen=True, slots=True)
class ApplyOutcome:
    """Result of applying one operation."""

    operation: MarkdownDiffOperation
    applied: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class ApplyReport:
    """The edited tree plus one outcome per operation, in application order."""

    document: dict[str, Any]
    outcomes: tuple[ApplyOutcome, ...]

    @property
    def applied(self) -> tuple[MarkdownDiffOperation, ...]:
        return tuple(o.operation for o in self.outcomes if o.applied)

    @property
    def skipped(self) -> tuple[ApplyOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.applied)


def sort_operations(operations: Sequence[MarkdownDiffOperation]) -> list[MarkdownDiffOperation]:
    """Order operations so that applying them in sequence keeps paths valid."""

    def key(item: tuple[int, MarkdownDiffOperation]) -> tuple[Any, ...]:
        seq, op = item
        path = op.prosemirror_path
        tiebreak = -seq if op.type == OperationType.INSERT_NODE else seq
        return (-len(path), tuple(-index for index in reversed(path)), _RANK.get(op.type, 1), tiebreak)

    return [op for _, op in sorted(enumerate(operations), key=key)]


def apply_operations(
    tree: Mapping[str, Any],
    operations: Sequence[MarkdownDiffOperation],
    *,
    preserve_formatting: bool = True,
) -> ApplyReport:
    """Apply operations to a deep copy of ``tree``.

    Args:
        tree: Original document tree (left untouched)
        operations: Operations whose paths refer to ``tree``
        preserve_formatting: Tokenize inline Markdown into marks for new
            content; when False new content is unmarked text

    Returns:
        ApplyReport with the new tree and per-operation outcomes
    """
    document = copy.deepcopy(dict(tree))
    outcomes: list[ApplyOutcome] = []

    for op in sort_operations(operations):
        try:
            reason = _apply(document, op, preserve_formatting)
        except PathResolutionError as exc:
            reason = str(exc)
        if reason is None:
            outcomes.append(ApplyOutcome(op, True))
        else:
            logger.warning("Skipped %s at %s: %s", op.type, list(op.prosemirror_path), reason)
            outcomes.append(ApplyOutcome(op, False, reason))

    return ApplyReport(document=document, outcomes=tuple(outcomes))


def apply_operations_to_document(
    tree: Mapping[str, Any],
    operations: Sequence[MarkdownDiffOperation],
) -> dict[str, Any]:
    """Apply operations to a copy of ``tree`` and return the new tree."""
    return apply_operations(tree, operations).document


def _apply(document: dict[str, Any], op: MarkdownDiffOperation, preserve_formatting: bool) -> str | None:
    """Apply one operation in place; return a skip reason or None."""
    path = op.prosemirror_path
    match op.type:
        case OperationType.INSERT_NODE:
            if not path:
                return "insert_node needs an insertion index"
            children = _children_of(document, path[:-1])
            index = path[-1]
            if index < 0:
                return f"insertion index {index} is negative"
            node_type = op.node_type or "paragraph"
            node = block_node(
                node_type,
                build_block_content(node_type, op.content or "", preserve_formatting=preserve_formatting),
                op.node_attrs,
            )
            if node_type == "horizontal_rule":
                del node["content"]
            children.insert(index, node)

        case OperationType.DELETE_NODE:
            if not path:
                return "cannot delete the root node"
            children = _children_of(document, path[:-1])
            index = path[-1]
            if not 0 <= index < len(children):
                return f"index {index} out of range for {len(children)} children"
            del children[index]

        case OperationType.REPLACE:
            node = _node_at(document, path)
            if not isinstance(node.get("content"), list):
                return f"{node.get('type')} node has no content to replace"
            node["content"] = build_block_content(
                node.get("type", "paragraph"), op.content or "", preserve_formatting=preserve_formatting
            )

        case OperationType.MODIFY_NODE:
            node = _node_at(document, path)
            if not isinstance(op.node_attrs, Mapping):
                return "modify_node needs a mapping of attrs"
            node["attrs"] = {**(node.get("attrs") or {}), **copy.deepcopy(dict(op.node_attrs))}

        case _:
            return f"unknown operation type {op.type!r}"

    return None


def _node_at(document: dict[str, Any], path: Sequence[int]) -> dict[str, Any]:
    node = find_node_at_path(document, path)
    if node is None:
        raise PathResolutionError(path)
    return node  # type: ignore[return-value]


def _children_of(document: dict[str, Any], parent_path: Sequence[int]) -> list[TreeNode]:
    parent = _node_at(document, parent_path)
    children = parent.get("content")
    if not isinstance(children, list):
        raise PathResolutionError(parent_path, "Node has no content list")
    return children


def build_block_content(node_type: str, raw: str, *, preserve_formatting: bool = True) -> list[TreeNode]:
    """Build the children of a block node from its raw Markdown text.

    Block syntax belonging to ``node_type`` (heading hashes, quote markers,
    list markers, code fences) is removed before inline tokenizing. Code
    keeps its text verbatim; quote and list content is wrapped in
    paragraphs; lists get one item per line.

    Args:
        node_type: Type of the node receiving the content
        raw: Raw Markdown of the block
        preserve_formatting: Tokenize inline marks

    Returns:
        Child nodes for the block
    """
    lines = raw.split("\n")
    match node_type:
        case "horizontal_rule":
            return []
        case "code_block":
            body = [line for line in lines if not line.startswith("```")]
            code = "\n".join(body)
            return [text_node(code)] if code else []
        case "heading":
            lines[0] = _HEADING_MARKER.sub("", lines[0])
            return inline_to_nodes("\n".join(lines), preserve_formatting=preserve_formatting)
        case "blockquote":
            text = "\n".join(_QUOTE_MARKER.sub("", line) for line in lines)
            return _wrap_paragraph(text, preserve_formatting)
        case "list_item":
            text = "\n".join(_LIST_MARKER.sub("", line) for line in lines)
            return _wrap_paragraph(text, preserve_formatting)
        case "bullet_list" | "ordered_list":
            return [
                block_node("list_item", _wrap_paragraph(_LIST_MARKER.sub("", line), preserve_formatting))
                for line in lines
                if line.strip()
            ]
        case _:
            return inline_to_nodes(raw, preserve_formatting=preserve_formatting)


def _wrap_paragraph(text: str, preserve_formatting: bool) -> list[TreeNode]:
    inline = inline_to_nodes(text, preserve_formatting=preserve_formatting)
    return [block_node("paragraph", inline)] if inline else []


__all__ = [
    "ApplyOutcome",
    "ApplyReport",
    "apply_operations",
    "apply_operations_to_document",
    "build_block_content",
    "sort_operations",
]
