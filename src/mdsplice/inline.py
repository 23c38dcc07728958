"""Inline Markdown tokenizer.

Scans text left to right, at each position trying in order:

- bold ``**text**``
- italic ``*text*``
- inline code `` `text` ``
- link ``[text](url)``

and otherwise emitting the next character as plain text. Adjacent tokens
with identical mark lists are merged afterwards, so the output never holds
two neighbours that could have been one token.

Bold and italic match non-greedily per occurrence. An unbalanced delimiter
(``**bold`` with no closer) matches nothing and falls through to plain
characters.

Example:
    >>> parse_inline_markdown("Hello **World**")
    [{'type': 'text', 'text': 'Hello '}, {'type': 'text', 'text': 'World', 'marks': [{'type': 'strong'}]}]

"""

from __future__ import annotations

import re
from collections.abc import Sequence

from mdsplice.nodes import Mark, TreeNode

_STRONG = re.compile(r"\*\*(.*?)\*\*")
_EM = re.compile(r"\*(.*?)\*")
_CODE = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def parse_inline_markdown(text: str) -> list[TreeNode]:
    """Tokenize inline Markdown into marked text runs.

    Args:
        text: Inline Markdown (one block's text)

    Returns:
        Text-node dicts; ``marks`` is present only on marked runs
    """
    tokens: list[TreeNode] = []
    pos = 0
    length = len(text)

    while pos < length:
        match = _STRONG.match(text, pos)
        if match:
            tokens.append(_token(match.group(1), {"type": "strong"}))
            pos = match.end()
            continue

        match = _EM.match(text, pos)
        if match:
            tokens.append(_token(match.group(1), {"type": "em"}))
            pos = match.end()
            continue

        match = _CODE.match(text, pos)
        if match:
            tokens.append(_token(match.group(1), {"type": "code"}))
            pos = match.end()
            continue

        match = _LINK.match(text, pos)
        if match:
            tokens.append(_token(match.group(1), {"type": "link", "attrs": {"href": match.group(2)}}))
            pos = match.end()
            continue

        tokens.append({"type": "text", "text": text[pos]})
        pos += 1

    return merge_adjacent_tokens(tokens)


def _token(text: str, mark: Mark) -> TreeNode:
    return {"type": "text", "text": text, "marks": [mark]}


def marks_equal(first: Sequence[Mark] | None, second: Sequence[Mark] | None) -> bool:
    """Compare two mark lists for exact, order-sensitive equality.

    A missing mark list equals an empty one. Marks are equal when their
    types and attrs match, so links with different ``href`` differ.
    """
    first = first or ()
    second = second or ()
    if len(first) != len(second):
        return False
    return all(
        a["type"] == b["type"] and (a.get("attrs") or None) == (b.get("attrs") or None)
        for a, b in zip(first, second)
    )


def merge_adjacent_tokens(tokens: Sequence[TreeNode]) -> list[TreeNode]:
    """Merge neighbouring text tokens that carry identical marks.

    Empty-text tokens (from ``****`` or ``**``-wrapped nothing) are kept as
    they come; they merge like any other token.
    """
    merged: list[TreeNode] = []
    for token in tokens:
        last = merged[-1] if merged else None
        if (
            last is not None
            and last["type"] == "text"
            and token["type"] == "text"
            and marks_equal(last.get("marks"), token.get("marks"))
        ):
            last["text"] = last.get("text", "") + token.get("text", "")
        else:
            merged.append(dict(token))  # type: ignore[arg-type]
    return merged


def inline_to_nodes(text: str, *, preserve_formatting: bool = True) -> list[TreeNode]:
    """Build text nodes for a block's inline content.

    Blank text produces no nodes. Tokens that end up with empty text are
    dropped, since a document tree has no empty text leaves.

    Args:
        text: Inline Markdown
        preserve_formatting: Tokenize marks; when False the text becomes one
            unmarked text node

    Returns:
        Text nodes ready to use as a block node's ``content``
    """
    if not text.strip():
        return []
    if not preserve_formatting:
        return [{"type": "text", "text": text}]
    nodes: list[TreeNode] = []
    for token in parse_inline_markdown(text):
        if not token.get("text"):
            continue
        node: TreeNode = {"type": token["type"], "text": token["text"]}
        if token.get("marks"):
            node["marks"] = token["marks"]
        nodes.append(node)
    return nodes


__all__ = [
    "inline_to_nodes",
    "marks_equal",
    "merge_adjacent_tokens",
    "parse_inline_markdown",
]
