"""Extract plain text from document tree nodes.

Example:
    >>> extract_text({"type": "paragraph", "content": [
    ...     {"type": "text", "text": "Hello "},
    ...     {"type": "text", "text": "World", "marks": [{"type": "strong"}]},
    ... ]})
    'Hello World'
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mdsplice.nodes import child_nodes


def extract_text(node: Mapping[str, Any]) -> str:
    """Concatenate all text under a node, in document order.

    Marks are ignored and no separators are inserted between blocks, so the
    result lines up with the flattened-text offsets of the tree analyzer.
    """
    text = node.get("text")
    if isinstance(text, str):
        return text
    return "".join(extract_text(child) for child in child_nodes(node))
