"""Document tree -> Markdown.

Renders the default Markdown schema (see ``mdsplice.parsing``) back to
Markdown text so that ``parse(serialize(tree))`` reproduces the tree.

Blocks are separated by blank lines. Tight lists put their items on
consecutive lines. Inline text is escaped so that literal ``*``, ``_``,
backticks and brackets survive the round trip.

Node types without a Markdown form are resolved in this order:

1. a custom converter registered for the type;
2. ``fallback_to_paragraph``: the node's text, flattened;
3. ``emit_placeholders`` (default): an HTML comment naming the type;
4. otherwise the node is dropped.

Attributes the schema does not know are never emitted.

Example:
    >>> serialize({"type": "doc", "content": [
    ...     {"type": "heading", "attrs": {"level": 2}, "content": [{"type": "text", "text": "Hi"}]},
    ... ]})
    '## Hi\\n'

"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from mdsplice.config import SerializeOptions
from mdsplice.errors import SerializationError
from mdsplice.nodes import child_nodes
from mdsplice.text import extract_text
from mdsplice.utils.logger import get_logger

logger = get_logger(__name__)

Converter = Callable[[Mapping[str, Any]], str]

_ESCAPE = re.compile(r"([\\`*_\[\]])")
_LINE_START = re.compile(r"^([ \t]*)([#>+=~-])", re.MULTILINE)
_ORDERED_START = re.compile(r"^([ \t]*)(\d+)([.)])(?=\s|$)", re.MULTILINE)

# Marks are opened in this order (outermost first) and closed in reverse
_MARK_ORDER = ("link", "strong", "em", "code")


def _escape_text(text: str) -> str:
    return _ESCAPE.sub(r"\\\1", text)


def _escape_line_starts(text: str) -> str:
    text = _ORDERED_START.sub(r"\1\2\\\3", text)
    return _LINE_START.sub(r"\1\\\2", text)


def placeholder_converter(node: Mapping[str, Any]) -> str:
    """Render a node as an HTML comment naming its type."""
    return f"<!-- {node.get('type', 'unknown')} -->"


def create_custom_converter(template: str) -> Converter:
    """Build a converter from a ``str.format`` template.

    The template can use ``{type}``, ``{text}`` (the node's flattened text)
    and any key of the node's attrs.

    Example:
        >>> mention = create_custom_converter("@{label}")
        >>> mention({"type": "mention", "attrs": {"label": "ada"}})
        '@ada'
    """

    def convert(node: Mapping[str, Any]) -> str:
        values = {**(node.get("attrs") or {}), "type": node.get("type", ""), "text": extract_text(node)}
        return template.format(**values)

    return convert


def merge_custom_converters(*converter_maps: Mapping[str, Converter] | None) -> dict[str, Converter]:
    """Merge converter maps; later maps win for the same node type."""
    merged: dict[str, Converter] = {}
    for converters in converter_maps:
        if converters:
            merged.update(converters)
    return merged


DEFAULT_CUSTOM_CONVERTERS: dict[str, Converter] = {}


class MarkdownSerializer:
    """Serialize document trees to Markdown.

    Instances hold only their converters and options; ``serialize`` keeps no
    state between calls.
    """

    __slots__ = ("_converters", "_options")

    def __init__(
        self,
        custom_converters: Mapping[str, Converter] | None = None,
        options: SerializeOptions | None = None,
    ) -> None:
        self._converters = merge_custom_converters(DEFAULT_CUSTOM_CONVERTERS, custom_converters)
        self._options = options or SerializeOptions()

    def serialize(self, tree: Mapping[str, Any]) -> str:
        """Render a whole document.

        Raises:
            SerializationError: The root is not a doc node with a content list
        """
        if not isinstance(tree, Mapping) or tree.get("type") != "doc" or not isinstance(tree.get("content"), list):
            raise SerializationError("Invalid document: must be a doc node with a content list")
        body = self._render_blocks(tree["content"], "\n\n")
        return f"{body}\n" if body else ""

    def _render_blocks(self, nodes: list[Mapping[str, Any]], separator: str) -> str:
        rendered = (self._render_block(node) for node in nodes)
        return separator.join(part for part in rendered if part is not None)

    def _render_block(self, node: Mapping[str, Any]) -> str | None:
        node_type = node.get("type")
        if node_type in self._converters:
            return self._convert(node)

        attrs = node.get("attrs") or {}
        match node_type:
            case "paragraph":
                return self._render_inlines(child_nodes(node))
            case "heading":
                level = min(max(int(attrs.get("level", 1)), 1), 6)
                return "#" * level + " " + self._render_inlines(child_nodes(node))
            case "code_block":
                code = extract_text(node)
                fence = "```"
                while fence in code:
                    fence += "`"
                params = attrs.get("params") or ""
                return f"{fence}{params}\n{code}\n{fence}"
            case "blockquote":
                inner = self._render_blocks(child_nodes(node), "\n\n")
                return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
            case "bullet_list" | "ordered_list":
                return self._render_list(node)
            case "list_item":
                return self._render_item("- ", node, tight=True)
            case "horizontal_rule":
                return "---"
            case _:
                return self._unknown_block(node)

    def _render_list(self, node: Mapping[str, Any]) -> str:
        attrs = node.get("attrs") or {}
        tight = bool(attrs.get("tight", False))
        items = child_nodes(node)
        if node.get("type") == "ordered_list":
            start = int(attrs.get("order", 1))
            markers = [f"{start + i}. " for i in range(len(items))]
        else:
            markers = ["- "] * len(items)
        rendered = [self._render_item(marker, item, tight) for marker, item in zip(markers, items)]
        return ("\n" if tight else "\n\n").join(rendered)

    def _render_item(self, marker: str, item: Mapping[str, Any], tight: bool) -> str:
        body = self._render_blocks(child_nodes(item), "\n" if tight else "\n\n")
        indent = " " * len(marker)
        lines = body.split("\n")
        rest = [f"{indent}{line}" if line else "" for line in lines[1:]]
        return "\n".join([f"{marker}{lines[0]}", *rest])

    def _render_inlines(self, nodes: list[Mapping[str, Any]]) -> str:
        return _escape_line_starts("".join(self._render_inline(node) for node in nodes))

    def _render_inline(self, node: Mapping[str, Any]) -> str:
        node_type = node.get("type")
        if node_type in self._converters:
            return self._convert(node)

        match node_type:
            case "text":
                return self._render_text(node)
            case "hard_break":
                return "\\\n"
            case "image":
                attrs = node.get("attrs") or {}
                alt = _escape_text(attrs.get("alt") or "")
                title = f' "{attrs["title"]}"' if attrs.get("title") else ""
                return f"![{alt}]({attrs.get('src', '')}{title})"
            case _:
                return self._unknown_inline(node)

    def _render_text(self, node: Mapping[str, Any]) -> str:
        text = node.get("text", "")
        marks = {mark.get("type"): mark for mark in node.get("marks") or ()}
        if "code" in marks:
            ticks = "``" if "`" in text else "`"
            pad = " " if text.startswith("`") or text.endswith("`") else ""
            out = f"{ticks}{pad}{text}{pad}{ticks}"
        else:
            out = _escape_text(text)

        for mark_type in reversed(_MARK_ORDER):
            mark = marks.get(mark_type)
            if mark is None or mark_type == "code":
                continue
            if mark_type == "strong":
                out = f"**{out}**"
            elif mark_type == "em":
                out = f"*{out}*"
            elif mark_type == "link":
                mark_attrs = mark.get("attrs") or {}
                title = f' "{mark_attrs["title"]}"' if mark_attrs.get("title") else ""
                out = f"[{out}]({mark_attrs.get('href', '')}{title})"
        return out

    def _convert(self, node: Mapping[str, Any]) -> str:
        try:
            return self._converters[node.get("type")](node)  # type: ignore[index]
        except Exception as exc:
            msg = f"Custom converter for {node.get('type')!r} failed: {exc}"
            raise SerializationError(msg) from exc

    def _unknown_block(self, node: Mapping[str, Any]) -> str | None:
        if self._options.fallback_to_paragraph:
            logger.debug("Flattening unknown node type %r into a paragraph", node.get("type"))
            return _escape_line_starts(_escape_text(extract_text(node)))
        if self._options.emit_placeholders:
            return placeholder_converter(node)
        logger.debug("Dropping unknown node type %r", node.get("type"))
        return None

    def _unknown_inline(self, node: Mapping[str, Any]) -> str:
        if self._options.fallback_to_paragraph:
            return _escape_text(extract_text(node))
        if self._options.emit_placeholders:
            return placeholder_converter(node)
        return ""


def serialize(
    tree: Mapping[str, Any],
    custom_converters: Mapping[str, Converter] | None = None,
    *,
    options: SerializeOptions | None = None,
) -> str:
    """Render a document tree as Markdown.

    Args:
        tree: Document tree with a ``doc`` root
        custom_converters: Node type -> function returning that node's Markdown
        options: Policy for node types without a converter or Markdown form

    Returns:
        Markdown text ending in a newline (empty string for an empty document)
    """
    return MarkdownSerializer(custom_converters, options).serialize(tree)


tree_to_markdown = serialize


__all__ = [
    "Converter",
    "DEFAULT_CUSTOM_CONVERTERS",
    "MarkdownSerializer",
    "create_custom_converter",
    "merge_custom_converters",
    "placeholder_converter",
    "serialize",
    "tree_to_markdown",
]
