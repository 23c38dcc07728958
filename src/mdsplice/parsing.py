"""Markdown -> document tree, built on markdown-it-py.

Walks markdown-it's flat token stream with a stack of open nodes, the same
way prosemirror-markdown builds its documents, and produces the default
Markdown schema:

==============  =============================  =====================
token           node                           attrs
==============  =============================  =====================
paragraph       paragraph
heading         heading                        level
blockquote      blockquote
bullet_list     bullet_list                    tight
ordered_list    ordered_list                   order, tight
list_item       list_item
fence / code    code_block                     params
hr              horizontal_rule
image           image                          src, alt, title
hardbreak       hard_break
softbreak       "\\n" in the surrounding text
==============  =============================  =====================

Inline emphasis, strong, code spans and links become ``em``, ``strong``,
``code`` and ``link{href, title}`` marks. Raw HTML is not interpreted and
stays text. Empty ``content`` lists are omitted, as in ProseMirror's JSON.

Example:
    >>> parse("# Hi")
    {'type': 'doc', 'content': [{'type': 'heading', 'attrs': {'level': 1}, 'content': [{'type': 'text', 'text': 'Hi'}]}]}

"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.token import Token

from mdsplice.inline import marks_equal
from mdsplice.nodes import DocumentTree, Mark, TreeNode

# Block tokens that open a container node: token base name -> node type
_CONTAINERS = {
    "paragraph": "paragraph",
    "heading": "heading",
    "blockquote": "blockquote",
    "bullet_list": "bullet_list",
    "ordered_list": "ordered_list",
    "list_item": "list_item",
}

# Inline tokens that open a mark: token base name -> mark type
_MARKS = {
    "em": "em",
    "strong": "strong",
    "link": "link",
}


def _create_markdown_it() -> MarkdownIt:
    return MarkdownIt("commonmark", {"html": False})


class _TreeBuilder:
    """Accumulates nodes while walking one token stream."""

    __slots__ = ("_marks", "_stack")

    def __init__(self) -> None:
        self._stack: list[TreeNode] = [{"type": "doc", "content": []}]
        self._marks: list[Mark] = []

    @property
    def top(self) -> TreeNode:
        return self._stack[-1]

    def open(self, node_type: str, attrs: dict[str, Any] | None = None) -> None:
        node: TreeNode = {"type": node_type}
        if attrs is not None:
            node["attrs"] = attrs
        node["content"] = []
        self._stack.append(node)

    def close(self) -> None:
        node = self._stack.pop()
        if not node.get("content"):
            node.pop("content", None)
        self.add(node)

    def add(self, node: TreeNode) -> None:
        self.top.setdefault("content", []).append(node)

    def add_text(self, text: str) -> None:
        if not text:
            return
        content = self.top.setdefault("content", [])
        if content and content[-1].get("type") == "text" and marks_equal(
            content[-1].get("marks"), self._marks
        ):
            content[-1]["text"] += text
            return
        node: TreeNode = {"type": "text", "text": text}
        if self._marks:
            node["marks"] = [dict(mark) for mark in self._marks]  # type: ignore[misc]
        content.append(node)

    def open_mark(self, mark: Mark) -> None:
        self._marks.append(mark)

    def close_mark(self, mark_type: str) -> None:
        for index in range(len(self._marks) - 1, -1, -1):
            if self._marks[index]["type"] == mark_type:
                del self._marks[index]
                return

    def finish(self) -> DocumentTree:
        while len(self._stack) > 1:
            self.close()
        return self._stack[0]  # type: ignore[return-value]


def _list_is_tight(tokens: Sequence[Token], index: int) -> bool:
    index += 1
    while index < len(tokens):
        if tokens[index].type != "list_item_open":
            return bool(tokens[index].hidden)
        index += 1
    return False


def _attr(token: Token, name: str) -> Any:
    return token.attrs.get(name) if token.attrs else None


def _walk_block_tokens(tokens: Sequence[Token], builder: _TreeBuilder) -> None:
    for index, token in enumerate(tokens):
        kind = token.type
        if kind.endswith("_open") and kind[: -len("_open")] in _CONTAINERS:
            base = kind[: -len("_open")]
            attrs: dict[str, Any] | None = None
            if base == "heading":
                attrs = {"level": int(token.tag[1:])}
            elif base == "bullet_list":
                attrs = {"tight": _list_is_tight(tokens, index)}
            elif base == "ordered_list":
                attrs = {"order": int(_attr(token, "start") or 1), "tight": _list_is_tight(tokens, index)}
            builder.open(_CONTAINERS[base], attrs)
        elif kind.endswith("_close") and kind[: -len("_close")] in _CONTAINERS:
            builder.close()
        elif kind in ("fence", "code_block"):
            code = token.content[:-1] if token.content.endswith("\n") else token.content
            node: TreeNode = {"type": "code_block", "attrs": {"params": token.info.strip() if kind == "fence" else ""}}
            if code:
                node["content"] = [{"type": "text", "text": code}]
            builder.add(node)
        elif kind == "hr":
            builder.add({"type": "horizontal_rule"})
        elif kind == "inline":
            _walk_inline_tokens(token.children or [], builder)
        elif kind == "html_block":
            builder.open("paragraph")
            builder.add_text(token.content.rstrip("\n"))
            builder.close()


def _walk_inline_tokens(tokens: Sequence[Token], builder: _TreeBuilder) -> None:
    for token in tokens:
        kind = token.type
        if kind in ("text", "text_special", "html_inline"):
            builder.add_text(token.content)
        elif kind == "softbreak":
            builder.add_text("\n")
        elif kind == "hardbreak":
            builder.add({"type": "hard_break"})
        elif kind == "code_inline":
            builder.open_mark({"type": "code"})
            builder.add_text(token.content)
            builder.close_mark("code")
        elif kind == "image":
            builder.add(
                {
                    "type": "image",
                    "attrs": {
                        "src": _attr(token, "src") or "",
                        "alt": token.content or None,
                        "title": _attr(token, "title") or None,
                    },
                }
            )
        elif kind.endswith("_open") and kind[: -len("_open")] in _MARKS:
            mark_type = _MARKS[kind[: -len("_open")]]
            if mark_type == "link":
                builder.open_mark(
                    {"type": "link", "attrs": {"href": _attr(token, "href") or "", "title": _attr(token, "title") or None}}
                )
            else:
                builder.open_mark({"type": mark_type})
        elif kind.endswith("_close") and kind[: -len("_close")] in _MARKS:
            builder.close_mark(_MARKS[kind[: -len("_close")]])


def parse(markdown: str) -> DocumentTree:
    """Parse Markdown into a document tree.

    Args:
        markdown: Markdown source text

    Returns:
        Document tree with a ``doc`` root
    """
    builder = _TreeBuilder()
    _walk_block_tokens(_create_markdown_it().parse(markdown), builder)
    return builder.finish()


markdown_to_tree = parse


@dataclass(frozen=True, slots=True)
class SyntaxCheck:
    """Result of :func:`validate_markdown_syntax`."""

    valid: bool
    error: str | None = None


def validate_markdown_syntax(markdown: str) -> SyntaxCheck:
    """Check that Markdown can be parsed into a document tree.

    CommonMark accepts any string, so only non-string input or an internal
    parser failure reports invalid.
    """
    if not isinstance(markdown, str):
        return SyntaxCheck(valid=False, error=f"expected str, got {type(markdown).__name__}")
    try:
        parse(markdown)
    except Exception as exc:
        return SyntaxCheck(valid=False, error=str(exc) or type(exc).__name__)
    return SyntaxCheck(valid=True)


__all__ = [
    "SyntaxCheck",
    "markdown_to_tree",
    "parse",
    "validate_markdown_syntax",
]
