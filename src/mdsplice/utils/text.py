"""Text processing utilities for mdsplice.

Provides the normalization and edit-distance helpers used when comparing
Markdown blocks against document tree nodes.

Example:
    >>> from mdsplice.utils.text import strip_markdown_syntax, levenshtein_distance
    >>> strip_markdown_syntax("## Hello **World**")
    'hello world'
    >>> levenshtein_distance("kitten", "sitting")
    3
"""

from __future__ import annotations

import re

_HEADING_MARKER = re.compile(r"^#{1,6}\s+")
_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")
_LINK = re.compile(r"\[(.*?)\]\(.*?\)")
_INLINE_CODE = re.compile(r"`(.*?)`")


def strip_markdown_syntax(text: str) -> str:
    """Reduce a Markdown snippet to comparable plain text.

    Removes a leading heading marker and unwraps bold, italic, link and
    inline-code spans, then trims and case-folds the result.

    Args:
        text: Markdown text (typically a block's lines joined with spaces)

    Returns:
        Lowercased plain text
    """
    text = _HEADING_MARKER.sub("", text)
    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _INLINE_CODE.sub(r"\1", text)
    return text.strip().lower()


def levenshtein_distance(first: str, second: str) -> int:
    """Compute the Levenshtein edit distance between two strings.

    Keeps only two rows of the dynamic-programming matrix.

    Args:
        first: First string
        second: Second string

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning ``first`` into ``second``
    """
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(first) + 1))
    for j, char_b in enumerate(second, start=1):
        current = [j]
        for i, char_a in enumerate(first, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(current[i - 1] + 1, previous[i] + 1, previous[i - 1] + cost))
        previous = current
    return previous[-1]
