"""Utility modules for mdsplice.

Provides:
- text: strip_markdown_syntax, levenshtein_distance for block comparison
- logger: get_logger for logging
"""

from mdsplice.utils.logger import get_logger
from mdsplice.utils.text import levenshtein_distance, strip_markdown_syntax

__all__ = [
    "get_logger",
    "levenshtein_distance",
    "strip_markdown_syntax",
]
