"""Minimal logging utilities for mdsplice.

Provides a simple get_logger function that wraps the standard library logging.

Example:
    >>> from mdsplice.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Diffing blocks")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "mdsplice." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("mymodule")
        >>> logger.name
        'mdsplice.mymodule'
    """
    if not (name == "mdsplice" or name.startswith("mdsplice.")):
        name = f"mdsplice.{name}"
    return logging.getLogger(name)
