"""Exception classes for mdsplice.

Provides standardized exceptions for error handling throughout mdsplice.
"""

from __future__ import annotations

from collections.abc import Sequence


class MdspliceError(Exception):
    """Base exception for all mdsplice errors.

    Subclass this for specific error categories.
    """

    pass


class DocumentValidationError(MdspliceError):
    """Invalid input handed to a validating entry point.

    Raised before any diff work begins: non-string or empty Markdown,
    a root that is not a ``doc`` node, or a root without a content list.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Error description
            field: Name of the offending argument (optional)
        """
        self.message = message
        self.field = field
        prefix = f"{field}: " if field else ""
        super().__init__(f"{prefix}{message}")


class PathResolutionError(MdspliceError):
    """A tree path does not resolve against the document being edited."""

    def __init__(self, path: Sequence[int], message: str = "Invalid path") -> None:
        """Initialize path error.

        Args:
            path: The tree path that failed to resolve
            message: Description of the failure
        """
        self.path = tuple(path)
        joined = ".".join(str(index) for index in self.path)
        super().__init__(f"{message}: [{joined}]")


class TransformError(MdspliceError):
    """A transform failed.

    Raised by the exception-style entry points; carries every error message
    collected by the failed transform.
    """

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Transform failed: {', '.join(self.errors)}")


class SerializationError(MdspliceError):
    """Error converting a document tree to Markdown."""

    pass
