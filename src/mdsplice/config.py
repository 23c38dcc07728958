"""ContextVar-based transform configuration for mdsplice.

Provides immutable option objects plus a context-local default, so an
application can set the transform options once and have every call in the
same thread or task pick them up.

Thread Safety:
    ContextVars are local to each thread and asyncio task. No locks are needed
    and concurrent transforms never observe each other's options.

Usage:
    # Explicit options per call
    result = transform_sync(old, new, tree, TransformOptions(preserve_formatting=False))

    # Or a scoped default
    with transform_options_context(TransformOptions(handle_structural_changes=False)):
        result = transform_sync(old, new, tree)

"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Literal

Granularity = Literal["block", "line", "character"]

GRANULARITIES: frozenset[str] = frozenset({"block", "line", "character"})

# camelCase spellings accepted by from_dict (JSON payloads from editors)
_CAMEL_CASE_KEYS = {
    "preserveFormatting": "preserve_formatting",
    "handleStructuralChanges": "handle_structural_changes",
    "alignByContent": "align_by_content",
    "fallbackToParagraph": "fallback_to_paragraph",
    "emitPlaceholders": "emit_placeholders",
}


def _filter_fields(cls: type, config_dict: Mapping[str, Any]) -> dict[str, Any]:
    valid_fields = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered: dict[str, Any] = {}
    for key, value in config_dict.items():
        key = _CAMEL_CASE_KEYS.get(key, key)
        if key in valid_fields:
            filtered[key] = value
    return filtered


@dataclass(frozen=True, slots=True)
class TransformOptions:
    """Immutable transform configuration.

    Attributes:
        preserve_formatting: Tokenize inline Markdown (bold, italic, code,
            links) into marks when rebuilding node content. When False, new
            content is a single unmarked text node.
        handle_structural_changes: Map block insertions, deletions and type
            changes to node operations. When False only in-place content
            replacements and attr updates are produced.
        granularity: Diff unit. Only "block" has distinct behavior; "line"
            and "character" are accepted and diffed at block level.
        align_by_content: When the block counts of the Markdown and the tree
            disagree (loose lists, code fences), locate tree blocks through
            the position mapper (type and text similarity) instead of by
            block index. When False the index lookup is kept and the
            mismatch is only reported in the result warnings.

    """

    preserve_formatting: bool = True
    handle_structural_changes: bool = True
    granularity: Granularity = "block"
    align_by_content: bool = True

    def __post_init__(self) -> None:
        if self.granularity not in GRANULARITIES:
            msg = f"Unknown granularity {self.granularity!r}; expected one of {sorted(GRANULARITIES)}"
            raise ValueError(msg)

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "TransformOptions":
        """Create TransformOptions from a dictionary.

        Unknown keys are silently ignored; camelCase keys
        (``preserveFormatting``, ``handleStructuralChanges``) are accepted.

        Example:
            >>> TransformOptions.from_dict({"preserveFormatting": False}).preserve_formatting
            False

        """
        return cls(**_filter_fields(cls, config_dict))


@dataclass(frozen=True, slots=True)
class SerializeOptions:
    """Policy for node types with no Markdown equivalent.

    Resolution order for an unknown node type: a registered custom
    converter, then ``fallback_to_paragraph`` (flatten child text into a
    paragraph), then ``emit_placeholders`` (an HTML comment naming the type),
    otherwise the node is dropped.

    Attributes:
        fallback_to_paragraph: Flatten unknown nodes into paragraphs
        emit_placeholders: Emit ``<!-- type -->`` for unknown nodes

    """

    fallback_to_paragraph: bool = False
    emit_placeholders: bool = True

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "SerializeOptions":
        """Create SerializeOptions from a dictionary (unknown keys ignored)."""
        return cls(**_filter_fields(cls, config_dict))


# Module-level default (reused, never recreated)
_DEFAULT_OPTIONS: TransformOptions = TransformOptions()

_transform_options: ContextVar[TransformOptions] = ContextVar(
    "transform_options",
    default=_DEFAULT_OPTIONS,
)


def get_transform_options() -> TransformOptions:
    """Get the transform options active in the current context."""
    return _transform_options.get()


def set_transform_options(options: TransformOptions) -> None:
    """Set the default transform options for the current context.

    Only affects the current thread or task; others are unaffected.
    """
    _transform_options.set(options)


def reset_transform_options() -> None:
    """Reset the current context to the module-level default options."""
    _transform_options.set(_DEFAULT_OPTIONS)


@contextmanager
def transform_options_context(options: TransformOptions) -> Iterator[None]:
    """Context manager for temporary option changes.

    Restores the previous options even if an exception is raised.

    Example:
        >>> with transform_options_context(TransformOptions(granularity="line")):
        ...     get_transform_options().granularity
        'line'

    """
    previous = _transform_options.get()
    _transform_options.set(options)
    try:
        yield
    finally:
        _transform_options.set(previous)


def resolve_transform_options(
    options: TransformOptions | Mapping[str, Any] | None,
) -> TransformOptions:
    """Normalize a per-call options argument.

    None falls back to the context default; mappings go through
    :meth:`TransformOptions.from_dict`.
    """
    if options is None:
        return get_transform_options()
    if isinstance(options, TransformOptions):
        return options
    return TransformOptions.from_dict(options)


__all__ = [
    "GRANULARITIES",
    "Granularity",
    "SerializeOptions",
    "TransformOptions",
    "get_transform_options",
    "reset_transform_options",
    "resolve_transform_options",
    "set_transform_options",
    "transform_options_context",
]
