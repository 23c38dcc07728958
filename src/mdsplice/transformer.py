"""Transform entry points: reconcile a Markdown edit into a document tree.

Pipeline:
    original/modified Markdown -> block parser -> block differ
    original tree -> tree analyzer (top-level blocks)
    block diff + analysis -> operation mapper -> applier (on a copy)
    -> TransformResult(new tree, operations, statistics)

When the Markdown and the tree disagree on the number of blocks, the
position mapper locates tree blocks by content instead of by index.

``transform_sync`` is the synchronous core. ``transform`` and the other
coroutine entry points exist for callers that are themselves asynchronous
(for example, awaiting a text-enhancement call before reconciling its
output); they do no I/O of their own.

Thread Safety:
    Every call works on its own copy of the tree and shares no mutable
    state, so calls are reentrant and safe to run concurrently.

"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from mdsplice.analyzer import analyze_document
from mdsplice.applier import apply_operations
from mdsplice.blocks import content_blocks, parse_to_blocks
from mdsplice.config import TransformOptions, resolve_transform_options
from mdsplice.differ import BlockDiffOperation, BlockDiffType, compute_block_diff
from mdsplice.errors import DocumentValidationError, TransformError
from mdsplice.mapper import MarkdownDiffOperation, OperationType, map_block_diff
from mdsplice.nodes import SUPPORTED_MARK_TYPES, SUPPORTED_NODE_TYPES, DocumentTree, create_empty_document
from mdsplice.position_mapper import build_block_mapping
from mdsplice.utils.logger import get_logger

logger = get_logger(__name__)

VERSION = "1.0.0"

_STRUCTURAL_BLOCK_OPERATIONS = frozenset(
    {BlockDiffType.INSERT_BLOCK, BlockDiffType.DELETE_BLOCK, BlockDiffType.REPLACE_BLOCK}
)


@dataclass(frozen=True, slots=True)
class TransformStatistics:
    nodes_modified: int = 0
    text_changes: int = 0
    structural_changes: int = 0


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Outcome of one transform call.

    Attributes:
        success: False when the transform failed as a whole
        new_document: Edited tree on success; the original tree on failure
        operations: Operations computed for the edit (empty on failure)
        errors: Human-readable failure messages
        statistics: Operation counts
        warnings: Operations that were skipped, and why

    """

    success: bool
    new_document: Any
    operations: tuple[MarkdownDiffOperation, ...] = ()
    errors: tuple[str, ...] = ()
    statistics: TransformStatistics = field(default_factory=TransformStatistics)
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TransformRequest:
    """One item of a batch transform."""

    original_markdown: str
    modified_markdown: str
    original_tree: Any
    options: TransformOptions | Mapping[str, Any] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransformRequest:
        """Build a request from snake_case or camelCase keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        return cls(
            original_markdown=pick("original_markdown", "originalMarkdown"),
            modified_markdown=pick("modified_markdown", "modifiedMarkdown"),
            original_tree=pick("original_tree", "originalTree", "originalProseMirrorDoc"),
            options=pick("options"),
        )


def calculate_statistics(operations: Sequence[MarkdownDiffOperation]) -> TransformStatistics:
    """Count operations: node operations are structural, replaces are text."""
    structural = sum(1 for op in operations if op.is_structural)
    text = sum(1 for op in operations if op.type == OperationType.REPLACE)
    return TransformStatistics(nodes_modified=structural, text_changes=text, structural_changes=structural)


def validate_document_tree(candidate: Any) -> bool:
    """True when ``candidate`` is a mapping with type "doc" and a content list."""
    return (
        isinstance(candidate, Mapping)
        and candidate.get("type") == "doc"
        and isinstance(candidate.get("content"), list)
    )


def _require_document(tree: Any) -> None:
    if not isinstance(tree, Mapping) or tree.get("type") != "doc":
        raise DocumentValidationError("document must be a 'doc' node", field="original_tree")
    if not isinstance(tree.get("content"), list):
        raise DocumentValidationError("document must have a content list", field="original_tree")


def _split_structural(
    block_diff: list[BlockDiffOperation],
) -> tuple[list[BlockDiffOperation], list[str]]:
    kept: list[BlockDiffOperation] = []
    dropped: list[str] = []
    for diff in block_diff:
        if diff.type in _STRUCTURAL_BLOCK_OPERATIONS:
            dropped.append(f"{diff.type} at block {diff.position} ignored (structural changes disabled)")
        else:
            kept.append(diff)
    return kept, dropped


def transform_sync(
    original_markdown: str,
    modified_markdown: str,
    original_tree: Any,
    options: TransformOptions | Mapping[str, Any] | None = None,
) -> TransformResult:
    """Reconcile a Markdown edit into a copy of ``original_tree``.

    Never raises: any failure yields ``success=False`` with the original
    tree, no operations, and the error message.

    Args:
        original_markdown: Markdown the tree corresponds to
        modified_markdown: Edited Markdown
        original_tree: Document tree for ``original_markdown``
        options: TransformOptions, a mapping of option values, or None for
            the context default

    Returns:
        TransformResult
    """
    try:
        opts = resolve_transform_options(options)
        _require_document(original_tree)
        if opts.granularity != "block":
            logger.debug("Granularity %r is diffed at block level", opts.granularity)

        original_blocks = content_blocks(parse_to_blocks(original_markdown))
        modified_blocks = content_blocks(parse_to_blocks(modified_markdown))
        analysis = analyze_document(original_tree, top_level_only=True)

        block_diff = compute_block_diff(original_blocks, modified_blocks)
        warnings: list[str] = []
        if not opts.handle_structural_changes:
            block_diff, dropped = _split_structural(block_diff)
            warnings.extend(dropped)

        block_mapping = None
        if len(original_blocks) != len(analysis.block_structure):
            lookup = "aligned by content" if opts.align_by_content else "looked up by index"
            warnings.append(
                f"{len(original_blocks)} markdown blocks vs {len(analysis.block_structure)} tree blocks; "
                f"tree blocks {lookup}"
            )
            if opts.align_by_content:
                block_mapping = build_block_mapping(original_blocks, original_tree)

        mapping = map_block_diff(
            block_diff,
            analysis,
            original_markdown,
            modified_markdown,
            block_mapping=block_mapping,
        )
        warnings.extend(mapping.dropped)
        operations = list(mapping.operations)
        report = apply_operations(
            original_tree, operations, preserve_formatting=opts.preserve_formatting
        )
        warnings.extend(
            f"{outcome.operation.type} at {list(outcome.operation.prosemirror_path)}: {outcome.reason}"
            for outcome in report.skipped
        )
        logger.debug(
            "Transform produced %d operations from %d block changes", len(operations), len(block_diff)
        )

        return TransformResult(
            success=True,
            new_document=report.document,
            operations=tuple(operations),
            statistics=calculate_statistics(operations),
            warnings=tuple(warnings),
        )
    except Exception as exc:
        logger.debug("Transform failed: %s", exc)
        return TransformResult(success=False, new_document=original_tree, errors=(str(exc) or repr(exc),))


async def transform(
    original_markdown: str,
    modified_markdown: str,
    original_tree: Any,
    options: TransformOptions | Mapping[str, Any] | None = None,
) -> TransformResult:
    """Coroutine form of :func:`transform_sync`."""
    return transform_sync(original_markdown, modified_markdown, original_tree, options)


async def transform_document(
    original_markdown: str,
    modified_markdown: str,
    original_tree: Any,
    options: TransformOptions | Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Transform and return only the new tree.

    Raises:
        TransformError: The transform failed; carries its error messages
    """
    result = await transform(original_markdown, modified_markdown, original_tree, options)
    if not result.success:
        raise TransformError(result.errors)
    return result.new_document


async def transform_with_validation(
    original_markdown: str,
    modified_markdown: str,
    original_tree: Any,
    options: TransformOptions | Mapping[str, Any] | None = None,
) -> TransformResult:
    """Validate inputs, then transform.

    Raises:
        DocumentValidationError: Markdown is not a non-empty string, or the
            tree is not a doc node with a content list
    """
    if not isinstance(original_markdown, str) or not original_markdown:
        raise DocumentValidationError("must be a non-empty string", field="original_markdown")
    if not isinstance(modified_markdown, str) or not modified_markdown:
        raise DocumentValidationError("must be a non-empty string", field="modified_markdown")
    _require_document(original_tree)
    return await transform(original_markdown, modified_markdown, original_tree, options)


async def batch_transform(
    requests: Sequence[TransformRequest | Mapping[str, Any]],
) -> list[TransformResult]:
    """Run independent transforms concurrently.

    Each request runs in a worker thread. Results keep the request order,
    and a failing request only affects its own result.

    Args:
        requests: TransformRequest objects or mappings with the same keys

    Returns:
        One TransformResult per request
    """
    normalized = [
        request if isinstance(request, TransformRequest) else TransformRequest.from_mapping(request)
        for request in requests
    ]
    outcomes = await asyncio.gather(
        *(
            asyncio.to_thread(
                transform_sync,
                request.original_markdown,
                request.modified_markdown,
                request.original_tree,
                request.options,
            )
            for request in normalized
        ),
        return_exceptions=True,
    )

    results: list[TransformResult] = []
    for request, outcome in zip(normalized, outcomes):
        if isinstance(outcome, BaseException):
            tree = request.original_tree if request.original_tree is not None else create_empty_document()
            results.append(TransformResult(success=False, new_document=tree, errors=(str(outcome) or "Unknown error",)))
        else:
            results.append(outcome)
    return results


def get_supported_node_types() -> list[str]:
    return list(SUPPORTED_NODE_TYPES)


def get_supported_mark_types() -> list[str]:
    return list(SUPPORTED_MARK_TYPES)


def get_version() -> str:
    return VERSION


__all__ = [
    "DocumentTree",
    "TransformRequest",
    "TransformResult",
    "TransformStatistics",
    "batch_transform",
    "calculate_statistics",
    "create_empty_document",
    "get_supported_mark_types",
    "get_supported_node_types",
    "get_version",
    "transform",
    "transform_document",
    "transform_sync",
    "transform_with_validation",
    "validate_document_tree",
]
