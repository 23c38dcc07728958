"""
mdsplice: Markdown edits as document tree operations

Reconciles an edit made to the Markdown form of a document back into the
structured document tree (ProseMirror JSON layout) it was rendered from.
Instead of re-parsing the whole document, the two Markdown versions are
diffed at block level and the differences become a small list of node
operations (insert, delete, replace text, modify attributes) applied to a
copy of the original tree. Nodes untouched by the edit keep their identity,
attributes and marks.

Quick Start:
    >>> from mdsplice import parse, transform_sync
    >>> tree = parse("# Hello\\n\\nWorld")
    >>> result = transform_sync("# Hello\\n\\nWorld", "# Hello\\n\\nWorld\\n\\n## New", tree)
    >>> [str(op.type) for op in result.operations]
    ['insert_node']

    >>> # Tree -> Markdown, with a converter for an editor-only node type
    >>> from mdsplice import serialize, create_custom_converter
    >>> md = serialize(tree, {"mention": create_custom_converter("@{label}")})

Scoped defaults:
    >>> from mdsplice import TransformOptions, transform_options_context
    >>> with transform_options_context(TransformOptions(preserve_formatting=False)):
    ...     result = transform_sync(old_md, new_md, tree)

Installation:
    pip install mdsplice             # markdown-it-py is the only dependency
"""

from mdsplice.analyzer import (
    DocumentAnalysis,
    NodeInfo,
    TextPosition,
    analyze_document,
    find_node_at_path,
)
from mdsplice.applier import ApplyOutcome, ApplyReport, apply_operations, apply_operations_to_document
from mdsplice.blocks import Block, BlockType, parse_to_blocks
from mdsplice.config import (
    SerializeOptions,
    TransformOptions,
    get_transform_options,
    reset_transform_options,
    set_transform_options,
    transform_options_context,
)
from mdsplice.differ import BlockDiffOperation, BlockDiffType, ContentChange, compute_block_diff
from mdsplice.errors import (
    DocumentValidationError,
    MdspliceError,
    PathResolutionError,
    SerializationError,
    TransformError,
)
from mdsplice.inline import parse_inline_markdown
from mdsplice.mapper import (
    MarkdownDiffOperation,
    OperationMapping,
    OperationType,
    map_block_diff,
    map_diff_to_tree,
)
from mdsplice.nodes import DocumentTree, Mark, TreeNode, create_empty_document
from mdsplice.parsing import SyntaxCheck, markdown_to_tree, parse, validate_markdown_syntax
from mdsplice.position_mapper import build_block_mapping
from mdsplice.serialization import operations_from_json, operations_to_json, result_to_dict, result_to_json
from mdsplice.serializer import (
    DEFAULT_CUSTOM_CONVERTERS,
    create_custom_converter,
    merge_custom_converters,
    placeholder_converter,
    serialize,
    tree_to_markdown,
)
from mdsplice.text import extract_text
from mdsplice.transformer import (
    TransformRequest,
    TransformResult,
    TransformStatistics,
    batch_transform,
    calculate_statistics,
    get_supported_mark_types,
    get_supported_node_types,
    get_version,
    transform,
    transform_document,
    transform_sync,
    transform_with_validation,
    validate_document_tree,
)

__version__ = "1.0.0"


__all__ = [  # noqa: RUF022 - grouped by category
    # Version
    "__version__",
    "get_version",
    # Core API
    "batch_transform",
    "transform",
    "transform_document",
    "transform_sync",
    "transform_with_validation",
    "validate_document_tree",
    # Results
    "TransformRequest",
    "TransformResult",
    "TransformStatistics",
    "calculate_statistics",
    # Pipeline stages
    "Block",
    "BlockType",
    "parse_to_blocks",
    "parse_inline_markdown",
    "DocumentAnalysis",
    "NodeInfo",
    "TextPosition",
    "analyze_document",
    "find_node_at_path",
    "build_block_mapping",
    "BlockDiffOperation",
    "BlockDiffType",
    "ContentChange",
    "compute_block_diff",
    "MarkdownDiffOperation",
    "OperationMapping",
    "OperationType",
    "map_block_diff",
    "map_diff_to_tree",
    "ApplyOutcome",
    "ApplyReport",
    "apply_operations",
    "apply_operations_to_document",
    # Tree
    "DocumentTree",
    "Mark",
    "TreeNode",
    "create_empty_document",
    "extract_text",
    "get_supported_mark_types",
    "get_supported_node_types",
    # Markdown boundary
    "SyntaxCheck",
    "markdown_to_tree",
    "parse",
    "validate_markdown_syntax",
    "DEFAULT_CUSTOM_CONVERTERS",
    "create_custom_converter",
    "merge_custom_converters",
    "placeholder_converter",
    "serialize",
    "tree_to_markdown",
    # Serialization
    "operations_from_json",
    "operations_to_json",
    "result_to_dict",
    "result_to_json",
    # Configuration
    "SerializeOptions",
    "TransformOptions",
    "get_transform_options",
    "reset_transform_options",
    "set_transform_options",
    "transform_options_context",
    # Errors
    "DocumentValidationError",
    "MdspliceError",
    "PathResolutionError",
    "SerializationError",
    "TransformError",
]
