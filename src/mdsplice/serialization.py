"""JSON round-trip for operations and transform results.

Converts :class:`MarkdownDiffOperation` and :class:`TransformResult` to and
from JSON-compatible dicts using the camelCase keys editors exchange
(``markdownPosition``, ``prosemirrorPath``, ``newDocument`` ...). Absent
optional fields are omitted rather than written as null.

All output is deterministic (sorted keys).

Example:
    from mdsplice import transform_sync
    from mdsplice.serialization import operations_to_json, operations_from_json

    result = transform_sync(old_md, new_md, tree)
    payload = operations_to_json(result.operations)
    assert operations_from_json(payload) == list(result.operations)

Thread Safety:
    All functions are pure and safe to call from any thread.

"""

import json
from collections.abc import Iterable, Mapping
from typing import Any

from mdsplice.mapper import MarkdownDiffOperation, OperationType
from mdsplice.transformer import TransformResult, TransformStatistics

# Optional operation fields: attribute name -> JSON key
_OPTIONAL_FIELDS = {
    "length": "length",
    "content": "content",
    "original_content": "originalContent",
    "node_type": "nodeType",
    "node_attrs": "nodeAttrs",
}


def operation_to_dict(operation: MarkdownDiffOperation) -> dict[str, Any]:
    """Convert an operation to a JSON-compatible dict."""
    result: dict[str, Any] = {
        "type": str(operation.type),
        "markdownPosition": operation.markdown_position,
        "prosemirrorPath": list(operation.prosemirror_path),
    }
    for attr, key in _OPTIONAL_FIELDS.items():
        value = getattr(operation, attr)
        if value is not None:
            result[key] = dict(value) if attr == "node_attrs" else value
    return result


def operation_from_dict(data: Mapping[str, Any]) -> MarkdownDiffOperation:
    """Reconstruct an operation from a dict produced by :func:`operation_to_dict`.

    Raises:
        ValueError: If ``type`` is missing or not a known operation type.

    """
    type_name = data.get("type")
    if type_name is None:
        msg = "Missing 'type' field in serialized operation"
        raise ValueError(msg)
    try:
        op_type = OperationType(type_name)
    except ValueError:
        msg = f"Unknown operation type: {type_name!r}"
        raise ValueError(msg) from None

    kwargs: dict[str, Any] = {attr: data[key] for attr, key in _OPTIONAL_FIELDS.items() if key in data}
    return MarkdownDiffOperation(
        type=op_type,
        markdown_position=int(data.get("markdownPosition", 0)),
        prosemirror_path=tuple(data.get("prosemirrorPath", ())),
        **kwargs,
    )


def operations_to_json(operations: Iterable[MarkdownDiffOperation], *, indent: int | None = None) -> str:
    """Serialize operations to a JSON array string."""
    return json.dumps([operation_to_dict(op) for op in operations], sort_keys=True, indent=indent)


def operations_from_json(data: str) -> list[MarkdownDiffOperation]:
    """Deserialize operations from a JSON array string.

    Raises:
        ValueError: If the JSON is not an array of operation objects.

    """
    raw = json.loads(data)
    if not isinstance(raw, list):
        msg = f"Expected a JSON array of operations, got {type(raw).__name__}"
        raise ValueError(msg)
    return [operation_from_dict(item) for item in raw]


def result_to_dict(result: TransformResult) -> dict[str, Any]:
    """Convert a transform result to a JSON-compatible dict."""
    out: dict[str, Any] = {
        "success": result.success,
        "newDocument": result.new_document,
        "operations": [operation_to_dict(op) for op in result.operations],
        "errors": list(result.errors),
        "statistics": {
            "nodesModified": result.statistics.nodes_modified,
            "textChanges": result.statistics.text_changes,
            "structuralChanges": result.statistics.structural_changes,
        },
    }
    if result.warnings:
        out["warnings"] = list(result.warnings)
    return out


def result_from_dict(data: Mapping[str, Any]) -> TransformResult:
    """Reconstruct a transform result from a dict produced by :func:`result_to_dict`."""
    stats = data.get("statistics") or {}
    return TransformResult(
        success=bool(data.get("success", False)),
        new_document=data.get("newDocument"),
        operations=tuple(operation_from_dict(op) for op in data.get("operations", ())),
        errors=tuple(data.get("errors", ())),
        statistics=TransformStatistics(
            nodes_modified=stats.get("nodesModified", 0),
            text_changes=stats.get("textChanges", 0),
            structural_changes=stats.get("structuralChanges", 0),
        ),
        warnings=tuple(data.get("warnings", ())),
    )


def result_to_json(result: TransformResult, *, indent: int | None = None) -> str:
    """Serialize a transform result to a JSON string."""
    return json.dumps(result_to_dict(result), sort_keys=True, indent=indent)


def result_from_json(data: str) -> TransformResult:
    """Deserialize a transform result from a JSON string.

    Raises:
        ValueError: If the JSON is not an object.

    """
    raw = json.loads(data)
    if not isinstance(raw, dict):
        msg = f"Expected a JSON object, got {type(raw).__name__}"
        raise ValueError(msg)
    return result_from_dict(raw)


__all__ = [
    "operation_from_dict",
    "operation_to_dict",
    "operations_from_json",
    "operations_to_json",
    "result_from_dict",
    "result_from_json",
    "result_to_dict",
    "result_to_json",
]
