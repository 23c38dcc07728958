"""Tests for the transform entry points.

Covers the documented scenarios, option handling, failure results and the
async wrappers (run with asyncio.run).
"""

import asyncio
import copy

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mdsplice import (
    DocumentValidationError,
    OperationType,
    TransformError,
    TransformOptions,
    TransformRequest,
    batch_transform,
    create_empty_document,
    get_supported_mark_types,
    get_supported_node_types,
    get_version,
    parse,
    transform,
    transform_document,
    transform_options_context,
    transform_sync,
    transform_with_validation,
    validate_document_tree,
)
from mdsplice.nodes import block_node, text_node


def _hello_world() -> dict:
    return {
        "type": "doc",
        "content": [
            block_node("heading", [text_node("Hello")], {"level": 1}),
            block_node("paragraph", [text_node("World")]),
        ],
    }


def _single(text: str, node_type: str = "paragraph") -> dict:
    return {"type": "doc", "content": [block_node(node_type, [text_node(text)])]}


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    """End-to-end behavior on small documents."""

    def test_append_heading(self) -> None:
        result = transform_sync("# Hello\n\nWorld", "# Hello\n\nWorld\n\n## New", _hello_world())
        assert result.success
        assert len(result.operations) == 1
        op = result.operations[0]
        assert op.type == OperationType.INSERT_NODE
        assert op.node_type == "heading"
        assert "New" in (op.content or "")
        assert op.prosemirror_path == (2,)
        assert result.new_document["content"][2] == {
            "type": "heading",
            "attrs": {"level": 2},
            "content": [{"type": "text", "text": "New"}],
        }

    def test_edit_paragraph_text(self) -> None:
        result = transform_sync("Old text", "New text", _single("Old text"))
        assert result.success
        assert [op.type for op in result.operations] == [OperationType.REPLACE]
        assert result.operations[0].original_content == "Old text"
        assert result.operations[0].content == "New text"
        assert result.statistics.text_changes == 1
        assert result.statistics.structural_changes == 0
        assert result.new_document == _single("New text")

    def test_paragraph_to_heading(self) -> None:
        result = transform_sync("Title", "# Title", _single("Title"))
        assert result.success
        assert [op.type for op in result.operations] == [OperationType.DELETE_NODE, OperationType.INSERT_NODE]
        assert result.statistics.structural_changes == 2
        assert result.statistics.nodes_modified == 2
        assert result.new_document["content"] == [
            {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": "Title"}]}
        ]

    def test_missing_content_is_invalid(self) -> None:
        assert validate_document_tree({"type": "doc"}) is False
        assert validate_document_tree({"type": "doc", "content": []}) is True
        assert validate_document_tree({"type": "paragraph", "content": []}) is False
        assert validate_document_tree(None) is False

    def test_batch_isolates_failures(self) -> None:
        requests = [
            TransformRequest("A", "B", _single("A")),
            {"originalMarkdown": "A", "modifiedMarkdown": "B", "originalProseMirrorDoc": {"type": "bogus"}},
            {"original_markdown": "X", "modified_markdown": "Y", "original_tree": _single("X")},
        ]
        results = asyncio.run(batch_transform(requests))
        assert len(results) == 3
        assert [r.success for r in results] == [True, False, True]
        assert results[1].errors
        assert results[2].new_document == _single("Y")

    def test_edit_matches_fresh_parse(self) -> None:
        old = "# Hello\n\nWorld"
        new = "# Hello\n\nWorld **bold** and *em*"
        result = transform_sync(old, new, parse(old))
        assert result.new_document == parse(new)

    def test_loose_list_before_edited_paragraph(self) -> None:
        old = "- a\n\n- b\n\nP1\n\nP2"
        new = "- a\n\n- b\n\nP1 edited\n\nP2"
        result = transform_sync(old, new, parse(old))
        assert result.success
        assert [(op.type, op.prosemirror_path) for op in result.operations] == [(OperationType.REPLACE, (1,))]
        assert result.new_document == parse(new)
        assert [node["type"] for node in result.new_document["content"]] == [
            "bullet_list",
            "paragraph",
            "paragraph",
        ]

    def test_paragraph_after_code_fence(self) -> None:
        old = "```\nx\n```\n\nPara"
        new = "```\nx\n```\n\nPara2"
        result = transform_sync(old, new, parse(old))
        assert result.success
        assert result.new_document == parse(new)
        assert "tree blocks aligned by content" in result.warnings[0]

    def test_unmatched_code_edit_is_reported(self) -> None:
        old = "```\nx\n```\n\nPara"
        result = transform_sync(old, "```\ny\n```\n\nPara", parse(old))
        assert result.success
        assert result.operations == ()
        assert result.new_document == parse(old)
        assert "modify_block at block 1 dropped: no matching tree block" in result.warnings

    def test_heading_level_change(self) -> None:
        result = transform_sync("# Title", "## Title", parse("# Title"))
        assert [op.type for op in result.operations] == [OperationType.REPLACE, OperationType.MODIFY_NODE]
        assert result.new_document == parse("## Title")
        assert result.new_document["content"][0]["attrs"] == {"level": 2}
        assert result.statistics.text_changes == 1
        assert result.statistics.structural_changes == 1


class TestProperties:
    """Invariants over generated Markdown."""

    @given(st.lists(st.sampled_from(["# Head", "Para text", "Other *em*", "## Sub **b**"]), min_size=1, max_size=8))
    @settings(max_examples=100)
    def test_identity_edit_is_noop(self, blocks: list[str]) -> None:
        markdown = "\n\n".join(blocks)
        tree = parse(markdown)
        result = transform_sync(markdown, markdown, tree)
        assert result.success
        assert result.operations == ()
        assert result.new_document == tree

    @given(st.lists(st.sampled_from(["# Head", "Para text", "Other"]), min_size=1, max_size=6), st.text(alphabet="xyz ", max_size=10))
    @settings(max_examples=100)
    def test_input_tree_never_mutated(self, blocks: list[str], suffix: str) -> None:
        old = "\n\n".join(blocks)
        tree = parse(old)
        snapshot = copy.deepcopy(tree)
        transform_sync(old, old + "\n\n" + suffix, tree)
        assert tree == snapshot


# =============================================================================
# Options
# =============================================================================


class TestOptions:
    """Per-call and context options."""

    def test_preserve_formatting_off(self) -> None:
        result = transform_sync("Old", "**New**", _single("Old"), TransformOptions(preserve_formatting=False))
        assert result.new_document == _single("**New**")

    def test_options_from_mapping(self) -> None:
        result = transform_sync("Old", "**New**", _single("Old"), {"preserveFormatting": False})
        assert result.new_document == _single("**New**")

    def test_context_default(self) -> None:
        with transform_options_context(TransformOptions(preserve_formatting=False)):
            result = transform_sync("Old", "**New**", _single("Old"))
        assert result.new_document == _single("**New**")
        after = transform_sync("Old", "**New**", _single("Old"))
        assert after.new_document["content"][0]["content"][0]["marks"] == [{"type": "strong"}]

    def test_structural_changes_disabled(self) -> None:
        result = transform_sync(
            "# Hello\n\nWorld",
            "# Hello\n\nEarth\n\n## New",
            _hello_world(),
            TransformOptions(handle_structural_changes=False),
        )
        assert result.success
        assert [op.type for op in result.operations] == [OperationType.REPLACE]
        assert len(result.warnings) == 1
        assert "insert_block" in result.warnings[0]
        assert len(result.new_document["content"]) == 2

    def test_align_by_content(self) -> None:
        tree = {
            "type": "doc",
            "content": [
                block_node("heading", [text_node("Intro")], {"level": 1}),
                block_node("paragraph", [text_node("Extra")]),
                block_node("paragraph", [text_node("Body")]),
            ],
        }
        old, new = "# Intro\n\nBody", "# Intro\n\nBody changed"

        aligned = transform_sync(old, new, tree)
        assert aligned.operations[0].prosemirror_path == (2,)
        assert aligned.new_document["content"][1]["content"][0]["text"] == "Extra"
        assert aligned.new_document["content"][2]["content"][0]["text"] == "Body changed"
        assert aligned.warnings == ("2 markdown blocks vs 3 tree blocks; tree blocks aligned by content",)

        positional = transform_sync(old, new, tree, TransformOptions(align_by_content=False))
        assert positional.operations[0].prosemirror_path == (1,)
        assert positional.warnings == ("2 markdown blocks vs 3 tree blocks; tree blocks looked up by index",)

    @pytest.mark.parametrize("granularity", ["line", "character"])
    def test_reserved_granularities_behave_like_block(self, granularity: str) -> None:
        block = transform_sync("Old text", "New text", _single("Old text"))
        other = transform_sync("Old text", "New text", _single("Old text"), {"granularity": granularity})
        assert other.operations == block.operations

    def test_unknown_granularity_fails(self) -> None:
        result = transform_sync("a", "b", _single("a"), {"granularity": "word"})
        assert not result.success
        assert "granularity" in result.errors[0]

    def test_delete_without_tree_block_is_dropped(self) -> None:
        """A Markdown block with no counterpart in the tree is not an error."""
        result = transform_sync("A\n\nB", "A", _single("A"))
        assert result.success
        assert result.operations == ()
        assert result.new_document == _single("A")
        assert "delete_block at block 1 dropped: no matching tree block" in result.warnings


# =============================================================================
# Failures and async wrappers
# =============================================================================


class TestFailures:
    """Failures become results; raising wrappers raise."""

    def test_invalid_tree_result(self) -> None:
        tree = {"type": "paragraph"}
        result = transform_sync("a", "b", tree)
        assert not result.success
        assert result.new_document is tree
        assert result.operations == ()
        assert result.errors
        assert result.statistics.nodes_modified == 0

    def test_transform_coroutine(self) -> None:
        result = asyncio.run(transform("Old text", "New text", _single("Old text")))
        assert result.success

    def test_transform_document_returns_tree(self) -> None:
        tree = asyncio.run(transform_document("Old", "New", _single("Old")))
        assert tree == _single("New")

    def test_transform_document_raises(self) -> None:
        with pytest.raises(TransformError) as exc_info:
            asyncio.run(transform_document("a", "b", {"type": "doc"}))
        assert exc_info.value.errors
        assert str(exc_info.value).startswith("Transform failed: ")

    def test_validation_rejects_empty_markdown(self) -> None:
        with pytest.raises(DocumentValidationError) as exc_info:
            asyncio.run(transform_with_validation("", "b", _single("a")))
        assert exc_info.value.field == "original_markdown"

    def test_validation_rejects_non_string(self) -> None:
        with pytest.raises(DocumentValidationError):
            asyncio.run(transform_with_validation("a", None, _single("a")))  # type: ignore[arg-type]

    def test_validation_rejects_missing_content(self) -> None:
        with pytest.raises(DocumentValidationError):
            asyncio.run(transform_with_validation("a", "b", {"type": "doc"}))

    def test_validation_passes_through(self) -> None:
        result = asyncio.run(transform_with_validation("Old", "New", _single("Old")))
        assert result.success


class TestInfo:
    def test_version(self) -> None:
        assert get_version() == "1.0.0"

    def test_supported_types(self) -> None:
        assert "paragraph" in get_supported_node_types()
        assert get_supported_mark_types() == ["strong", "em", "code", "link"]

    def test_empty_document(self) -> None:
        assert create_empty_document() == {"type": "doc", "content": []}
        assert create_empty_document() is not create_empty_document()
