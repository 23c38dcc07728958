"""Tests for applying tree-edit operations."""

import copy

from hypothesis import given, settings
from hypothesis import strategies as st

from mdsplice.applier import (
    apply_operations,
    apply_operations_to_document,
    build_block_content,
    sort_operations,
)
from mdsplice.mapper import MarkdownDiffOperation, OperationType
from mdsplice.nodes import block_node, text_node


def _doc(*texts: str) -> dict:
    return {"type": "doc", "content": [block_node("paragraph", [text_node(t)]) for t in texts]}


def _texts(tree: dict) -> list[str]:
    return ["".join(child.get("text", "") for child in node.get("content", [])) for node in tree["content"]]


def _insert(index: int, content: str, node_type: str = "paragraph", attrs: dict | None = None) -> MarkdownDiffOperation:
    return MarkdownDiffOperation(
        OperationType.INSERT_NODE, 0, (index,), content=content, node_type=node_type, node_attrs=attrs
    )


def _delete(*path: int) -> MarkdownDiffOperation:
    return MarkdownDiffOperation(OperationType.DELETE_NODE, 0, tuple(path))


def _replace(path: tuple[int, ...], content: str) -> MarkdownDiffOperation:
    return MarkdownDiffOperation(OperationType.REPLACE, 0, path, content=content)


# =============================================================================
# Ordering
# =============================================================================


class TestSortOperations:
    """Application order keeps pending paths valid."""

    def test_deeper_first(self) -> None:
        shallow = _delete(0)
        deep = _delete(0, 1)
        assert sort_operations([shallow, deep]) == [deep, shallow]

    def test_later_siblings_first(self) -> None:
        ops = [_delete(0), _delete(2), _delete(1)]
        assert [op.prosemirror_path for op in sort_operations(ops)] == [(2,), (1,), (0,)]

    def test_compares_from_last_component(self) -> None:
        ops = [_delete(1, 0), _delete(0, 1)]
        assert [op.prosemirror_path for op in sort_operations(ops)] == [(0, 1), (1, 0)]

    def test_delete_before_insert_at_same_path(self) -> None:
        insert = _insert(0, "new")
        delete = _delete(0)
        assert sort_operations([insert, delete]) == [delete, insert]

    def test_inserts_at_same_index_reverse_emission(self) -> None:
        first = _insert(1, "B")
        second = _insert(1, "C")
        assert sort_operations([first, second]) == [second, first]


# =============================================================================
# Operation semantics
# =============================================================================


class TestApplyOperations:
    """Each operation kind, and the copy guarantee."""

    def test_original_untouched(self) -> None:
        tree = _doc("a", "b")
        snapshot = copy.deepcopy(tree)
        apply_operations(tree, [_delete(0), _replace((1,), "x"), _insert(0, "y")])
        assert tree == snapshot

    def test_insert_appends_past_end(self) -> None:
        result = apply_operations_to_document(_doc("A"), [_insert(1, "B"), _insert(1, "C")])
        assert _texts(result) == ["A", "B", "C"]

    def test_insert_heading_strips_marker(self) -> None:
        result = apply_operations_to_document(_doc("A"), [_insert(1, "## New", "heading", {"level": 2})])
        assert result["content"][1] == {
            "type": "heading",
            "attrs": {"level": 2},
            "content": [{"type": "text", "text": "New"}],
        }

    def test_insert_horizontal_rule_has_no_content(self) -> None:
        result = apply_operations_to_document(_doc("A"), [_insert(1, "---", "horizontal_rule")])
        assert result["content"][1] == {"type": "horizontal_rule"}

    def test_insert_defaults_to_paragraph(self) -> None:
        op = MarkdownDiffOperation(OperationType.INSERT_NODE, 0, (0,), content="text")
        result = apply_operations_to_document(_doc(), [op])
        assert result["content"][0]["type"] == "paragraph"

    def test_delete(self) -> None:
        result = apply_operations_to_document(_doc("a", "b", "c"), [_delete(0), _delete(2)])
        assert _texts(result) == ["b"]

    def test_replace_keeps_node_and_attrs(self) -> None:
        tree = {"type": "doc", "content": [block_node("heading", [text_node("Old")], {"level": 3, "id": "x"})]}
        result = apply_operations_to_document(tree, [_replace((0,), "### **New**")])
        heading = result["content"][0]
        assert heading["attrs"] == {"level": 3, "id": "x"}
        assert heading["content"] == [{"type": "text", "text": "New", "marks": [{"type": "strong"}]}]

    def test_replace_without_formatting(self) -> None:
        report = apply_operations(_doc("Old"), [_replace((0,), "**New**")], preserve_formatting=False)
        assert report.document["content"][0]["content"] == [{"type": "text", "text": "**New**"}]

    def test_modify_merges_attrs(self) -> None:
        tree = {"type": "doc", "content": [block_node("heading", [text_node("T")], {"level": 1, "id": "t"})]}
        op = MarkdownDiffOperation(OperationType.MODIFY_NODE, 0, (0,), node_attrs={"level": 2})
        result = apply_operations_to_document(tree, [op])
        assert result["content"][0]["attrs"] == {"level": 2, "id": "t"}

    def test_delete_then_insert_replaces_block(self) -> None:
        ops = [_delete(0), _insert(0, "# Title", "heading", {"level": 1})]
        result = apply_operations_to_document(_doc("Title", "after"), ops)
        assert [node["type"] for node in result["content"]] == ["heading", "paragraph"]
        assert _texts(result) == ["Title", "after"]


class TestSkippedOperations:
    """Unresolvable operations are reported, not raised."""

    def test_out_of_range_delete(self) -> None:
        report = apply_operations(_doc("a"), [_delete(5)])
        assert report.applied == ()
        assert len(report.skipped) == 1
        assert "out of range" in (report.skipped[0].reason or "")
        assert report.document == _doc("a")

    def test_unresolvable_replace(self) -> None:
        report = apply_operations(_doc("a"), [_replace((3, 0), "x")])
        assert report.skipped[0].reason == "Invalid path: [3.0]"

    def test_replace_on_leaf_without_content(self) -> None:
        tree = {"type": "doc", "content": [{"type": "horizontal_rule"}]}
        report = apply_operations(tree, [_replace((0,), "x")])
        assert not report.outcomes[0].applied

    def test_modify_needs_mapping(self) -> None:
        op = MarkdownDiffOperation(OperationType.MODIFY_NODE, 0, (0,))
        report = apply_operations(_doc("a"), [op])
        assert report.skipped[0].reason == "modify_node needs a mapping of attrs"

    def test_root_delete_refused(self) -> None:
        report = apply_operations(_doc("a"), [MarkdownDiffOperation(OperationType.DELETE_NODE, 0, ())])
        assert not report.outcomes[0].applied

    def test_remaining_operations_still_apply(self) -> None:
        report = apply_operations(_doc("a", "b"), [_delete(9), _replace((1,), "B")])
        assert len(report.applied) == 1
        assert _texts(report.document) == ["a", "B"]


class TestApplierProperties:
    """Arbitrary operations never raise and never touch the input."""

    @given(
        st.lists(st.text(alphabet="ab", min_size=1, max_size=3), max_size=6),
        st.lists(
            st.tuples(
                st.sampled_from(list(OperationType)),
                st.lists(st.integers(min_value=-2, max_value=8), max_size=3),
            ),
            max_size=8,
        ),
    )
    @settings(max_examples=200)
    def test_path_safety(self, texts: list[str], raw_ops: list) -> None:
        tree = _doc(*texts)
        snapshot = copy.deepcopy(tree)
        ops = [
            MarkdownDiffOperation(op_type, 0, tuple(path), content="x", node_attrs={"k": 1})
            for op_type, path in raw_ops
        ]
        report = apply_operations(tree, ops)
        assert tree == snapshot
        assert len(report.outcomes) == len(ops)
        assert report.document["type"] == "doc"


class TestBuildBlockContent:
    """Block syntax stripping per node type."""

    def test_code_block_literal(self) -> None:
        nodes = build_block_content("code_block", "```py\nx = **1**\n```")
        assert nodes == [{"type": "text", "text": "x = **1**"}]

    def test_blockquote_wrapped(self) -> None:
        nodes = build_block_content("blockquote", "> quoted *text*")
        assert nodes == [
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "quoted "},
                    {"type": "text", "text": "text", "marks": [{"type": "em"}]},
                ],
            }
        ]

    def test_list_item(self) -> None:
        nodes = build_block_content("list_item", "- item")
        assert nodes == [{"type": "paragraph", "content": [{"type": "text", "text": "item"}]}]

    def test_bullet_list_one_item_per_line(self) -> None:
        nodes = build_block_content("bullet_list", "- a\n- b")
        assert [node["type"] for node in nodes] == ["list_item", "list_item"]
        assert nodes[1]["content"][0]["content"] == [{"type": "text", "text": "b"}]

    def test_empty_paragraph(self) -> None:
        assert build_block_content("paragraph", "") == []
