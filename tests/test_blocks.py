"""Tests for the line-oriented block parser."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mdsplice.blocks import Block, BlockType, content_blocks, identify_line, parse_to_blocks


# =============================================================================
# Line classification
# =============================================================================


class TestIdentifyLine:
    """Per-line classification and precedence."""

    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("# Title", BlockType.HEADING),
            ("###### Deep", BlockType.HEADING),
            ("- item", BlockType.LIST_ITEM),
            ("  * nested", BlockType.LIST_ITEM),
            ("+ plus", BlockType.LIST_ITEM),
            ("12. twelfth", BlockType.LIST_ITEM),
            ("```python", BlockType.CODE_BLOCK),
            ("> quoted", BlockType.BLOCKQUOTE),
            ("", BlockType.EMPTY),
            ("   ", BlockType.EMPTY),
            ("---", BlockType.HORIZONTAL_RULE),
            ("***", BlockType.HORIZONTAL_RULE),
            ("plain text", BlockType.PARAGRAPH),
        ],
    )
    def test_classification(self, line: str, expected: BlockType) -> None:
        assert identify_line(line).type == expected

    def test_heading_needs_space_and_text(self) -> None:
        assert identify_line("#nospace").type == BlockType.PARAGRAPH
        assert identify_line("####### seven").type == BlockType.PARAGRAPH

    def test_list_marker_wins_over_horizontal_rule(self) -> None:
        """'- - -' is a list item, not a rule: list patterns are checked first."""
        assert identify_line("- - -").type == BlockType.LIST_ITEM

    def test_heading_attrs(self) -> None:
        info = identify_line("### Three")
        assert info.level == 3
        assert info.attrs == {"level": 3}
        assert info.starts_new is True

    def test_list_attrs(self) -> None:
        assert identify_line("- a").attrs == {"listType": "bullet"}
        assert identify_line("3. c").attrs == {"listType": "ordered", "order": 3}

    def test_code_fence_language(self) -> None:
        assert identify_line("```js").attrs == {"language": "js"}
        assert identify_line("```").attrs == {}


# =============================================================================
# Block grouping
# =============================================================================


class TestParseToBlocks:
    """Grouping lines into blocks."""

    def test_heading_blank_paragraph(self) -> None:
        blocks = parse_to_blocks("# Title\n\nSome text")
        assert [b.type for b in blocks] == ["heading", "empty", "paragraph"]
        assert blocks[0].level == 1
        assert blocks[2].start_line == 2
        assert blocks[2].end_line == 2

    def test_paragraph_lines_merge(self) -> None:
        blocks = parse_to_blocks("one\ntwo\nthree")
        assert len(blocks) == 1
        assert blocks[0].content == ("one", "two", "three")
        assert blocks[0].text == "one\ntwo\nthree"

    def test_mixed_list_kinds_stay_one_block(self) -> None:
        blocks = parse_to_blocks("- a\n1. b\n* c")
        assert len(blocks) == 1
        assert blocks[0].type == "list_item"
        assert blocks[0].attrs == {"listType": "bullet"}

    def test_consecutive_headings_split(self) -> None:
        blocks = parse_to_blocks("# A\n## B")
        assert [b.level for b in blocks] == [1, 2]

    def test_each_blank_line_is_its_own_block(self) -> None:
        blocks = parse_to_blocks("a\n\n\nb")
        assert [b.type for b in blocks] == ["paragraph", "empty", "empty", "paragraph"]

    def test_fence_lines_are_classified_independently(self) -> None:
        blocks = parse_to_blocks("```py\ncode\n```")
        assert [b.type for b in blocks] == ["code_block", "paragraph", "code_block"]
        assert blocks[0].attrs == {"language": "py"}

    def test_empty_input(self) -> None:
        blocks = parse_to_blocks("")
        assert blocks == [Block(type="empty", content=("",), start_line=0, end_line=0)]

    def test_content_blocks_drops_blank_lines(self) -> None:
        blocks = content_blocks(parse_to_blocks("# A\n\nB\n\n"))
        assert [b.type for b in blocks] == ["heading", "paragraph"]


class TestBlockTiling:
    """Blocks cover every source line exactly once, in order."""

    @given(st.lists(st.sampled_from(["# h", "- i", "1. o", "```", "> q", "", "---", "text"]), max_size=30))
    @settings(max_examples=200)
    def test_blocks_tile_lines(self, lines: list[str]) -> None:
        source = "\n".join(lines)
        blocks = parse_to_blocks(source)
        line_count = len(source.split("\n"))

        assert blocks[0].start_line == 0
        assert blocks[-1].end_line == line_count - 1
        for previous, current in zip(blocks, blocks[1:]):
            assert current.start_line == previous.end_line + 1
        rebuilt = [line for block in blocks for line in block.content]
        assert rebuilt == source.split("\n")

    @given(st.text(max_size=300))
    @settings(max_examples=200)
    def test_never_fails(self, source: str) -> None:
        blocks = parse_to_blocks(source)
        assert blocks
        assert all(b.end_line >= b.start_line for b in blocks)
