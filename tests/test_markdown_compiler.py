"""
Markdown -> Notion block compilation.
"""

from conftest import make_block
from report_feedback.models import (
    Block,
    BulletedListItemBlock,
    HeadingBlock,
    ParagraphBlock,
)
from report_feedback.utils.markdown_compiler import markdown_to_blocks
from report_feedback.utils.markdown_renderer import block_to_markdown_line
from report_feedback.utils.rich_text import MAX_RICH_TEXT_SPANS, TRUNCATION_NOTE


def test_empty_and_whitespace_input():
    assert markdown_to_blocks("") == []
    assert markdown_to_blocks("  \n\t\n") == []


def test_heading_levels():
    blocks = markdown_to_blocks("# 一\n## 二\n### 三")
    assert [(type(b), b.level, b.plain_text) for b in blocks] == [
        (HeadingBlock, 1, "一"),
        (HeadingBlock, 2, "二"),
        (HeadingBlock, 3, "三"),
    ]


def test_heading_reads_back_as_same_text():
    blocks = markdown_to_blocks("### Title")
    assert len(blocks) == 1
    api = blocks[0].to_api()
    assert api["type"] == "heading_3"

    # Simulate Notion echoing the block back with plain_text filled in
    raw = make_block("h", "heading_3", blocks[0].plain_text)
    assert block_to_markdown_line(Block.from_api(raw)) == "### Title"


def test_four_hashes_is_a_paragraph():
    blocks = markdown_to_blocks("#### 深すぎる見出し")
    assert len(blocks) == 1
    assert isinstance(blocks[0], ParagraphBlock)
    assert blocks[0].plain_text == "#### 深すぎる見出し"


def test_paragraph_lines_merge_until_blank_line():
    blocks = markdown_to_blocks("一行目\n  二行目  \n\n次の段落")
    assert [b.plain_text for b in blocks] == ["一行目\n二行目", "次の段落"]
    assert all(isinstance(b, ParagraphBlock) for b in blocks)


def test_bold_bullet_with_nested_child():
    markdown = "- **重要** ポイント\n    - 補足説明"
    blocks = markdown_to_blocks(markdown)

    assert len(blocks) == 1
    item = blocks[0]
    assert isinstance(item, BulletedListItemBlock)
    assert item.rich_text[0].bold is True
    assert item.rich_text[0].content == "重要"
    assert len(item.children) == 1
    assert item.children[0].plain_text == "補足説明"

    api = item.to_api()
    assert api["bulleted_list_item"]["children"][0]["type"] == "bulleted_list_item"


def test_tab_indent_counts_as_four_spaces():
    blocks = markdown_to_blocks("- 親\n\t- 子")
    assert len(blocks) == 1
    assert [c.plain_text for c in blocks[0].children] == ["子"]


def test_siblings_attach_to_latest_parent():
    blocks = markdown_to_blocks("- A\n    - A1\n    - A2\n- B\n    - B1")
    assert [b.plain_text for b in blocks] == ["A", "B"]
    assert [c.plain_text for c in blocks[0].children] == ["A1", "A2"]
    assert [c.plain_text for c in blocks[1].children] == ["B1"]


def test_orphan_nested_item_becomes_top_level():
    blocks = markdown_to_blocks("        - 深い")
    assert len(blocks) == 1
    assert isinstance(blocks[0], BulletedListItemBlock)


def test_blank_line_ends_the_list():
    blocks = markdown_to_blocks("- 親\n\n    - 子")
    assert [b.plain_text for b in blocks] == ["親", "子"]
    assert blocks[0].children == []


def test_empty_bullet_closes_deeper_levels():
    blocks = markdown_to_blocks("- 親\n- \n    - 子")
    # "- " with no text truncates the stack to level 0, so the parent is gone
    assert [b.plain_text for b in blocks] == ["親", "子"]


def test_list_lines_never_merge_into_paragraphs():
    blocks = markdown_to_blocks("前置き\n- 項目\n後書き")
    assert [type(b) for b in blocks] == [ParagraphBlock, BulletedListItemBlock, ParagraphBlock]


def test_heading_interrupts_paragraph_and_list():
    blocks = markdown_to_blocks("段落\n- 項目\n## 見出し\n    - 子ではない")
    assert [type(b) for b in blocks] == [
        ParagraphBlock,
        BulletedListItemBlock,
        HeadingBlock,
        BulletedListItemBlock,
    ]


def test_unsupported_syntax_falls_back_to_paragraph():
    markdown = "1. 一つ目\n2. 二つ目\n```\ncode\n```"
    blocks = markdown_to_blocks(markdown)
    assert len(blocks) == 1
    assert isinstance(blocks[0], ParagraphBlock)
    assert blocks[0].plain_text == markdown


def test_crlf_is_normalized():
    blocks = markdown_to_blocks("## 見出し\r\n本文\r次の行")
    assert blocks[0].plain_text == "見出し"
    assert blocks[1].plain_text == "本文\n次の行"


def test_divider_line_is_kept_as_text():
    blocks = markdown_to_blocks("---")
    assert isinstance(blocks[0], ParagraphBlock)
    assert blocks[0].plain_text == "---"


def test_paragraph_rich_text_stays_within_span_cap():
    markdown = "\n".join(f"**項目{i}**: 説明" for i in range(51))

    blocks = markdown_to_blocks(markdown)

    assert len(blocks) == 1
    spans = blocks[0].rich_text
    assert len(spans) == MAX_RICH_TEXT_SPANS
    assert spans[0].content == "項目0" and spans[0].bold
    assert spans[-1].content == ": 説明\n" + TRUNCATION_NOTE


def test_bullet_rich_text_stays_within_span_cap():
    blocks = markdown_to_blocks("- " + "**x**y" * 60)
    assert len(blocks[0].to_api()["bulleted_list_item"]["rich_text"]) == MAX_RICH_TEXT_SPANS
