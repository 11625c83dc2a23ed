from __future__ import annotations

import re
from typing import Iterable

from report_feedback.models import Block, BlockType
from report_feedback.utils.rich_text import to_plain_text

_BLANK_RUN_RE = re.compile(r"\n{3,}")

_LINE_PREFIXES = {
    BlockType.HEADING_1: "# ",
    BlockType.HEADING_2: "## ",
    BlockType.HEADING_3: "### ",
    BlockType.BULLETED_LIST_ITEM: "- ",
    BlockType.PARAGRAPH: "",
    # Callouts in the report template act as section titles
    BlockType.CALLOUT: "## ",
}

_HEADINGS = {BlockType.HEADING_1, BlockType.HEADING_2, BlockType.HEADING_3}


def block_to_markdown_line(block: Block) -> str:
    """Render one block as a single Markdown line, or "" if it contributes nothing.

    Nesting is ignored: every block becomes one line regardless of depth.
    """
    kind = block.kind
    if kind is BlockType.DIVIDER:
        return "---"

    prefix = _LINE_PREFIXES.get(kind)
    if prefix is None:
        return ""

    text = to_plain_text(block.rich_text).strip()
    if kind in _HEADINGS:
        return f"{prefix}{text}".strip()
    return f"{prefix}{text}" if text else ""


def blocks_to_report_markdown(blocks: Iterable[Block]) -> str:
    """Join rendered blocks into the report body sent for feedback."""
    lines = [line for line in (block_to_markdown_line(b) for b in blocks) if line]
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines)).strip()
