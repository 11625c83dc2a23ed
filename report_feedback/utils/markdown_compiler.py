"""
Compiler from generated feedback Markdown to Notion blocks.
"""

import re
from typing import List, Optional

from report_feedback.models import (
    BulletedListItemBlock,
    HeadingBlock,
    ParagraphBlock,
    WriteBlock,
)
from report_feedback.utils.rich_text import parse_inline_bold

INDENT_WIDTH = 4


class MarkdownBlockCompiler:
    """
    Compile a constrained Markdown dialect into writable blocks.

    Supported: ``#``/``##``/``###`` headings, ``-`` bullets nested one level
    by 4-space indentation, ``**bold**`` inline, and paragraphs. Anything
    else (numbered lists, fenced code) is kept verbatim as paragraph text.
    """

    def __init__(self):
        self.heading_pattern = re.compile(r'^(#{1,3})\s+(.*)$')
        self.list_item_pattern = re.compile(r'^(\s*)-\s+(.*)$')

    def compile(self, markdown: str) -> List[WriteBlock]:
        """
        Compile Markdown into top-level blocks.

        Args:
            markdown: Raw Markdown text

        Returns:
            List of blocks in document order
        """
        if not markdown or not markdown.strip():
            return []

        blocks: List[WriteBlock] = []
        # Open list items indexed by nesting level; None marks a gap
        list_stack: List[Optional[BulletedListItemBlock]] = []
        paragraph_lines: List[str] = []

        def flush_paragraph() -> None:
            if not paragraph_lines:
                return
            text = '\n'.join(paragraph_lines).strip()
            paragraph_lines.clear()
            if text:
                blocks.append(ParagraphBlock(rich_text=parse_inline_bold(text)))

        lines = markdown.replace('\r\n', '\n').replace('\r', '\n').split('\n')

        for raw_line in lines:
            line = raw_line.replace('\t', ' ' * INDENT_WIDTH)
            trimmed = line.strip()

            if not trimmed:
                flush_paragraph()
                list_stack.clear()
                continue

            heading_match = self.heading_pattern.match(line)
            if heading_match:
                flush_paragraph()
                list_stack.clear()
                level = len(heading_match.group(1))
                blocks.append(HeadingBlock(
                    level=level,
                    rich_text=parse_inline_bold(heading_match.group(2).strip())
                ))
                continue

            list_match = self.list_item_pattern.match(line)
            if list_match:
                flush_paragraph()
                self._add_list_item(
                    blocks,
                    list_stack,
                    indent=len(list_match.group(1)),
                    text=list_match.group(2).strip()
                )
                continue

            list_stack.clear()
            paragraph_lines.append(trimmed)

        flush_paragraph()
        return blocks

    def _add_list_item(
        self,
        blocks: List[WriteBlock],
        list_stack: List[Optional[BulletedListItemBlock]],
        indent: int,
        text: str
    ) -> None:
        level = indent // INDENT_WIDTH

        if not text:
            # An empty bullet closes any deeper levels
            del list_stack[level:]
            return

        item = BulletedListItemBlock(rich_text=parse_inline_bold(text))

        parent = list_stack[level - 1] if 0 < level <= len(list_stack) else None
        if parent is None:
            blocks.append(item)
        else:
            parent.children.append(item)

        while len(list_stack) <= level:
            list_stack.append(None)
        list_stack[level] = item
        del list_stack[level + 1:]


def markdown_to_blocks(markdown: str) -> List[WriteBlock]:
    """Compile Markdown with a fresh compiler."""
    return MarkdownBlockCompiler().compile(markdown)
