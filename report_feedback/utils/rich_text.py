from __future__ import annotations

import math
import re
from typing import Any, List

from report_feedback.models import WriteRichText

# Notion rejects rich_text content over 2000 characters; keep a margin
RICH_TEXT_LIMIT = 1990
# Notion's cap on rich_text elements per field
MAX_RICH_TEXT_SPANS = 100
TRUNCATION_NOTE = "…（文字数制限のため一部省略）"

_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")


def to_plain_text(rich_text: Any) -> str:
    """Concatenate the plain_text of every span; non-lists yield ""."""
    if not isinstance(rich_text, list):
        return ""
    parts = []
    for span in rich_text:
        plain = span.get("plain_text") if isinstance(span, dict) else None
        parts.append(plain if isinstance(plain, str) else "")
    return "".join(parts)


def to_content_text(rich_text: Any) -> str:
    """Like to_plain_text, but falls back to text.content for unrendered spans."""
    if not isinstance(rich_text, list):
        return ""
    parts = []
    for span in rich_text:
        if not isinstance(span, dict):
            continue
        plain = span.get("plain_text")
        if isinstance(plain, str) and plain:
            parts.append(plain)
            continue
        text_obj = span.get("text")
        if isinstance(text_obj, dict) and isinstance(text_obj.get("content"), str):
            parts.append(text_obj["content"])
    return "".join(parts)


def to_rich_text(
    text: str,
    limit: int = RICH_TEXT_LIMIT,
    max_spans: int = MAX_RICH_TEXT_SPANS,
    bold: bool = False,
) -> List[WriteRichText]:
    """Split text into spans no longer than ``limit`` characters.

    - Prefers to cut just after a newline when one falls in the back 40% of the window
    - Stops after ``max_spans`` spans and marks the last one with TRUNCATION_NOTE
    """
    if not text:
        return []

    chunks: List[str] = []
    rest = text

    while rest and len(chunks) < max_spans:
        if len(rest) <= limit:
            chunks.append(rest)
            rest = ""
            break

        window = rest[:limit]
        last_newline = window.rfind("\n")
        cut = last_newline + 1 if last_newline > math.floor(limit * 0.6) else limit

        chunks.append(rest[:cut])
        rest = rest[cut:]

    if rest and chunks:
        chunks[-1] = _with_truncation_note(chunks[-1], limit)

    return [WriteRichText(content=chunk, bold=bold) for chunk in chunks]


def _with_truncation_note(content: str, limit: int) -> str:
    sep = "" if content.endswith("\n") else "\n"
    merged = f"{content}{sep}{TRUNCATION_NOTE}"
    return merged if len(merged) <= limit else TRUNCATION_NOTE


def parse_inline_bold(
    text: str,
    limit: int = RICH_TEXT_LIMIT,
    max_spans: int = MAX_RICH_TEXT_SPANS,
) -> List[WriteRichText]:
    """Turn ``**bold**`` runs into bold spans; everything else stays plain.

    The result is one field's rich_text, so the span cap applies to the
    whole list: spans past ``max_spans`` are dropped and the last kept span
    gets TRUNCATION_NOTE.
    """
    if not text:
        return []

    spans: List[WriteRichText] = []
    cursor = 0
    for match in _BOLD_RE.finditer(text):
        spans.extend(to_rich_text(text[cursor:match.start()], limit, max_spans))
        spans.extend(to_rich_text(match.group(1), limit, max_spans, bold=True))
        cursor = match.end()
        if len(spans) > max_spans:
            break
    else:
        spans.extend(to_rich_text(text[cursor:], limit, max_spans))

    if len(spans) > max_spans:
        spans = spans[:max_spans]
        if spans:
            last = spans[-1]
            spans[-1] = WriteRichText(
                content=_with_truncation_note(last.content, limit),
                bold=last.bold,
            )
    return spans
