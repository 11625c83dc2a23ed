"""
Data models for the report feedback batch.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator


class BlockType(str, Enum):
    """Block types the report renderer understands."""
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    DIVIDER = "divider"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    PARAGRAPH = "paragraph"
    CALLOUT = "callout"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, value: Any) -> 'BlockType':
        """Map a raw Notion type string, falling back to UNSUPPORTED."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNSUPPORTED


class Block(BaseModel):
    """A block as read from the Notion API."""
    id: str
    type: str = ""
    has_children: bool = False
    # Raw API object; the type-specific body lives under payload[type]
    payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Block':
        return cls(
            id=str(data.get("id") or ""),
            type=str(data.get("type") or ""),
            has_children=bool(data.get("has_children")),
            payload=data,
        )

    @property
    def kind(self) -> BlockType:
        return BlockType.parse(self.type)

    @property
    def rich_text(self) -> Any:
        """The block's rich_text array, or None if the body has none."""
        body = self.payload.get(self.type)
        if isinstance(body, dict):
            return body.get("rich_text")
        return None


class WriteRichText(BaseModel):
    """A rich text span to be written back to Notion."""
    content: str
    bold: bool = False

    def to_api(self) -> Dict[str, Any]:
        span: Dict[str, Any] = {"type": "text", "text": {"content": self.content}}
        if self.bold:
            span["annotations"] = {"bold": True}
        return span


class WriteBlock(BaseModel, ABC):
    """Base class for blocks appended to a page."""

    @property
    @abstractmethod
    def block_type(self) -> str:
        """Notion block type, also the key of the body in the API object."""

    def body(self) -> Dict[str, Any]:
        return {}

    def to_api(self) -> Dict[str, Any]:
        return {
            "object": "block",
            "type": self.block_type,
            self.block_type: self.body(),
        }


class TextBlock(WriteBlock):
    """A block whose body is a single rich_text field."""
    rich_text: List[WriteRichText] = Field(default_factory=list)

    def body(self) -> Dict[str, Any]:
        return {"rich_text": [span.to_api() for span in self.rich_text]}

    @property
    def plain_text(self) -> str:
        return "".join(span.content for span in self.rich_text)


class HeadingBlock(TextBlock):
    level: int = 1

    @field_validator('level')
    @classmethod
    def level_in_range(cls, v):
        if v not in (1, 2, 3):
            raise ValueError('Heading level must be 1, 2 or 3')
        return v

    @property
    def block_type(self) -> str:
        return f"heading_{self.level}"


class ParagraphBlock(TextBlock):

    @property
    def block_type(self) -> str:
        return BlockType.PARAGRAPH.value


class BulletedListItemBlock(TextBlock):
    # Attached while compiling indented bullets
    children: List[WriteBlock] = Field(default_factory=list)

    @property
    def block_type(self) -> str:
        return BlockType.BULLETED_LIST_ITEM.value

    def body(self) -> Dict[str, Any]:
        body = super().body()
        if self.children:
            body["children"] = [child.to_api() for child in self.children]
        return body


class DividerBlock(WriteBlock):

    @property
    def block_type(self) -> str:
        return BlockType.DIVIDER.value


class CollectedBlocks(BaseModel):
    """Result of walking a page's block tree."""
    blocks: List[Block] = Field(default_factory=list)
    feedback_container_id: Optional[str] = None
    feedback_divider_id: Optional[str] = None
    feedback_content_ids: List[str] = Field(default_factory=list)

    @property
    def has_feedback_region(self) -> bool:
        return bool(self.feedback_container_id and self.feedback_divider_id)


class ProcessStatus(str, Enum):
    """Outcome of processing one page."""
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class ResultReason(str, Enum):
    INSUFFICIENT_CONTENT = "insufficient_content"
    EXCEPTION = "exception"


class ProcessResult(BaseModel):
    """Result for a single page in a batch run."""
    page_id: str
    status: ProcessStatus
    reason: Optional[ResultReason] = None
    message: Optional[str] = None


class BatchSummary(BaseModel):
    """Aggregated results of one batch run."""
    request_id: str
    results: List[ProcessResult] = Field(default_factory=list)
    duration_ms: int = 0

    def count(self, status: ProcessStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def done(self) -> int:
        return self.count(ProcessStatus.DONE)

    @property
    def skipped(self) -> int:
        return self.count(ProcessStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(ProcessStatus.FAILED)
