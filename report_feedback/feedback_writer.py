"""
Writes generated feedback into a report page and marks the page done.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from loguru import logger

from report_feedback.models import WriteBlock
from report_feedback.notion_client import MAX_CHILDREN_PER_REQUEST, NotionClient
from report_feedback.utils.markdown_compiler import MarkdownBlockCompiler

# Page properties on the report data source
READY_PROPERTY = "FB_READY"
DONE_PROPERTY = "FB_DONE"
COMPLETED_AT_PROPERTY = "FB_AT"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FeedbackWriter:
    """Archives stale feedback, appends new feedback and flags the page."""

    def __init__(
        self,
        client: NotionClient,
        compiler: Optional[MarkdownBlockCompiler] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.compiler = compiler or MarkdownBlockCompiler()
        self.clock = clock or _utc_now

    def write(
        self,
        page_id: str,
        feedback_markdown: str,
        container_id: str,
        stale_block_ids: Sequence[str],
    ) -> None:
        """
        Replace the page's feedback and mark it done.

        Each step must succeed before the next starts; the done flag is set
        last, so a failure leaves the page's properties untouched.

        Args:
            page_id: Report page
            feedback_markdown: Generated feedback
            container_id: Block that owns the feedback region
            stale_block_ids: Blocks holding the previous feedback
        """
        for block_id in stale_block_ids:
            self.client.archive_block(block_id)

        blocks = self.compiler.compile(feedback_markdown)
        self.append_blocks(container_id, blocks)

        self.mark_done(page_id)
        logger.debug(
            f"Wrote feedback to page {page_id}: archived={len(stale_block_ids)} "
            f"appended={len(blocks)}"
        )

    def append_blocks(self, container_id: str, blocks: List[WriteBlock]) -> None:
        """Append in order, at most MAX_CHILDREN_PER_REQUEST blocks per call."""
        for start in range(0, len(blocks), MAX_CHILDREN_PER_REQUEST):
            batch = blocks[start:start + MAX_CHILDREN_PER_REQUEST]
            self.client.append_block_children(
                container_id, [block.to_api() for block in batch]
            )

    def mark_done(self, page_id: str) -> None:
        properties = {
            DONE_PROPERTY: {"checkbox": True},
            COMPLETED_AT_PROPERTY: {"date": {"start": to_iso_timestamp(self.clock())}},
        }
        self.client.update_page_properties(page_id, properties)
