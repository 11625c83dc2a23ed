"""
Walks a report page's block tree, separating the report body from the
feedback region written by earlier runs.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from report_feedback.models import Block, BlockType, CollectedBlocks
from report_feedback.notion_client import MAX_PAGE_SIZE, NotionClient
from report_feedback.utils.rich_text import to_content_text

FEEDBACK_MARKER = "AIフィードバック"


class WalkMode(str, Enum):
    """Per-branch state while walking children."""
    COLLECTING = "collecting"
    SEEKING_DIVIDER = "seeking_divider"
    COLLECTING_FEEDBACK_CONTENT = "collecting_feedback_content"


@dataclass
class _Walk:
    result: CollectedBlocks = field(default_factory=CollectedBlocks)
    # Set once a branch has found the feedback region; only one is expected per page
    stopped: bool = False


def is_feedback_marker(block: Block) -> bool:
    return (
        block.kind is BlockType.HEADING_2
        and to_content_text(block.rich_text) == FEEDBACK_MARKER
    )


class BlockTreeCollector:
    """Depth-first, paginated collection of a page's blocks."""

    def __init__(
        self,
        client: NotionClient,
        interval_ms: int = 250,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Args:
            client: Notion client
            interval_ms: Pause before every follow-up page fetch and recursive descent
            sleep: Sleep function, replaceable in tests
        """
        self.client = client
        self.interval_ms = interval_ms
        self.sleep = sleep or time.sleep

    def collect(self, root_block_id: str) -> CollectedBlocks:
        walk = _Walk()
        self._walk(root_block_id, walk)
        result = walk.result
        logger.debug(
            f"Collected {len(result.blocks)} blocks from {root_block_id} "
            f"(container={result.feedback_container_id}, "
            f"stale={len(result.feedback_content_ids)})"
        )
        return result

    def _pause(self) -> None:
        if self.interval_ms > 0:
            self.sleep(self.interval_ms / 1000)

    def _walk(self, block_id: str, walk: _Walk) -> None:
        mode = WalkMode.COLLECTING
        cursor: Optional[str] = None

        while not walk.stopped:
            page = self.client.list_block_children(
                block_id, start_cursor=cursor, page_size=MAX_PAGE_SIZE
            )

            for raw in page.get("results") or []:
                if walk.stopped:
                    break
                block = Block.from_api(raw)

                if mode is WalkMode.COLLECTING:
                    if is_feedback_marker(block):
                        walk.result.feedback_container_id = block_id
                        mode = WalkMode.SEEKING_DIVIDER
                        continue

                    walk.result.blocks.append(block)
                    if block.has_children:
                        self._pause()
                        self._walk(block.id, walk)

                elif mode is WalkMode.SEEKING_DIVIDER:
                    if block.kind is BlockType.DIVIDER:
                        walk.result.feedback_divider_id = block.id
                        mode = WalkMode.COLLECTING_FEEDBACK_CONTENT

                else:
                    # Previous run's feedback, retired by the writer
                    walk.result.feedback_content_ids.append(block.id)

            cursor = page.get("next_cursor") if page.get("has_more") else None
            if not cursor or walk.stopped:
                break
            self._pause()

        if mode is not WalkMode.COLLECTING:
            walk.stopped = True
