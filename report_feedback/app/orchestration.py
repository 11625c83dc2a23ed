"""
Batch orchestration for report feedback.

- query_target_page_ids: finds pages flagged ready and not yet done
- process_one_item: collect -> render -> generate -> write for one page
- run_batch: processes every queried page sequentially, pacing generation calls

Pages are isolated: a failure on one page is recorded and the run continues.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import requests
from loguru import logger

from report_feedback.block_collector import BlockTreeCollector
from report_feedback.config import AppConfig
from report_feedback.exceptions import FeedbackRegionNotFoundError
from report_feedback.feedback_writer import DONE_PROPERTY, READY_PROPERTY, FeedbackWriter
from report_feedback.llm_client import FeedbackGenerator
from report_feedback.models import (
    BatchSummary,
    ProcessResult,
    ProcessStatus,
    ResultReason,
)
from report_feedback.notion_client import NotionClient
from report_feedback.prompt_loader import load_prompt
from report_feedback.utils.markdown_renderer import blocks_to_report_markdown

# (system_prompt, report_markdown) -> feedback
GenerateFeedbackFn = Callable[[str, str], str]


def resolve_request_id(lambda_context: Any = None) -> str:
    """Correlation ID for log lines: the Lambda request ID when there is one."""
    request_id = getattr(lambda_context, "aws_request_id", None)
    if request_id:
        return str(request_id)
    return (
        os.getenv("AWS_REQUEST_ID")
        or os.getenv("AWS_LAMBDA_LOG_STREAM_NAME")
        or "local"
    )


@dataclass
class BatchContext:
    """Everything one run needs, built once and passed to each step."""
    config: AppConfig
    notion: NotionClient
    generate_feedback: GenerateFeedbackFn
    request_id: str = "local"
    sleep: Callable[[float], None] = field(default=time.sleep)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        request_id: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> 'BatchContext':
        generator = FeedbackGenerator(config.gemini)
        return cls(
            config=config,
            notion=NotionClient(config.notion, session=session),
            generate_feedback=generator.generate,
            request_id=request_id or resolve_request_id(),
        )

    def load_system_prompt(self) -> str:
        return load_prompt(self.config.batch.prompt_version, self.config.batch.prompts_dir)


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def query_target_page_ids(notion: NotionClient, config: AppConfig) -> List[str]:
    """IDs of pages with FB_READY checked and FB_DONE unchecked."""
    body = {
        "filter": {
            "and": [
                {"property": READY_PROPERTY, "checkbox": {"equals": True}},
                {"property": DONE_PROPERTY, "checkbox": {"equals": False}},
            ]
        },
        "page_size": config.batch.max_items_per_run,
    }
    payload = notion.query_data_source(config.notion.data_source_id, body)
    results = payload.get("results") or []
    return [str(r["id"]) for r in results if isinstance(r, dict) and r.get("id")]


def process_one_item(ctx: BatchContext, system_prompt: str, page_id: str) -> ProcessResult:
    """
    Generate and write feedback for one page.

    Returns:
        ProcessResult with status done or skipped

    Raises:
        FeedbackRegionNotFoundError: if the page has no feedback heading/divider
        NotionAPIError: on any failed Notion call
    """
    batch = ctx.config.batch

    collector = BlockTreeCollector(
        ctx.notion,
        interval_ms=batch.block_fetch_interval_ms,
        sleep=ctx.sleep,
    )
    collected = collector.collect(page_id)
    report_markdown = blocks_to_report_markdown(collected.blocks)

    if not report_markdown:
        return ProcessResult(
            page_id=page_id,
            status=ProcessStatus.SKIPPED,
            reason=ResultReason.INSUFFICIENT_CONTENT,
        )
    logger.debug(f"[DEBUG] reportMarkdown chars={len(report_markdown)} pageId={page_id}")

    if len(report_markdown) < batch.min_body_chars:
        return ProcessResult(
            page_id=page_id,
            status=ProcessStatus.SKIPPED,
            reason=ResultReason.INSUFFICIENT_CONTENT,
        )

    if batch.debug:
        logger.debug(f"[DEBUG] ReportMarkdown (pageId={page_id}):\n{report_markdown}\n")

    # Checked before generation so a malformed page costs no API call
    if not collected.has_feedback_region:
        raise FeedbackRegionNotFoundError(page_id)

    feedback = ctx.generate_feedback(system_prompt, report_markdown)

    if batch.debug:
        logger.debug(f"[DEBUG] FeedBack (pageId={page_id}):\n{feedback}\n")

    FeedbackWriter(ctx.notion).write(
        page_id,
        feedback,
        collected.feedback_container_id,
        collected.feedback_content_ids,
    )

    return ProcessResult(page_id=page_id, status=ProcessStatus.DONE)


def log_start(request_id: str) -> float:
    """Log the [START] line and return the run's start time."""
    logger.info(
        f"[START] requestId={request_id} ts={datetime.now(timezone.utc).isoformat()}"
    )
    return time.time()


def run_batch(ctx: BatchContext, start_time: Optional[float] = None) -> BatchSummary:
    """
    Run one batch: query eligible pages and process each in order.

    Args:
        ctx: Run context
        start_time: Set when the caller already logged [START] (see log_start)

    Returns:
        BatchSummary with one result per queried page
    """
    request_id = ctx.request_id
    batch = ctx.config.batch
    start = start_time if start_time is not None else log_start(request_id)

    page_ids = query_target_page_ids(ctx.notion, ctx.config)
    logger.info(f"[INFO] requestId={request_id} targets={len(page_ids)}")

    if not page_ids:
        summary = BatchSummary(request_id=request_id, duration_ms=_elapsed_ms(start))
        logger.info(
            f"[END] requestId={request_id} durationMs={summary.duration_ms} "
            f"done=0 skipped=0 failed=0"
        )
        return summary

    system_prompt = ctx.load_system_prompt()
    results: List[ProcessResult] = []

    for i, page_id in enumerate(page_ids):
        item_start = time.time()

        if i > 0:
            logger.info(f"[WAIT] geminiIntervalMs={batch.gemini_interval_ms} pageId={page_id}")
            ctx.sleep(batch.gemini_interval_ms / 1000)

        try:
            logger.info(f"[ITEM_START] {i + 1}/{len(page_ids)} pageId={page_id}")

            result = process_one_item(ctx, system_prompt, page_id)
            results.append(result)

            reason = f" reason={result.reason.value}" if result.reason else ""
            logger.info(
                f"[ITEM_END] pageId={page_id} status={result.status.value}{reason} "
                f"durationMs={_elapsed_ms(item_start)}"
            )
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"[ITEM_FAIL] pageId={page_id} durationMs={_elapsed_ms(item_start)}")
            logger.error(message)
            results.append(ProcessResult(
                page_id=page_id,
                status=ProcessStatus.FAILED,
                reason=ResultReason.EXCEPTION,
                message=message,
            ))

    summary = BatchSummary(
        request_id=request_id,
        results=results,
        duration_ms=_elapsed_ms(start),
    )
    logger.info(
        f"[SUMMARY] done={summary.done} skipped={summary.skipped} failed={summary.failed}"
    )
    logger.info(f"[END] requestId={request_id} durationMs={summary.duration_ms}")
    return summary
