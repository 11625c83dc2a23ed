#!/usr/bin/env python3
"""
Run one feedback batch locally.

Reads settings from the environment / .env, optionally overrides the batch
knobs from the command line, and either runs the full batch or previews the
report Markdown of a single page without generating or writing anything.

Usage:
    python scripts/run_batch.py
    python scripts/run_batch.py --max-items 1 --debug
    python scripts/run_batch.py --preview <page-id>
"""

import argparse
import sys
from pathlib import Path

from loguru import logger

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from report_feedback.app.orchestration import BatchContext, run_batch
from report_feedback.block_collector import BlockTreeCollector
from report_feedback.config import load_config
from report_feedback.notion_client import NotionClient
from report_feedback.utils.markdown_renderer import blocks_to_report_markdown


def print_header(text):
    """Print a formatted header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def preview_page(config, page_id: str) -> int:
    """Print the report Markdown and feedback region of one page."""
    client = NotionClient(config.notion)
    collected = BlockTreeCollector(
        client, interval_ms=config.batch.block_fetch_interval_ms
    ).collect(page_id)

    print_header(f"Report Markdown: {page_id}")
    report = blocks_to_report_markdown(collected.blocks)
    print(report or "(empty)")
    print(f"\n📏 {len(report)} chars (min {config.batch.min_body_chars})")

    print_header("Feedback region")
    print(f"container: {collected.feedback_container_id}")
    print(f"divider:   {collected.feedback_divider_id}")
    print(f"stale:     {len(collected.feedback_content_ids)} blocks")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the daily report feedback batch")
    parser.add_argument("--max-items", type=int, help="Override MAX_ITEMS_PER_RUN")
    parser.add_argument("--prompt-version", help="Override PROMPT_VERSION")
    parser.add_argument("--interval-ms", type=int, help="Override GEMINI_INTERVAL_MS")
    parser.add_argument("--debug", action="store_true", help="Log report and feedback bodies")
    parser.add_argument("--preview", metavar="PAGE_ID", help="Only render one page; no generation or writes")
    args = parser.parse_args()

    config = load_config()
    if args.max_items is not None:
        config.batch.max_items_per_run = args.max_items
    if args.prompt_version:
        config.batch.prompt_version = args.prompt_version
    if args.interval_ms is not None:
        config.batch.gemini_interval_ms = args.interval_ms
    if args.debug:
        config.batch.debug = True

    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if config.batch.debug else "INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
    )

    if args.preview:
        return preview_page(config, args.preview)

    summary = run_batch(BatchContext.from_config(config))

    print_header("Batch summary")
    print(f"✅ done:    {summary.done}")
    print(f"⏭️  skipped: {summary.skipped}")
    print(f"❌ failed:  {summary.failed}")
    for result in summary.results:
        if result.message:
            print(f"   {result.page_id}: {result.message.splitlines()[0]}")
    print(f"⏱️  {summary.duration_ms / 1000:.1f}s")

    return 1 if summary.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
