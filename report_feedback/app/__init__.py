"""
Batch orchestration and the scheduler entry point.
"""

from report_feedback.app.orchestration import (
    BatchContext,
    process_one_item,
    query_target_page_ids,
    run_batch,
)

__all__ = [
    "BatchContext",
    "process_one_item",
    "query_target_page_ids",
    "run_batch",
]
