"""
Scheduler entry point (AWS Lambda handler).

Configured in Lambda as ``report_feedback.app.handler.handler``.
"""

from __future__ import annotations

import sys
from typing import Any

from loguru import logger

from report_feedback.app.orchestration import (
    BatchContext,
    log_start,
    resolve_request_id,
    run_batch,
)
from report_feedback.config import load_config

LOG_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level: <8} | {message}"


def configure_logging(debug: bool = False) -> None:
    """Plain single-line output for CloudWatch."""
    logger.remove()
    logger.add(sys.stdout, level="DEBUG" if debug else "INFO", format=LOG_FORMAT, colorize=False)


def handler(event: Any = None, context: Any = None) -> None:
    """Run one batch. Configuration errors abort before any page is touched."""
    configure_logging()
    request_id = resolve_request_id(context)
    start_time = log_start(request_id)

    config = load_config()
    if config.batch.debug:
        configure_logging(debug=True)

    ctx = BatchContext.from_config(config, request_id=request_id)
    run_batch(ctx, start_time=start_time)
