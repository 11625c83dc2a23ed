"""
Daily report feedback batch - Main package.
"""

from report_feedback.models import *
from report_feedback.config import AppConfig, load_config
from report_feedback.exceptions import (
    ConfigurationError,
    FeedbackRegionNotFoundError,
    NotionAPIError,
    PromptNotFoundError,
)

__version__ = "1.0.0"
__all__ = [
    "AppConfig",
    "load_config",
    "ConfigurationError",
    "FeedbackRegionNotFoundError",
    "NotionAPIError",
    "PromptNotFoundError",
]
