"""
Exceptions raised by the report feedback batch.
"""

from typing import Any, Optional


class ReportFeedbackError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ReportFeedbackError):
    """A required setting could not be resolved."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class PromptNotFoundError(ReportFeedbackError):
    """The prompt file for the configured version does not exist."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class NotionAPIError(ReportFeedbackError):
    """Non-2xx response from the Notion API."""

    def __init__(
        self,
        status: int,
        reason: str,
        url: str,
        text: str = "",
        body: Any = None,
    ):
        """
        Args:
            status: HTTP status code
            reason: HTTP status text
            url: Requested URL
            text: Raw response body
            body: Decoded response body (dict, or {"raw": text} if not JSON)
        """
        super().__init__(f"HTTP {status} {reason} - {url}\n{text}")
        self.status = status
        self.reason = reason
        self.url = url
        self.text = text
        self.body = body


class FeedbackRegionNotFoundError(ReportFeedbackError):
    """The page has no feedback heading or no divider below it."""

    def __init__(self, page_id: str):
        super().__init__(
            f"AIフィードバックの見出しまたはdividerが見つかりません pageId={page_id}"
        )
        self.page_id = page_id
