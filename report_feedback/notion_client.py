"""
Notion API client for reading report pages and writing feedback back.
"""

import json
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from report_feedback.config import NotionConfig
from report_feedback.exceptions import NotionAPIError

# Notion caps both list page size and appended children at 100
MAX_PAGE_SIZE = 100
MAX_CHILDREN_PER_REQUEST = 100


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


class NotionClient:
    """Thin client over the Notion REST endpoints the batch needs."""

    def __init__(self, config: NotionConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Notion settings (token, version, base URL)
            session: Optional session to send requests through
        """
        self.config = config
        self.session = session or requests.Session()
        self.base_url = config.api_base.rstrip("/")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Notion-Version": self.config.version,
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request and decode the JSON body.

        Raises:
            NotionAPIError: on any non-2xx response
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"Notion {method} {path}")

        response = self.session.request(
            method=method,
            url=url,
            headers=self.headers,
            json=json_body,
            params=params,
            timeout=self.config.timeout,
        )
        text = response.text or ""
        payload = _decode_body(text)

        if not 200 <= response.status_code < 300:
            raise NotionAPIError(
                status=response.status_code,
                reason=response.reason or "",
                url=url,
                text=text,
                body=payload,
            )

        return payload if isinstance(payload, dict) else {}

    def query_data_source(self, data_source_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"/data_sources/{data_source_id}/query", json_body=body)

    def list_block_children(
        self,
        block_id: str,
        start_cursor: Optional[str] = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """Fetch one page of a block's children.

        Returns:
            Dict with ``results``, ``has_more`` and ``next_cursor``
        """
        params: Dict[str, Any] = {"page_size": page_size}
        if start_cursor:
            params["start_cursor"] = start_cursor
        return self._request("GET", f"/blocks/{block_id}/children", params=params)

    def update_block(self, block_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/blocks/{block_id}", json_body=body)

    def archive_block(self, block_id: str) -> Dict[str, Any]:
        return self.update_block(block_id, {"archived": True})

    def append_block_children(
        self,
        block_id: str,
        children: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        if len(children) > MAX_CHILDREN_PER_REQUEST:
            raise ValueError(
                f"Cannot append {len(children)} children in one request "
                f"(max {MAX_CHILDREN_PER_REQUEST})"
            )
        return self._request(
            "PATCH",
            f"/blocks/{block_id}/children",
            json_body={"children": children},
        )

    def update_page_properties(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/pages/{page_id}", json_body={"properties": properties})
