"""
Shared fixtures: a routed fake requests session and a test configuration.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from report_feedback.config import AppConfig, BatchConfig, GeminiConfig, NotionConfig
from report_feedback.notion_client import NotionClient

NOTION_BASE = "https://api.notion.com/v1"


class FakeResponse:
    """Just enough of requests.Response for NotionClient."""

    def __init__(self, status_code: int = 200, payload: Any = None, reason: str = "OK"):
        self.status_code = status_code
        self.reason = reason
        self.text = "" if payload is None else json.dumps(payload, ensure_ascii=False)


class FakeSession:
    """
    Records every request and answers from handlers registered per route.

    A route is (METHOD, path suffix after the API base). A handler is either
    a FakeResponse, a dict payload, or a callable taking the recorded call.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.routes: Dict[Tuple[str, str], Any] = {}

    def add(self, method: str, path: str, handler: Any) -> None:
        self.routes[(method, path)] = handler

    def add_children(self, block_id: str, *pages: List[Dict[str, Any]]) -> None:
        """Serve a block's children as one or more cursor-linked pages."""
        def handler(call):
            cursor = (call["params"] or {}).get("start_cursor")
            index = int(cursor.split("-")[-1]) if cursor else 0
            has_more = index + 1 < len(pages)
            return {
                "results": pages[index],
                "has_more": has_more,
                "next_cursor": f"{block_id}-cursor-{index + 1}" if has_more else None,
            }
        self.add("GET", f"/blocks/{block_id}/children", handler)

    def request(self, method, url, headers=None, json=None, params=None, timeout=None):
        path = url[len(NOTION_BASE):] if url.startswith(NOTION_BASE) else url
        call = {
            "method": method,
            "url": url,
            "path": path,
            "headers": headers,
            "json": json,
            "params": params,
        }
        self.calls.append(call)

        handler = self.routes.get((method, path))
        if handler is None:
            return FakeResponse(404, {"message": f"no route for {method} {path}"}, "Not Found")
        if callable(handler):
            handler = handler(call)
        if isinstance(handler, FakeResponse):
            return handler
        return FakeResponse(200, handler)

    def calls_to(self, method: str, prefix: str = "") -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["path"].startswith(prefix)]


def rich(text: str) -> List[Dict[str, Any]]:
    return [{"type": "text", "plain_text": text, "text": {"content": text}}]


def make_block(block_id: str, block_type: str, text: str = "", has_children: bool = False) -> Dict[str, Any]:
    """A block dict shaped like the Notion API returns it."""
    block: Dict[str, Any] = {
        "object": "block",
        "id": block_id,
        "type": block_type,
        "has_children": has_children,
    }
    if block_type == "divider":
        block["divider"] = {}
    else:
        block[block_type] = {"rich_text": rich(text) if text else []}
    return block


@pytest.fixture
def config(tmp_path) -> AppConfig:
    prompts_dir = tmp_path / "prompts"
    prompts_dir.mkdir()
    (prompts_dir / "prompt_v1.0.md").write_text("あなたはメンターです。", encoding="utf-8")
    return AppConfig(
        notion=NotionConfig(token="secret", data_source_id="ds-123"),
        gemini=GeminiConfig(api_key="key"),
        batch=BatchConfig(
            max_items_per_run=5,
            min_body_chars=10,
            gemini_interval_ms=100,
            prompts_dir=prompts_dir,
        ),
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def notion(config, session) -> NotionClient:
    return NotionClient(config.notion, session=session)


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps) -> Callable[[float], None]:
    return sleeps.append
