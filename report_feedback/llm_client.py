"""
LLM client for generating report feedback with Gemini.

Gemini is reached through its OpenAI-compatible endpoint, so the standard
OpenAI SDK does the transport.
"""

import time
from typing import Dict, List, Optional

import jinja2
from openai import OpenAI
from loguru import logger

from report_feedback.config import GeminiConfig

USER_PROMPT_TEMPLATE = jinja2.Template(
    "日報本文:\n{{ report_markdown }}\n\n"
    "補足:\n"
    "- この日報はNotionから抽出したblocksをMarkdown風に整形したものです。\n"
    "- 見出しや箇条書きの構造を尊重し、文脈を読み取ってください。\n",
    keep_trailing_newline=True,
)


class FeedbackGenerator:
    """Client for turning a report into feedback text."""

    def __init__(self, config: GeminiConfig, client: Optional[OpenAI] = None):
        """Initialize the generator."""
        self.config = config
        self.client = client or OpenAI(
            api_key=config.api_key,
            base_url=config.api_base,
            timeout=config.timeout,
        )
        logger.info(f"Initialized feedback generator with model: {self.config.model}")

    def build_messages(self, system_prompt: str, report_markdown: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": USER_PROMPT_TEMPLATE.render(report_markdown=report_markdown)},
        ]

    def generate(self, system_prompt: str, report_markdown: str) -> str:
        """
        Generate feedback for one report.

        Errors from the API propagate unchanged.

        Returns:
            Feedback text (may be empty)
        """
        start_time = time.time()
        messages = self.build_messages(system_prompt, report_markdown)

        try:
            response = self.client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature,
                top_p=self.config.top_p,
            )
        except Exception as e:
            logger.error(f"API call failed: {str(e)}")
            raise

        feedback = response.choices[0].message.content or ""

        elapsed_time = time.time() - start_time
        logger.debug(f"API call completed in {elapsed_time:.2f}s, {len(feedback)} chars")
        return feedback
