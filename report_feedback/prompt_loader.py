"""
Loads the versioned system prompt used for feedback generation.
"""

from pathlib import Path
from typing import Union

from loguru import logger

from report_feedback.exceptions import PromptNotFoundError


def prompt_path(version: str, prompts_dir: Union[str, Path] = "prompts") -> Path:
    """Path of the prompt file for a version tag, e.g. prompts/prompt_v1.0.md."""
    return Path(prompts_dir) / f"prompt_{version}.md"


def load_prompt(version: str, prompts_dir: Union[str, Path] = "prompts") -> str:
    """
    Read the system prompt for a version tag.

    Args:
        version: Prompt version tag (e.g. "v1.0")
        prompts_dir: Directory holding the prompt files

    Returns:
        Prompt text

    Raises:
        PromptNotFoundError: if no file exists for the version
    """
    path = prompt_path(version, prompts_dir)
    if not path.is_file():
        raise PromptNotFoundError(f"Prompt file not found: {path}", path=str(path))

    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    logger.debug(f"Loaded prompt {version} from {path}")
    return content
