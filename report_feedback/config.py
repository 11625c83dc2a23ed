"""
Configuration management for the report feedback batch.

Settings are resolved by name through a pluggable ``SettingsSource``: the
process environment locally, and optionally a remote parameter store first
when running inside a managed serverless runtime.
"""

import os
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional, Sequence
from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from loguru import logger

from report_feedback.exceptions import ConfigurationError

# Load environment variables
load_dotenv()


CONFIG_KEYS = [
    'NOTION_TOKEN',
    'NOTION_DATA_SOURCE_ID',
    'NOTION_VERSION',
    'GEMINI_API_KEY',
    'GEMINI_MODEL',
    'MAX_ITEMS_PER_RUN',
    'MIN_BODY_CHARS',
    'GEMINI_INTERVAL_MS',
    'PROMPT_VERSION',
    'DEBUG',
]

DEFAULT_PARAMETER_PREFIX = "/report/"

LAMBDA_ENV_MARKERS = (
    'AWS_LAMBDA_FUNCTION_NAME',
    'AWS_EXECUTION_ENV',
    'LAMBDA_TASK_ROOT',
)


class NotionConfig(BaseModel):
    """Configuration for the Notion API."""
    token: str
    data_source_id: str
    version: str = "2025-09-03"
    api_base: str = "https://api.notion.com/v1"
    timeout: int = 30


class GeminiConfig(BaseModel):
    """Configuration for feedback generation."""
    api_key: str
    model: str = "gemini-2.5-flash"
    # Gemini's OpenAI-compatible endpoint
    api_base: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    temperature: float = 0.7
    top_p: float = 0.95
    timeout: int = 120


class BatchConfig(BaseModel):
    """Knobs for one batch run."""
    max_items_per_run: int = 5
    # Short reports make for thin feedback, so they are skipped
    min_body_chars: int = 80
    # Gemini free tier allows 5 RPM
    gemini_interval_ms: int = 15_000
    # Notion allows roughly 3 requests per second
    block_fetch_interval_ms: int = 250
    prompt_version: str = "v1.0"
    prompts_dir: Path = Path("prompts")
    debug: bool = False


class AppConfig(BaseSettings):
    """Main application configuration."""
    notion: NotionConfig
    gemini: GeminiConfig
    batch: BatchConfig = Field(default_factory=BatchConfig)

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_prefix='REPORT_FEEDBACK_',
        extra='ignore',
    )


class SettingsSource(ABC):
    """Resolves named settings to string values."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if unset or empty."""

    def preload(self, keys: Sequence[str]) -> None:
        """Fetch many keys up front; sources without batching ignore this."""


class EnvSource(SettingsSource):
    """Reads settings from the process environment."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = environ if environ is not None else os.environ

    def get(self, key: str) -> Optional[str]:
        return self.environ.get(key) or None


class RemoteParameterSource(SettingsSource):
    """
    Reads settings from a remote parameter store.

    The store itself is injected as ``fetch_parameters``: a callable taking a
    list of fully-qualified parameter names and returning a mapping of the
    names it found to their values. Values are fetched in bulk and cached
    for the life of the source, including misses.
    """

    def __init__(
        self,
        fetch_parameters: Callable[[List[str]], Mapping[str, Optional[str]]],
        prefix: str = DEFAULT_PARAMETER_PREFIX,
    ):
        self.fetch_parameters = fetch_parameters
        self.prefix = prefix
        self._cache: Dict[str, Optional[str]] = {}

    def preload(self, keys: Sequence[str]) -> None:
        need = [k for k in keys if k not in self._cache]
        if not need:
            return

        names = [f"{self.prefix}{k}" for k in need]
        found = self.fetch_parameters(names)

        missing = [name for name in names if name not in found]
        if missing:
            # May still be satisfied by a fallback source
            logger.warning(f"[WARN] Missing remote parameters: {', '.join(missing)}")

        for key, name in zip(need, names):
            self._cache[key] = found.get(name)

    def get(self, key: str) -> Optional[str]:
        if key not in self._cache:
            self.preload([key])
        return self._cache.get(key) or None


class ChainedSource(SettingsSource):
    """Tries each source in order; the first non-empty value wins."""

    def __init__(self, sources: Sequence[SettingsSource]):
        self.sources = list(sources)

    def preload(self, keys: Sequence[str]) -> None:
        for source in self.sources:
            source.preload(keys)

    def get(self, key: str) -> Optional[str]:
        for source in self.sources:
            value = source.get(key)
            if value:
                return value
        return None


def is_managed_runtime(environ: Optional[Mapping[str, str]] = None) -> bool:
    """True when running inside AWS Lambda."""
    env = environ if environ is not None else os.environ
    return any(env.get(marker) for marker in LAMBDA_ENV_MARKERS)


def default_source(
    fetch_parameters: Optional[Callable[[List[str]], Mapping[str, Optional[str]]]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SettingsSource:
    """Remote store then environment inside Lambda, environment only elsewhere."""
    env_source = EnvSource(environ)
    if fetch_parameters is None or not is_managed_runtime(environ):
        return env_source

    prefix = env_source.get('SSM_PREFIX') or DEFAULT_PARAMETER_PREFIX
    return ChainedSource([RemoteParameterSource(fetch_parameters, prefix), env_source])


def _to_int(value: Optional[str], fallback: int) -> int:
    if value is None:
        return fallback
    try:
        return int(value.strip())
    except ValueError:
        return fallback


def _required(source: SettingsSource, key: str) -> str:
    value = source.get(key)
    if not value:
        raise ConfigurationError(f"Missing env: {key}", key=key)
    return value


def load_config(source: Optional[SettingsSource] = None) -> AppConfig:
    """
    Build the configuration for one run.

    Args:
        source: Where to resolve settings from; defaults to ``default_source()``

    Returns:
        AppConfig

    Raises:
        ConfigurationError: if a required setting is missing
    """
    source = source or default_source()
    source.preload(CONFIG_KEYS)

    notion = NotionConfig(
        token=_required(source, 'NOTION_TOKEN'),
        data_source_id=_required(source, 'NOTION_DATA_SOURCE_ID'),
        version=source.get('NOTION_VERSION') or "2025-09-03",
    )
    gemini = GeminiConfig(
        api_key=_required(source, 'GEMINI_API_KEY'),
        model=source.get('GEMINI_MODEL') or "gemini-2.5-flash",
    )

    defaults = BatchConfig()
    batch = BatchConfig(
        max_items_per_run=_to_int(source.get('MAX_ITEMS_PER_RUN'), defaults.max_items_per_run),
        min_body_chars=_to_int(source.get('MIN_BODY_CHARS'), defaults.min_body_chars),
        gemini_interval_ms=_to_int(source.get('GEMINI_INTERVAL_MS'), defaults.gemini_interval_ms),
        prompt_version=source.get('PROMPT_VERSION') or defaults.prompt_version,
        debug=source.get('DEBUG') == '1',
    )

    return AppConfig(notion=notion, gemini=gemini, batch=batch)
