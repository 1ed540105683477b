"""Configuration models and YAML loader for the job-discovery agent."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/jobagent.db"


class BrowserConfig(BaseModel):
    """Headless browser settings shared by every session."""

    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = Field(default=1920, ge=320)
    viewport_height: int = Field(default=1080, ge=240)
    locale: str = "fr-FR"
    navigation_timeout_ms: int = Field(default=45_000, ge=1000)
    settle_ms: int = Field(default=3000, ge=0)
    click_timeout_ms: int = Field(default=10_000, ge=1000)
    max_wait_ms: int = Field(default=10_000, ge=0)
    snapshot_max_chars: int = Field(default=15_000, ge=1000)


class LLMConfig(BaseModel):
    """Language-understanding service settings.

    ``None`` models fall back to the provider defaults.
    """

    provider: str = "anthropic"
    extraction_model: str | None = None
    cleanup_model: str | None = None
    extraction_max_tokens: int = Field(default=4096, ge=256)
    cleanup_max_tokens: int = Field(default=1024, ge=128)


class CollectionConfig(BaseModel):
    """Paginated result collection."""

    max_pages: int = Field(default=3, ge=1, le=10)
    results_per_page: int = Field(default=25, ge=1)
    min_snapshot_chars: int = Field(default=500, ge=0)
    scroll_steps: int = Field(default=3, ge=0, le=10)


class ExtractionConfig(BaseModel):
    """Structured extraction of offers from the collected snapshot."""

    snapshot_char_limit: int = Field(default=30_000, ge=1000)
    max_offers: int = Field(default=75, ge=1)


class EnrichmentConfig(BaseModel):
    """Detail-page enrichment."""

    max_detail_pages: int = Field(default=15, ge=0)
    pause_ms: int = Field(default=1500, ge=0)
    min_description_chars: int = Field(default=100, ge=1)
    description_max_chars: int = Field(default=8000, ge=100)
    cleanup_input_max_chars: int = Field(default=6000, ge=100)
    raw_fallback_max_chars: int = Field(default=3000, ge=100)


class SchedulerConfig(BaseModel):
    """Cron-style trigger evaluation."""

    tick_seconds: int = Field(default=60, ge=1)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    @field_validator("llm")
    @classmethod
    def provider_lowercase(cls, v: LLMConfig) -> LLMConfig:
        return v.model_copy(update={"provider": v.provider.lower().strip()})

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
