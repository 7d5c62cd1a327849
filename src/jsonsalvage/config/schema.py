"""Pydantic models for jsonsalvage configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel):
    """Chat-completion provider used by prompt templates."""

    api_key: str | None = None
    api_key_env: str | None = "OPENAI_API_KEY"
    base_url: str | None = None
    default_model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 4096


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    file: str = ""
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class SalvageConfig(BaseModel):
    """Top-level configuration for jsonsalvage."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
