"""Context store configuration via environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ContextSettings(BaseSettings):
    """Loaded from JURIFY_CONTEXT_* env vars or .env file."""

    max_entries: int = Field(default=10_000, gt=0)
    ttl_ms: int = Field(default=24 * 60 * 60 * 1000, gt=0)            # 24h
    cleanup_interval_ms: int = Field(default=60 * 60 * 1000, gt=0)    # 1h

    # Conversation turns kept per lead
    history_limit: int = Field(default=50, gt=0)

    model_config = {
        "env_prefix": "JURIFY_CONTEXT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
