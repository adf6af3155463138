"""
ecs_discoverer.tier0_core.config
─────────────────────────────────
Typed configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic; invalid values fail at
startup, before any AWS call is made.

Minimal stack: pydantic-settings
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AGENT_METADATA_URL = "http://172.17.42.1:51678/v1/metadata"

# DescribeTasks / DescribeContainerInstances reject more than this per call.
MAX_DESCRIBE_BATCH = 100


class DiscovererConfig(BaseSettings):
    """
    Typed discoverer configuration.
    All env vars are prefixed with ECS_DISCOVERER_.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── ECS agent ─────────────────────────────────────────────────────────────
    agent_metadata_url: str = Field(
        default=DEFAULT_AGENT_METADATA_URL,
        alias="ECS_DISCOVERER_AGENT_METADATA_URL",
    )
    agent_metadata_timeout: float = Field(
        default=5.0, gt=0, alias="ECS_DISCOVERER_AGENT_METADATA_TIMEOUT"
    )

    # ── AWS ───────────────────────────────────────────────────────────────────
    aws_region: str | None = Field(default=None, alias="ECS_DISCOVERER_AWS_REGION")
    describe_batch_size: int = Field(
        default=MAX_DESCRIBE_BATCH,
        ge=1,
        le=MAX_DESCRIBE_BATCH,
        alias="ECS_DISCOVERER_DESCRIBE_BATCH_SIZE",
    )
    max_pages: int = Field(default=1000, ge=1, alias="ECS_DISCOVERER_MAX_PAGES")

    # ── Results ───────────────────────────────────────────────────────────────
    dedupe: bool = Field(default=False, alias="ECS_DISCOVERER_DEDUPE")

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="WARNING", alias="ECS_DISCOVERER_LOG_LEVEL")
    log_format: str = Field(default="console", alias="ECS_DISCOVERER_LOG_FORMAT")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"console", "json"}
        if v.lower() not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got {v!r}")
        return v.upper()


@lru_cache(maxsize=1)
def get_config() -> DiscovererConfig:
    """
    Return the singleton config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    return DiscovererConfig()


def _reset_config() -> None:
    """For tests — clear the config cache."""
    get_config.cache_clear()


__all__ = ["DiscovererConfig", "get_config", "DEFAULT_AGENT_METADATA_URL", "MAX_DESCRIBE_BATCH"]
