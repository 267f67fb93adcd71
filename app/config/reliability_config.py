# =============================================================================
# File: app/config/reliability_config.py
# Description: Inbound request throttling configuration
# =============================================================================

from functools import lru_cache
from typing import Tuple

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from app.common.base.base_config import BaseConfig


class RateLimiterConfig(BaseConfig):
    """Global fixed-window rate limiter (THROTTLE_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="THROTTLE_",
    )

    enabled: bool = Field(default=True)

    ttl: int = Field(default=60, description="Window length in seconds")

    limit: int = Field(default=1000, description="Requests allowed per window, across all clients")

    exempt_paths: Tuple[str, ...] = Field(
        default=("/", "/health", "/metrics", "/docs", "/openapi.json"),
        description="Paths never counted against the limit"
    )


@lru_cache(maxsize=1)
def get_rate_limiter_config() -> RateLimiterConfig:
    """Get rate limiter configuration singleton (cached)."""
    return RateLimiterConfig()
