# =============================================================================
# File: app/config/cache_config.py
# Description: Cache TTLs and monitoring settings for the three key families
# =============================================================================

from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from app.common.base.base_config import BaseConfig


class CacheConfig(BaseConfig):
    """
    Cache settings (CACHE_ prefix).

    Key families and their TTLs:
    - single message              -> message_ttl
    - conversation page           -> conversation_ttl
    - search result page          -> search_ttl
    - per-conversation key index  -> key_index_ttl (must outlive the pages it tracks)
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
    )

    enabled: bool = Field(default=True, description="Master switch; disabled cache reads always miss")

    message_ttl: int = Field(default=3600, description="TTL of a cached single message (seconds)")

    conversation_ttl: int = Field(default=300, description="TTL of a cached conversation page (seconds)")

    search_ttl: int = Field(default=300, description="TTL of a cached search result page (seconds)")

    key_index_ttl: int = Field(
        default=3600,
        description="TTL of the per-conversation sets that track live page keys"
    )

    # Monitoring
    log_cache_hits: bool = Field(default=False)

    log_cache_misses: bool = Field(default=False)

    slow_operation_threshold_ms: int = Field(default=100)


@lru_cache(maxsize=1)
def get_cache_config() -> CacheConfig:
    """Get cache configuration singleton (cached)."""
    return CacheConfig()


def reset_cache_config() -> None:
    """Reset config singleton (for testing)."""
    get_cache_config.cache_clear()
