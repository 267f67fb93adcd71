# =============================================================================
# File: app/config/app_config.py
# Description: Application-level settings (HTTP server, API prefix, CORS)
# =============================================================================

from functools import lru_cache
from typing import List

from pydantic import Field

from app.common.base.base_config import BaseConfig


class AppConfig(BaseConfig):
    """HTTP server and process-wide settings. Variables carry no prefix."""

    app_name: str = Field(
        default="message-service",
        description="Service name, sent as the 'source' header on published events"
    )

    environment: str = Field(
        default="development",
        description="Deployment environment (development, staging, production)"
    )

    host: str = Field(default="0.0.0.0", description="HTTP bind address")

    port: int = Field(default=3000, description="HTTP port")

    api_prefix: str = Field(
        default="/v1/api",
        description="URI prefix for versioned API routes"
    )

    cors_allowed_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    search_indexer_enabled: bool = Field(
        default=True,
        description="Run the Kafka -> Elasticsearch indexer inside the API process"
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def get_cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """Get application configuration singleton (cached)."""
    return AppConfig()
