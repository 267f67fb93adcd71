# =============================================================================
# File: app/config/elasticsearch_config.py
# Description: Elasticsearch connection and index settings
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from app.common.base.base_config import BaseConfig


class ElasticsearchConfig(BaseConfig):
    """Elasticsearch settings (ELASTICSEARCH_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="ELASTICSEARCH_",
    )

    node: str = Field(default="http://localhost:9200", description="Elasticsearch node URL")

    username: Optional[str] = Field(default=None)

    password: Optional[SecretStr] = Field(default=None)

    index: str = Field(default="messages", description="Index holding message documents")

    shards: int = Field(default=1, description="number_of_shards for a newly created index")

    replicas: int = Field(default=1, description="number_of_replicas for a newly created index")

    request_timeout: float = Field(default=10.0, description="Per-request timeout in seconds")


@lru_cache(maxsize=1)
def get_elasticsearch_config() -> ElasticsearchConfig:
    """Get Elasticsearch configuration singleton (cached)."""
    return ElasticsearchConfig()
