# =============================================================================
# File: app/config/kafka_config.py
# Description: Kafka producer/consumer settings for the message event stream
# =============================================================================

from functools import lru_cache
from typing import Any, Dict, List

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from app.common.base.base_config import BaseConfig


# noinspection PyMethodParameters
class KafkaConfig(BaseConfig):
    """
    Kafka settings (KAFKA_ prefix).

    Controls:
    - Bootstrap servers and client identity
    - The consumer group used by the search indexer
    - The topic carrying message lifecycle events
    """

    model_config = SettingsConfigDict(
        env_prefix="KAFKA_",
    )

    # =========================================================================
    # Connection Settings
    # =========================================================================

    brokers: str = Field(
        default="localhost:9092",
        description="Comma-separated list of bootstrap servers"
    )

    client_id: str = Field(default="message-app", description="Kafka client id")

    group_id: str = Field(
        default="message-consumer",
        description="Consumer group of the search indexer"
    )

    topic_messages: str = Field(
        default="message-events",
        description="Topic carrying message lifecycle events"
    )

    # =========================================================================
    # Producer Settings
    # =========================================================================

    acks: str = Field(default="all", description="Producer acks: 0, 1 or all")

    request_timeout_ms: int = Field(default=30000)

    # =========================================================================
    # Consumer Settings
    # =========================================================================

    poll_timeout_ms: int = Field(default=1000, description="getmany() timeout")

    max_poll_records: int = Field(default=100)

    session_timeout_ms: int = Field(default=30000)

    def get_bootstrap_servers(self) -> List[str]:
        return [broker.strip() for broker in self.brokers.split(",") if broker.strip()]

    def get_producer_config(self) -> Dict[str, Any]:
        acks: Any = self.acks
        if acks in ("0", "1"):
            acks = int(acks)
        return {
            "bootstrap_servers": self.get_bootstrap_servers(),
            "client_id": self.client_id,
            "acks": acks,
            "request_timeout_ms": self.request_timeout_ms,
        }

    def get_consumer_config(self) -> Dict[str, Any]:
        return {
            "bootstrap_servers": self.get_bootstrap_servers(),
            "client_id": self.client_id,
            "enable_auto_commit": False,
            "session_timeout_ms": self.session_timeout_ms,
            "max_poll_records": self.max_poll_records,
        }


@lru_cache(maxsize=1)
def get_kafka_config() -> KafkaConfig:
    """Get Kafka configuration singleton (cached)."""
    return KafkaConfig()
