# =============================================================================
# File: app/config/redis_config.py
# Description: Configuration for Redis client with Pydantic v2
# =============================================================================
import socket
from functools import lru_cache
from typing import Optional, Dict, Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import SettingsConfigDict

from app.common.base.base_config import BaseConfig


# noinspection PyMethodParameters
class RedisConfig(BaseConfig):
    """
    Configuration for the Redis cache client.

    This configuration controls:
    - Connection settings (host, port, password, db)
    - Socket tuning
    - The default entry TTL
    """

    model_config = SettingsConfigDict(
        env_prefix='REDIS_',
    )

    # =========================================================================
    # Connection Settings
    # =========================================================================

    host: str = Field(default="localhost", description="Redis host")

    port: int = Field(default=6379, description="Redis port")

    password: Optional[SecretStr] = Field(
        default=None,
        description="Redis password (unset for no auth)"
    )

    db: int = Field(default=0, description="Redis logical database")

    ttl: int = Field(
        default=3600,
        description="Default cache entry TTL in seconds"
    )

    max_connections: int = Field(
        default=50,
        description="Maximum number of connections in the pool"
    )

    # Socket settings
    socket_timeout: float = Field(
        default=5.0,
        description="Socket timeout in seconds"
    )

    socket_connect_timeout: float = Field(
        default=3.0,
        description="Socket connection timeout in seconds"
    )

    socket_keepalive: bool = Field(
        default=True,
        description="Enable TCP keepalive"
    )

    socket_keepalive_interval: int = Field(
        default=60,
        description="TCP keepalive interval in seconds"
    )

    @field_validator('password', mode='before')
    def _empty_password_is_none(cls, value):
        # REDIS_PASSWORD=null or an empty value means no auth
        if value is None or (isinstance(value, str) and value.strip().lower() in ("", "null", "none")):
            return None
        return value

    @property
    def redis_url(self) -> str:
        return f"redis://{self.host}:{self.port}/{self.db}"

    def get_connection_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for redis.asyncio.from_url()"""
        kwargs: Dict[str, Any] = {
            "decode_responses": True,
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "socket_keepalive": self.socket_keepalive,
        }
        if self.password is not None:
            kwargs["password"] = self.password.get_secret_value()
        return kwargs

    def get_socket_keepalive_options(self) -> Dict[int, int]:
        options = {}
        if hasattr(socket, "TCP_KEEPIDLE"):
            options[socket.TCP_KEEPIDLE] = self.socket_keepalive_interval
        if hasattr(socket, "TCP_KEEPINTVL"):
            options[socket.TCP_KEEPINTVL] = max(1, self.socket_keepalive_interval // 3)
        if hasattr(socket, "TCP_KEEPCNT"):
            options[socket.TCP_KEEPCNT] = 3
        return options


@lru_cache(maxsize=1)
def get_redis_config() -> RedisConfig:
    """Get Redis configuration singleton (cached)."""
    return RedisConfig()
