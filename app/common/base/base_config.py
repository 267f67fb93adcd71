# app/common/base/base_config.py
# =============================================================================
# BaseConfig - Foundation for all Message Service configuration classes
#
# - SettingsConfigDict (Pydantic v2)
# - Automatic .env file loading
# - Case-insensitive environment variables
# - Nested config support via __ delimiter
# - SecretStr for sensitive values
# - @lru_cache singleton pattern for factory functions
#
# Usage:
#     from app.common.base.base_config import BaseConfig
#     from pydantic_settings import SettingsConfigDict
#
#     class KafkaConfig(BaseConfig):
#         model_config = SettingsConfigDict(env_prefix="KAFKA_")
#         brokers: str = "localhost:9092"
#
#     @lru_cache(maxsize=1)
#     def get_kafka_config() -> KafkaConfig:
#         return KafkaConfig()
# =============================================================================

from typing import Any, Dict

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class for all service configs.

    Environment Variable Naming:
    - Each infrastructure config uses its own prefix (MONGODB_, KAFKA_,
      ELASTICSEARCH_, REDIS_, CACHE_, THROTTLE_)
    - Application-wide settings (PORT, APP_NAME) carry no prefix

    Secrets Handling:
    - Sensitive fields use SecretStr and are masked in logs and repr
    - Access raw value via .get_secret_value() when needed

    Singleton Pattern:
    - Each config has a factory function with @lru_cache(maxsize=1)
    - Tests call factory.cache_clear() after changing the environment
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """Convert config to dictionary.

        Args:
            mask_secrets: If True (default), SecretStr values are masked.

        Returns:
            Dictionary representation of the config.
        """
        if mask_secrets:
            return self.model_dump()

        data = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if isinstance(value, SecretStr):
                data[field_name] = value.get_secret_value()
            else:
                data[field_name] = value
        return data

    def __repr__(self) -> str:
        """Safe repr that masks secrets."""
        class_name = self.__class__.__name__
        fields = []
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if isinstance(value, SecretStr):
                fields.append(f"{field_name}=SecretStr('**********')")
            else:
                fields.append(f"{field_name}={value!r}")
        return f"{class_name}({', '.join(fields)})"
