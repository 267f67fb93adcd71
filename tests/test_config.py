"""Environment-driven settings."""

import pytest

from app.config.app_config import AppConfig
from app.config.cache_config import CacheConfig
from app.config.elasticsearch_config import ElasticsearchConfig
from app.config.kafka_config import KafkaConfig, get_kafka_config
from app.config.mongo_config import MongoConfig
from app.config.redis_config import RedisConfig
from app.config.reliability_config import RateLimiterConfig


@pytest.fixture(autouse=True)
def clear_cached_kafka_config():
    get_kafka_config.cache_clear()
    yield
    get_kafka_config.cache_clear()


def test_defaults():
    assert AppConfig().port == 3000
    assert AppConfig().api_prefix == "/v1/api"
    assert KafkaConfig().topic_messages == "message-events"
    assert ElasticsearchConfig().index == "messages"
    assert RateLimiterConfig().limit == 1000
    assert RateLimiterConfig().ttl == 60


def test_prefixed_overrides(monkeypatch):
    monkeypatch.setenv("KAFKA_BROKERS", "k1:9092, k2:9092")
    monkeypatch.setenv("THROTTLE_LIMIT", "5")
    monkeypatch.setenv("CACHE_SEARCH_TTL", "30")
    monkeypatch.setenv("PORT", "8080")

    assert get_kafka_config().get_bootstrap_servers() == ["k1:9092", "k2:9092"]
    assert RateLimiterConfig().limit == 5
    assert CacheConfig().search_ttl == 30
    assert AppConfig().port == 8080


def test_getter_is_cached_until_cleared(monkeypatch):
    first = get_kafka_config()
    monkeypatch.setenv("KAFKA_GROUP_ID", "other-group")

    assert get_kafka_config() is first
    get_kafka_config.cache_clear()
    assert get_kafka_config().group_id == "other-group"


def test_producer_acks_are_typed():
    assert KafkaConfig(acks="1").get_producer_config()["acks"] == 1
    assert KafkaConfig(acks="all").get_producer_config()["acks"] == "all"
    assert KafkaConfig().get_consumer_config()["enable_auto_commit"] is False


def test_mongo_database_from_uri():
    assert MongoConfig(uri="mongodb://localhost:27017/chat?authSource=admin").get_database_name() == "chat"
    assert MongoConfig(uri="mongodb://localhost:27017").get_database_name() == "message-db"
    assert MongoConfig(uri="mongodb://localhost:27017/chat", database="other").get_database_name() == "other"


@pytest.mark.parametrize("value", ["", "null", "None"])
def test_blank_redis_password_means_no_auth(monkeypatch, value):
    monkeypatch.setenv("REDIS_PASSWORD", value)

    config = RedisConfig()

    assert config.password is None
    assert "password" not in config.get_connection_kwargs()


def test_secrets_are_masked():
    config = ElasticsearchConfig(username="elastic", password="s3cret")

    assert "s3cret" not in repr(config)
    assert config.to_dict(mask_secrets=False)["password"] == "s3cret"


def test_cors_origins_split():
    assert AppConfig(cors_allowed_origins="https://a.example, https://b.example").get_cors_origins() == [
        "https://a.example",
        "https://b.example",
    ]


@pytest.mark.parametrize("config_class,prefix", [
    (KafkaConfig, "KAFKA_"),
    (MongoConfig, "MONGODB_"),
    (RedisConfig, "REDIS_"),
    (CacheConfig, "CACHE_"),
    (ElasticsearchConfig, "ELASTICSEARCH_"),
    (RateLimiterConfig, "THROTTLE_"),
    (AppConfig, ""),
])
def test_prefixed_configs_keep_base_settings(config_class, prefix):
    model_config = config_class.model_config

    assert model_config["env_prefix"] == prefix
    assert model_config["env_file"] == ".env"
    assert model_config["case_sensitive"] is False
    assert model_config["extra"] == "ignore"


def test_env_names_are_case_insensitive(monkeypatch):
    monkeypatch.setenv("elasticsearch_index", "messages-v2")

    assert ElasticsearchConfig().index == "messages-v2"
