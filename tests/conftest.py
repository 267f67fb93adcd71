"""Shared test fixtures: fakes wired into the real services."""

import pytest
from fastapi.testclient import TestClient

from app.config.cache_config import CacheConfig
from app.config.reliability_config import RateLimiterConfig
from app.infra.event_bus.message_event_publisher import MessageEventPublisher
from app.infra.persistence.cache_manager import CacheManager
from app.infra.reliability.rate_limiter import RateLimiter
from app.infra.search.message_index import MessageSearchIndex
from app.security.tenant_context import TenantContext
from app.services.application.message_service import MessageApplicationService
from app.services.application.search_service import SearchApplicationService
from app.workers.search_indexer import MessageSearchIndexer
from tests.fakes.fake_elasticsearch import FakeElasticsearch
from tests.fakes.fake_kafka_transport import FakeKafkaTransport
from tests.fakes.fake_message_repository import FakeMessageRepository
from tests.fakes.fake_redis import FakeRedis

TOPIC = "message-events"
AUTH_HEADERS = {"Authorization": "Bearer test-token", "x-tenant-id": "tenant-a"}


@pytest.fixture
def tenant() -> TenantContext:
    return TenantContext.of("tenant-a")


@pytest.fixture
def other_tenant() -> TenantContext:
    return TenantContext.of("tenant-b")


@pytest.fixture
def cache_config() -> CacheConfig:
    return CacheConfig(
        enabled=True,
        message_ttl=3600,
        conversation_ttl=300,
        search_ttl=300,
        key_index_ttl=3600,
    )


@pytest.fixture
def repository() -> FakeMessageRepository:
    return FakeMessageRepository()


@pytest.fixture
def redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(redis, cache_config) -> CacheManager:
    return CacheManager(redis, cache_config)


@pytest.fixture
def transport() -> FakeKafkaTransport:
    return FakeKafkaTransport()


@pytest.fixture
def publisher(transport) -> MessageEventPublisher:
    return MessageEventPublisher(transport, topic=TOPIC, source="message-service")


@pytest.fixture
def es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest.fixture
def search_index(es) -> MessageSearchIndex:
    return MessageSearchIndex(es, index_name="messages", shards=1, replicas=1)


@pytest.fixture
def message_service(repository, cache, publisher, cache_config) -> MessageApplicationService:
    return MessageApplicationService(repository, cache, publisher, cache_config)


@pytest.fixture
def search_service(search_index, cache, cache_config) -> SearchApplicationService:
    return SearchApplicationService(search_index, cache, cache_config)


@pytest.fixture
def indexer(search_index, search_service) -> MessageSearchIndexer:
    return MessageSearchIndexer(search_index, search_service)


@pytest.fixture
def rate_limit_config() -> RateLimiterConfig:
    return RateLimiterConfig(enabled=True, ttl=60, limit=10_000)


@pytest.fixture
def api_app(message_service, search_service, search_index, indexer, transport, cache, redis, rate_limit_config):
    """Application without lifespan; state is populated with the fakes."""
    from app.server import create_app

    application = create_app(lifespan_handler=None, rate_limiter=RateLimiter(config=rate_limit_config))

    transport.auto_deliver = True
    transport.handlers[TOPIC] = indexer.handle

    application.state.redis = redis
    application.state.kafka_transport = transport
    application.state.cache_manager = cache
    application.state.search_index = search_index
    application.state.search_indexer = indexer
    application.state.message_service = message_service
    application.state.search_service = search_service
    return application


@pytest.fixture
def client(api_app):
    with TestClient(api_app) as test_client:
        yield test_client
