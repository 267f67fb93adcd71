# app/core/startup/infrastructure.py
# =============================================================================
# File: app/core/startup/infrastructure.py
# Description: Core infrastructure initialization (MongoDB, Redis, Kafka, Elasticsearch)
# =============================================================================

import logging
from app.core.fastapi_types import FastAPI

from app.common.exceptions.exceptions import SearchIndexError
from app.config.cache_config import get_cache_config
from app.config.elasticsearch_config import get_elasticsearch_config
from app.config.kafka_config import get_kafka_config
from app.config.redis_config import get_redis_config
from app.infra.event_bus.kafka_adapter import KafkaTransportAdapter
from app.infra.persistence.cache_manager import CacheManager
from app.infra.persistence.mongo_client import init_app_mongo
from app.infra.persistence.redis_client import init_app_redis
from app.infra.search.elasticsearch_client import init_app_elasticsearch
from app.infra.search.message_index import MessageSearchIndex

logger = logging.getLogger("message_service.startup.infrastructure")


async def initialize_databases(app: FastAPI) -> None:
    """
    Connect MongoDB and register document models.
    A failure here aborts startup: the service cannot run without its store.
    """
    await init_app_mongo(app)
    logger.info("MongoDB initialized.")


async def initialize_cache(app: FastAPI) -> None:
    """Initialize Redis and Cache Manager"""
    redis_client = await init_app_redis(app)
    app.state.cache_manager = CacheManager(redis_client, get_cache_config(), get_redis_config().ttl)
    logger.info("Cache manager initialized.")


async def initialize_event_infrastructure(app: FastAPI) -> None:
    """Create the Kafka transport; the producer connects on first publish."""
    app.state.kafka_transport = KafkaTransportAdapter(get_kafka_config())
    logger.info("Kafka transport initialized.")


async def initialize_search(app: FastAPI) -> None:
    """
    Create the Elasticsearch client and make sure the message index exists.
    Index creation failures are logged; search requests will fail until
    Elasticsearch is reachable, everything else keeps working.
    """
    config = get_elasticsearch_config()
    client = init_app_elasticsearch(app, config)
    app.state.search_index = MessageSearchIndex(
        client,
        index_name=config.index,
        shards=config.shards,
        replicas=config.replicas,
    )

    try:
        await app.state.search_index.ensure_index()
    except SearchIndexError as e:
        logger.error(f"Elasticsearch index '{config.index}' not ready: {e}")
