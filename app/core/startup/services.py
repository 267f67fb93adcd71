# app/core/startup/services.py
# =============================================================================
# File: app/core/startup/services.py
# Description: Application services and the in-process search indexer
# =============================================================================

import logging
from app.core.fastapi_types import FastAPI

from app.config.app_config import get_app_config
from app.config.cache_config import get_cache_config
from app.config.kafka_config import get_kafka_config
from app.infra.event_bus.message_event_publisher import MessageEventPublisher
from app.infra.persistence.mongo.message_repository import MongoMessageRepository
from app.services.application.message_service import MessageApplicationService
from app.services.application.search_service import SearchApplicationService
from app.workers.search_indexer import MessageSearchIndexer

logger = logging.getLogger("message_service.startup.services")


async def initialize_services(app: FastAPI) -> None:
    """Wire repository, cache and publisher into the application services."""
    cache_config = get_cache_config()
    kafka_config = get_kafka_config()

    app.state.event_publisher = MessageEventPublisher(
        app.state.kafka_transport,
        topic=kafka_config.topic_messages,
        source=get_app_config().app_name,
    )

    app.state.message_service = MessageApplicationService(
        repository=MongoMessageRepository(),
        cache=app.state.cache_manager,
        publisher=app.state.event_publisher,
        cache_config=cache_config,
    )
    app.state.search_service = SearchApplicationService(
        search_index=app.state.search_index,
        cache=app.state.cache_manager,
        cache_config=cache_config,
    )
    logger.info("Message and search services initialized.")


async def start_search_indexer(app: FastAPI) -> None:
    """Subscribe the indexer to the message topic unless it runs as a separate worker."""
    if not get_app_config().search_indexer_enabled:
        logger.info("In-process search indexer disabled (SEARCH_INDEXER_ENABLED=false)")
        return

    kafka_config = get_kafka_config()
    app.state.search_indexer = MessageSearchIndexer(app.state.search_index, app.state.search_service)
    await app.state.kafka_transport.subscribe(
        kafka_config.topic_messages,
        kafka_config.group_id,
        app.state.search_indexer.handle,
        from_beginning=False,
    )
    logger.info(f"Search indexer subscribed to '{kafka_config.topic_messages}' "
                f"(group={kafka_config.group_id})")
