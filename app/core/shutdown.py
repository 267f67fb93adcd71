# app/core/shutdown.py
# =============================================================================
# File: app/core/shutdown.py
# Description: Graceful shutdown in reverse order of startup
# =============================================================================

import asyncio
import logging
from app.core.fastapi_types import FastAPI

from app.infra.persistence.mongo_client import close_app_mongo
from app.infra.persistence.redis_client import close_app_redis
from app.infra.search.elasticsearch_client import close_app_elasticsearch

logger = logging.getLogger("message_service.shutdown")


async def shutdown_all_services(app: FastAPI) -> None:
    """Shutdown all services in the correct order"""

    # Prevent duplicate shutdowns
    if getattr(app, '_shutdown_in_progress', False):
        logger.warning("Shutdown already in progress, skipping")
        return

    app._shutdown_in_progress = True

    # Phase 1: Stop consumers and the producer
    await shutdown_event_transport(app)

    # Phase 2: Close Elasticsearch
    await close_app_elasticsearch(app)

    # Phase 3: Close Redis
    await close_app_redis(app)

    # Phase 4: Close MongoDB
    await close_app_mongo(app)


async def shutdown_event_transport(app: FastAPI) -> None:
    transport = getattr(app.state, "kafka_transport", None)
    if transport is None:
        return
    try:
        # consumer.stop() can hang; the adapter bounds each stop, this bounds the whole close
        async with asyncio.timeout(15.0):
            await transport.close()
        logger.info("Kafka transport closed")
    except TimeoutError:
        logger.error("Kafka transport close timed out after 15s, forcing cleanup")
    except Exception as e:
        logger.error(f"Error closing Kafka transport: {e}")
