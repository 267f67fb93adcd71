# app/core/health.py
# =============================================================================
# File: app/core/health.py
# Description: Health check endpoints for the application
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Dict, Any
from app.core.fastapi_types import FastAPI

from app.core import __version__
from app.core.app_state import get_start_time
from app.config.app_config import get_app_config
from app.config.kafka_config import get_kafka_config
from app.infra.persistence import mongo_client, redis_client

logger = logging.getLogger("message_service.health")


def register_health_endpoints(app: FastAPI) -> None:
    """Register health check endpoints directly on the app"""

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, Any]:
        """Dependency status; 'degraded' when any backing service is unreachable"""
        return await get_health_status(app)

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with API information"""
        return get_root_info(app)


async def get_health_status(app: FastAPI) -> Dict[str, Any]:
    state = app.state

    mongo = await mongo_client.health_check(getattr(state, "mongo_client", None))
    redis = await redis_client.health_check(getattr(state, "redis", None))

    search_index = getattr(state, "search_index", None)
    elasticsearch = {"is_healthy": bool(search_index and await search_index.ping())}

    transport = getattr(state, "kafka_transport", None)
    kafka: Dict[str, Any] = {"is_healthy": bool(transport and await transport.ping())}
    if transport:
        kafka["stats"] = transport.get_stats()

    kafka_config = get_kafka_config()
    indexer = getattr(state, "search_indexer", None)
    indexer_status = {
        "enabled": get_app_config().search_indexer_enabled,
        "running": bool(transport and transport.is_consuming(kafka_config.topic_messages, kafka_config.group_id)),
        "processed": indexer.processed if indexer else 0,
        "dropped": indexer.dropped if indexer else 0,
    }

    components = {"mongodb": mongo, "redis": redis, "kafka": kafka, "elasticsearch": elasticsearch}
    healthy = all(c.get("is_healthy") for c in components.values())

    return {
        "status": "healthy" if healthy else "degraded",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": (datetime.now(timezone.utc) - get_start_time()).total_seconds(),
        "services": components,
        "search_indexer": indexer_status,
        "cache": (await state.cache_manager.health_check()) if getattr(state, "cache_manager", None) else None,
    }


def get_root_info(app: FastAPI) -> Dict[str, Any]:
    """Get root endpoint information"""
    config = get_app_config()
    return {
        "name": config.app_name,
        "version": __version__,
        "status": "running",
        "environment": config.environment,
        "api_prefix": config.api_prefix,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
