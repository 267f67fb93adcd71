# =============================================================================
# File: app/infra/persistence/mongo_client.py
# =============================================================================
# Per-app MongoDB client for FastAPI lifespan and workers.
# • Builds a pymongo AsyncMongoClient from MongoConfig
# • Registers beanie document models (creates declared indexes)
# • Stores the client on app.state.mongo_client
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from beanie import init_beanie
from pymongo import AsyncMongoClient

from app.config.mongo_config import MongoConfig, get_mongo_config
from app.infra.persistence.mongo.message_document import MessageDocument

log = logging.getLogger("message_service.infra.mongo_client")

DOCUMENT_MODELS = [MessageDocument]


async def create_mongo_client(config: Optional[MongoConfig] = None) -> AsyncMongoClient:
    """Connect, register document models and return the client."""
    config = config or get_mongo_config()

    client: AsyncMongoClient = AsyncMongoClient(
        config.uri,
        serverSelectionTimeoutMS=config.server_selection_timeout_ms,
        tz_aware=True,
    )
    database_name = config.get_database_name()

    try:
        await init_beanie(database=client[database_name], document_models=DOCUMENT_MODELS)
    except Exception:
        await client.close()
        raise

    log.info(f"MongoDB connected (database={database_name})")
    return client


async def init_app_mongo(app, config: Optional[MongoConfig] = None) -> AsyncMongoClient:
    """
    Per-app MongoDB client for FastAPI lifespan.
    Usage: await init_app_mongo(app)
    """
    app.state.mongo_client = await create_mongo_client(config)
    return app.state.mongo_client


async def close_mongo_client(client: Optional[AsyncMongoClient]) -> None:
    if client is None:
        return
    try:
        await client.close()
        log.info("MongoDB client closed.")
    except Exception as e:
        log.warning(f"Error closing MongoDB client: {e}", exc_info=True)


async def close_app_mongo(app) -> None:
    await close_mongo_client(getattr(app.state, "mongo_client", None))
    app.state.mongo_client = None


async def health_check(client: Optional[AsyncMongoClient]) -> Dict[str, Any]:
    if client is None:
        return {"is_healthy": False, "error": "not initialized"}
    try:
        await client.admin.command("ping")
        return {"is_healthy": True}
    except Exception as e:
        log.error(f"MongoDB health check failed: {e}")
        return {"is_healthy": False, "error": str(e)}
