# =============================================================================
# File: app/infra/search/elasticsearch_client.py
# =============================================================================
# Per-app Elasticsearch client for FastAPI lifespan and workers.
# • Built from ElasticsearchConfig (ELASTICSEARCH_NODE / credentials)
# • Stored on app.state.elasticsearch
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from elasticsearch import AsyncElasticsearch

from app.config.elasticsearch_config import ElasticsearchConfig, get_elasticsearch_config

log = logging.getLogger("message_service.infra.elasticsearch_client")


def build_elasticsearch_client(config: Optional[ElasticsearchConfig] = None) -> AsyncElasticsearch:
    config = config or get_elasticsearch_config()

    opts: Dict[str, Any] = {"request_timeout": config.request_timeout}
    if config.username and config.password:
        opts["basic_auth"] = (config.username, config.password.get_secret_value())

    return AsyncElasticsearch(config.node, **opts)


def init_app_elasticsearch(app, config: Optional[ElasticsearchConfig] = None) -> AsyncElasticsearch:
    """
    Per-app Elasticsearch client for FastAPI lifespan.
    The client connects lazily; nothing is sent until the first request.
    """
    config = config or get_elasticsearch_config()
    app.state.elasticsearch = build_elasticsearch_client(config)
    log.info(f"Elasticsearch client created ({config.node})")
    return app.state.elasticsearch


async def close_elasticsearch_client(client: Optional[AsyncElasticsearch]) -> None:
    if client is None:
        return
    try:
        await client.close()
        log.info("Elasticsearch client closed.")
    except Exception as e:
        log.warning(f"Error closing Elasticsearch client: {e}", exc_info=True)


async def close_app_elasticsearch(app) -> None:
    await close_elasticsearch_client(getattr(app.state, "elasticsearch", None))
    app.state.elasticsearch = None
