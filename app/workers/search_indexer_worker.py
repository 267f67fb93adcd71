# =============================================================================
# File: app/workers/search_indexer_worker.py
# Description: Standalone search indexer process
# Run: python -m app.workers.search_indexer_worker
# =============================================================================

"""
Search Indexer Worker

Consumes message lifecycle events from Kafka and applies them to the
Elasticsearch index. Same handler as the in-process indexer started by the
API lifespan; use this when the API runs with SEARCH_INDEXER_ENABLED=false.
"""

import asyncio
import logging
import os
import signal
import sys
from typing import Optional

from elasticsearch import AsyncElasticsearch

from app.common.exceptions.exceptions import SearchIndexError
from app.config.cache_config import get_cache_config
from app.config.elasticsearch_config import get_elasticsearch_config
from app.config.kafka_config import KafkaConfig, get_kafka_config
from app.config.logging_config import log_section, setup_logging
from app.config.redis_config import get_redis_config
from app.infra.event_bus.kafka_adapter import KafkaTransportAdapter
from app.infra.persistence.cache_manager import CacheManager
from app.infra.persistence.redis_client import build_redis_client
from app.infra.search.elasticsearch_client import build_elasticsearch_client, close_elasticsearch_client
from app.infra.search.message_index import MessageSearchIndex
from app.services.application.search_service import SearchApplicationService
from app.workers.search_indexer import MessageSearchIndexer

log = logging.getLogger("message_service.workers.search_indexer_worker")


class SearchIndexerWorker:
    """Owns the connections of the standalone indexer process."""

    def __init__(self, kafka_config: Optional[KafkaConfig] = None):
        self.kafka_config = kafka_config or get_kafka_config()
        self.transport: Optional[KafkaTransportAdapter] = None
        self.es_client: Optional[AsyncElasticsearch] = None
        self.redis = None
        self.indexer: Optional[MessageSearchIndexer] = None
        self._shutdown_event = asyncio.Event()

    async def initialize(self) -> None:
        es_config = get_elasticsearch_config()
        self.es_client = build_elasticsearch_client(es_config)
        search_index = MessageSearchIndex(
            self.es_client,
            index_name=es_config.index,
            shards=es_config.shards,
            replicas=es_config.replicas,
        )
        try:
            await search_index.ensure_index()
        except SearchIndexError as e:
            log.error(f"Could not ensure index '{es_config.index}': {e}")

        self.redis = build_redis_client(get_redis_config())
        cache = CacheManager(self.redis, get_cache_config(), get_redis_config().ttl)
        self.indexer = MessageSearchIndexer(search_index, SearchApplicationService(search_index, cache))

        self.transport = KafkaTransportAdapter(self.kafka_config)

    async def start(self) -> None:
        await self.transport.subscribe(
            self.kafka_config.topic_messages,
            self.kafka_config.group_id,
            self.indexer.handle,
            from_beginning=False,
        )
        log.info(f"Search indexer consuming '{self.kafka_config.topic_messages}' "
                 f"(group={self.kafka_config.group_id})")

    async def wait_for_shutdown(self) -> None:
        await self._shutdown_event.wait()

    def handle_signal(self, sig, frame=None) -> None:
        log.info(f"Received signal {sig}, shutting down...")
        self._shutdown_event.set()

    async def stop(self) -> None:
        if self.transport:
            await self.transport.close()
        await close_elasticsearch_client(self.es_client)
        if self.redis:
            try:
                await self.redis.aclose()
            except Exception as e:
                log.warning(f"Error closing Redis: {e}")
        if self.indexer:
            log.info(f"Indexer processed {self.indexer.processed} events, dropped {self.indexer.dropped}")


async def run_worker() -> None:
    setup_logging(
        service_name="search-indexer",
        log_file=os.getenv("WORKER_LOG_FILE"),
        enable_json=os.getenv("ENVIRONMENT") == "production",
        service_type="worker",
    )
    log_section(log, "Search Indexer Worker")

    worker = SearchIndexerWorker()
    try:
        await worker.initialize()
        await worker.start()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, worker.handle_signal, sig)

        await worker.wait_for_shutdown()
    except Exception as e:
        log.error(f"Worker failed: {e}", exc_info=True)
        raise
    finally:
        try:
            await asyncio.wait_for(worker.stop(), timeout=30.0)
            log.info("Graceful shutdown completed")
        except asyncio.TimeoutError:
            log.error("Graceful shutdown timed out")


def main():
    try:
        asyncio.run(run_worker())
    except KeyboardInterrupt:
        print("\nWorker interrupted")
    except Exception as e:
        print(f"Worker crashed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
