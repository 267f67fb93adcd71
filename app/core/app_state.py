# app/core/app_state.py
# =============================================================================
# File: app/core/app_state.py
# Description: Application state definition and global state management
# =============================================================================

from typing import Optional
from datetime import datetime, timezone

from elasticsearch import AsyncElasticsearch
from pymongo import AsyncMongoClient
import redis.asyncio as redis

from app.infra.event_bus.kafka_adapter import KafkaTransportAdapter
from app.infra.event_bus.message_event_publisher import MessageEventPublisher
from app.infra.persistence.cache_manager import CacheManager
from app.infra.search.message_index import MessageSearchIndex
from app.services.application.message_service import MessageApplicationService
from app.services.application.search_service import SearchApplicationService
from app.workers.search_indexer import MessageSearchIndexer


# =============================================================================
# APP STATE TYPE DEFINITION
# =============================================================================
class AppState:
    """Type definition for FastAPI app.state with proper type hints"""

    def __init__(self):
        # Core infrastructure
        self.mongo_client: Optional[AsyncMongoClient] = None
        self.redis: Optional[redis.Redis] = None
        self.elasticsearch: Optional[AsyncElasticsearch] = None
        self.kafka_transport: Optional[KafkaTransportAdapter] = None
        self.cache_manager: Optional[CacheManager] = None

        # Search
        self.search_index: Optional[MessageSearchIndex] = None
        self.search_indexer: Optional[MessageSearchIndexer] = None

        # Services
        self.event_publisher: Optional[MessageEventPublisher] = None
        self.message_service: Optional[MessageApplicationService] = None
        self.search_service: Optional[SearchApplicationService] = None


# =============================================================================
# GLOBAL STATE
# =============================================================================
_START_TIME = datetime.now(timezone.utc)


def get_start_time() -> datetime:
    """Get application start time"""
    return _START_TIME
