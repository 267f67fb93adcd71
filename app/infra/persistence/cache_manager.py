# app/infra/persistence/cache_manager.py

"""
Centralized cache management for the message service.

All Redis access for cached reads goes through CacheManager. Every Redis
error is caught and logged here so callers never see cache failures: reads
degrade to a miss, writes report False.
"""
import asyncio
import json
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from app.config.cache_config import CacheConfig, get_cache_config
from app.config.redis_config import get_redis_config
from app.config.logging_config import get_logger
from app.infra.metrics.message_metrics import cache_operations_total, key_family

logger = get_logger("message_service.infra.cache_manager")

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_search_term(term: str) -> str:
    """Trim, lowercase and collapse internal whitespace runs to one space."""
    return _WHITESPACE_RUN.sub(" ", (term or "").strip().lower())


class CacheKeys:
    """
    Key builders for the cache families. Every key is namespaced by tenant.

    - message:{tenant}:{id}
    - conversation-messages:{tenant}:{cid}:{page}:{limit}:{sortField}:{sortDirection}
    - search:messages:{tenant}:{cid}:{normalizedTerm}:{page}:{limit}
    - conversation-keys:{tenant}:{cid} / search-keys:{tenant}:{cid} (sets of live page keys)
    """

    @staticmethod
    def message(tenant_id: str, message_id: str) -> str:
        return f"message:{tenant_id}:{message_id}"

    @staticmethod
    def conversation_page(
            tenant_id: str,
            conversation_id: str,
            page: int,
            limit: int,
            sort_field: Optional[str] = None,
            sort_direction: Optional[str] = None,
    ) -> str:
        return (
            f"conversation-messages:{tenant_id}:{conversation_id}:{page}:{limit}:"
            f"{sort_field or 'timestamp'}:{sort_direction or 'desc'}"
        )

    @staticmethod
    def search_page(tenant_id: str, conversation_id: str, term: str, page: int, limit: int) -> str:
        return f"search:messages:{tenant_id}:{conversation_id}:{normalize_search_term(term)}:{page}:{limit}"

    @staticmethod
    def conversation_index(tenant_id: str, conversation_id: str) -> str:
        return f"conversation-keys:{tenant_id}:{conversation_id}"

    @staticmethod
    def search_index(tenant_id: str, conversation_id: str) -> str:
        return f"search-keys:{tenant_id}:{conversation_id}"


class CacheMetrics:
    """Track cache performance metrics"""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self.slow_operations = 0
        self.total_operations = 0
        self.total_latency_ms = 0.0
        self.keys_deleted = 0
        self.reset_time = datetime.now(timezone.utc)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0

    @property
    def avg_latency_ms(self) -> float:
        return (self.total_latency_ms / self.total_operations) if self.total_operations > 0 else 0

    def to_dict(self) -> Dict:
        return {
            'hits': self.hits,
            'misses': self.misses,
            'errors': self.errors,
            'hit_rate': round(self.hit_rate, 2),
            'slow_operations': self.slow_operations,
            'total_operations': self.total_operations,
            'avg_latency_ms': round(self.avg_latency_ms, 2),
            'keys_deleted': self.keys_deleted,
            'uptime_seconds': (datetime.now(timezone.utc) - self.reset_time).total_seconds()
        }


class CacheManager:
    """
    Redis-backed key/value cache with per-entry TTL (seconds, stored via SETEX).
    Entries written without a TTL expire after default_ttl (REDIS_TTL).

    Besides plain get/set/delete it keeps per-conversation sets of live page
    keys so that every cached page of a conversation can be invalidated,
    without a pattern-delete primitive.
    """

    def __init__(self, redis_client, config: Optional[CacheConfig] = None, default_ttl: Optional[int] = None):
        self.redis = redis_client
        self.config = config or get_cache_config()
        self.default_ttl = default_ttl if default_ttl is not None else get_redis_config().ttl
        self.metrics = CacheMetrics()

        logger.info(f"Cache manager initialized (enabled={self.enabled})")

    @property
    def enabled(self) -> bool:
        return self.config.enabled and self.redis is not None

    def _track_operation(self, operation: str, key: str, start_time: float,
                         success: bool = True, hit: Optional[bool] = None) -> None:
        elapsed_ms = (time.time() - start_time) * 1000
        self.metrics.total_operations += 1
        self.metrics.total_latency_ms += elapsed_ms
        family = key_family(key)

        if not success:
            self.metrics.errors += 1
            cache_operations_total.labels(family=family, result="error").inc()
        elif hit is True:
            self.metrics.hits += 1
            cache_operations_total.labels(family=family, result="hit").inc()
            if self.config.log_cache_hits:
                logger.debug(f"Cache hit for key: {key}")
        elif hit is False:
            self.metrics.misses += 1
            cache_operations_total.labels(family=family, result="miss").inc()
            if self.config.log_cache_misses:
                logger.debug(f"Cache miss for key: {key}")
        else:
            cache_operations_total.labels(family=family, result=operation.lower()).inc()

        if elapsed_ms > self.config.slow_operation_threshold_ms:
            self.metrics.slow_operations += 1
            logger.warning(f"Slow cache operation: {operation} {key} took {elapsed_ms:.1f}ms")

    # === Generic Operations ===

    async def get(self, key: str) -> Optional[str]:
        if not self.enabled:
            return None

        start = time.time()
        try:
            value = await self.redis.get(key)
            self._track_operation("GET", key, start, True, value is not None)
            return value
        except Exception as e:
            logger.error(f"Cache get error for {key}: {e}")
            self._track_operation("GET", key, start, False)
            return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        if not self.enabled:
            return False

        start = time.time()
        try:
            ttl = ttl or self.default_ttl
            if ttl:
                result = await self.redis.setex(key, ttl, value)
            else:
                result = await self.redis.set(key, value)
            self._track_operation("SET", key, start, True)
            return bool(result)
        except Exception as e:
            logger.error(f"Cache set error for {key}: {e}")
            self._track_operation("SET", key, start, False)
            return False

    async def get_json(self, key: str) -> Optional[Any]:
        data = await self.get(key)
        if data:
            try:
                return await asyncio.to_thread(json.loads, data)
            except json.JSONDecodeError:
                logger.error(f"Invalid JSON in cache for {key}")
        return None

    async def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            data = await asyncio.to_thread(json.dumps, value, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"JSON encoding error for {key}: {e}")
            return False
        return await self.set(key, data, ttl)

    async def delete(self, *keys: str) -> int:
        keys = tuple(k for k in keys if k)
        if not self.enabled or not keys:
            return 0

        start = time.time()
        try:
            deleted = await self.redis.delete(*keys)
            self.metrics.keys_deleted += deleted
            self._track_operation("DELETE", keys[0], start, True)
            logger.debug(f"Cache invalidated: {', '.join(keys)}")
            return deleted
        except Exception as e:
            logger.error(f"Cache delete error for {', '.join(keys)}: {e}")
            self._track_operation("DELETE", keys[0], start, False)
            return 0

    # === Key Tracking ===

    async def track_key(self, index_key: str, key: str, ttl: Optional[int] = None) -> bool:
        """Remember a live cache key under a per-conversation set."""
        if not self.enabled:
            return False
        try:
            await self.redis.sadd(index_key, key)
            await self.redis.expire(index_key, ttl or self.config.key_index_ttl)
            return True
        except Exception as e:
            logger.error(f"Cache key tracking error for {index_key}: {e}")
            return False

    async def invalidate_tracked(self, index_key: str, extra_keys: Iterable[str] = ()) -> int:
        """Delete every key recorded under index_key, the set itself and any extra keys."""
        if not self.enabled:
            return 0
        try:
            members = await self.redis.smembers(index_key)
        except Exception as e:
            logger.error(f"Cache key index read error for {index_key}: {e}")
            members = set()

        keys = sorted(set(members) | set(extra_keys))
        return await self.delete(*keys, index_key)

    # === Health ===

    async def health_check(self) -> Dict[str, Any]:
        if self.redis is None:
            return {"healthy": False, "enabled": False, "metrics": self.metrics.to_dict()}
        try:
            await self.redis.ping()
            healthy = True
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            healthy = False
        return {"healthy": healthy, "enabled": self.enabled, "metrics": self.metrics.to_dict()}
