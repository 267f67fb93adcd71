# app/infra/metrics/message_metrics.py
"""
Message service metrics - Prometheus export

Counters for the cache layer, event publication, event consumption and
inbound throttling. Exposed by the /metrics endpoint.
"""

from prometheus_client import Counter


# ============================================================================
# Cache Metrics
# ============================================================================

cache_operations_total = Counter(
    'message_service_cache_operations_total',
    'Cache operations by key family and outcome',
    ['family', 'result']  # result: hit, miss, set, delete, error
)


# ============================================================================
# Event Metrics
# ============================================================================

events_published_total = Counter(
    'message_service_events_published_total',
    'Message lifecycle events handed to Kafka',
    ['event_type', 'status']  # status: success, failure
)

events_consumed_total = Counter(
    'message_service_events_consumed_total',
    'Message lifecycle events processed by the search indexer',
    ['event_type', 'status']  # status: indexed, dropped, failed
)


# ============================================================================
# HTTP Metrics
# ============================================================================

http_requests_throttled_total = Counter(
    'message_service_http_requests_throttled_total',
    'Requests rejected by the global rate limiter'
)


def key_family(key: str) -> str:
    """Metric label for a cache key: its first segment ("message", "search", ...)."""
    return key.split(":", 1)[0] if key else "unknown"
