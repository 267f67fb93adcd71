# app/core/startup/__init__.py
# =============================================================================
# File: app/core/startup/__init__.py
# Description: Startup module exports
# =============================================================================

from app.core.startup.infrastructure import (
    initialize_databases,
    initialize_cache,
    initialize_event_infrastructure,
    initialize_search
)

from app.core.startup.services import (
    initialize_services,
    start_search_indexer
)

__all__ = [
    "initialize_databases",
    "initialize_cache",
    "initialize_event_infrastructure",
    "initialize_search",
    "initialize_services",
    "start_search_indexer"
]
