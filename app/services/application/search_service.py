# =============================================================================
# File: app/services/application/search_service.py
# Description: Full-text search over a conversation, cached per normalized term
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from app.config.cache_config import CacheConfig, get_cache_config
from app.infra.persistence.cache_manager import CacheKeys, CacheManager
from app.infra.search.message_index import MessageSearchIndex
from app.message.exceptions import EmptySearchTermError
from app.message.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, PaginatedMessages, coerce_page_limit
from app.security.tenant_context import TenantContext

log = logging.getLogger("message_service.services.search")


class SearchApplicationService:
    """
    Read-through cache in front of MessageSearchIndex.

    Cached result pages are recorded under a per-conversation set so the
    indexer can drop all of them when the conversation's documents change.
    """

    def __init__(
            self,
            search_index: MessageSearchIndex,
            cache: CacheManager,
            cache_config: Optional[CacheConfig] = None,
    ):
        self.search_index = search_index
        self.cache = cache
        self.cache_config = cache_config or get_cache_config()

    async def search_messages(
            self,
            tenant: TenantContext,
            conversation_id: str,
            term: str,
            page: int = DEFAULT_PAGE,
            limit: int = DEFAULT_LIMIT,
    ) -> PaginatedMessages:
        tenant_id = tenant.tenant_id
        if not term or not term.strip():
            raise EmptySearchTermError()
        page, limit = coerce_page_limit(page, limit)

        cache_key = CacheKeys.search_page(tenant_id, conversation_id, term, page, limit)
        cached = await self.cache.get_json(cache_key)
        if cached:
            try:
                return PaginatedMessages.from_dict(cached)
            except (KeyError, ValueError) as e:
                log.warning(f"Discarding unreadable cache entry {cache_key}: {e}")

        result = await self.search_index.search(conversation_id, tenant_id, term, page, limit)

        ttl = self.cache_config.search_ttl
        if await self.cache.set_json(cache_key, result.to_dict(), ttl):
            await self.cache.track_key(
                CacheKeys.search_index(tenant_id, conversation_id), cache_key,
                max(ttl, self.cache_config.key_index_ttl),
            )
        return result

    async def invalidate_search_cache(self, tenant: TenantContext, conversation_id: str) -> int:
        """Drop every cached search page of the conversation. Returns the number of keys removed."""
        deleted = await self.cache.invalidate_tracked(CacheKeys.search_index(tenant.tenant_id, conversation_id))
        log.debug(f"Invalidated {deleted} search cache keys for {conversation_id} (tenant={tenant.tenant_id})")
        return deleted

    async def notify_content_changed(self, tenant: TenantContext, conversation_id: str) -> None:
        await self.invalidate_search_cache(tenant, conversation_id)
