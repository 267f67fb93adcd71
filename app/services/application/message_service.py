# =============================================================================
# File: app/services/application/message_service.py
# Description: Message CRUD and conversation listing
# - MongoDB is the system of record; a failed write fails the request
# - Cache population, cache invalidation and event publication are
#   best-effort: failures are logged and the request still succeeds
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.config.cache_config import CacheConfig, get_cache_config
from app.infra.event_bus.message_event_publisher import MessageEventPublisher
from app.infra.persistence.cache_manager import CacheKeys, CacheManager
from app.message.entity import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    SORTABLE_FIELDS,
    Message,
)
from app.message.exceptions import InvalidSortFieldError
from app.message.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, PaginatedMessages, coerce_page_limit
from app.message.ports.message_repository_port import MessageRepositoryPort
from app.security.tenant_context import TenantContext
from app.utils.uuid_utils import generate_uuid_str

log = logging.getLogger("message_service.services.message")


class MessageApplicationService:
    """Orchestrates the message store, the cache and the event publisher."""

    def __init__(
            self,
            repository: MessageRepositoryPort,
            cache: CacheManager,
            publisher: MessageEventPublisher,
            cache_config: Optional[CacheConfig] = None,
    ):
        self.repository = repository
        self.cache = cache
        self.publisher = publisher
        self.cache_config = cache_config or get_cache_config()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def create_message(
            self,
            tenant: TenantContext,
            conversation_id: str,
            sender_id: str,
            content: str,
            metadata: Optional[Dict[str, Any]] = None,
    ) -> Message:
        tenant_id = tenant.tenant_id

        message = Message.create(
            id=generate_uuid_str(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            tenant_id=tenant_id,
            metadata=metadata,
        )
        saved = await self.repository.save(message)
        log.info(f"Message created: {saved.id} in conversation {conversation_id} (tenant={tenant_id})")

        await self._cache_message(saved)
        await self._invalidate_conversation(tenant_id, conversation_id)

        try:
            await self.publisher.publish_message_created(saved)
        except Exception as e:
            log.error(f"Message {saved.id} saved but message.created was not published: {e}")

        return saved

    async def update_message(
            self,
            tenant: TenantContext,
            message_id: str,
            content: Optional[str] = None,
            metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Message]:
        """Apply content and/or metadata changes. Returns None if the message does not exist."""
        tenant_id = tenant.tenant_id

        message = await self.repository.find_by_id(message_id, tenant_id)
        if message is None:
            return None

        if content is not None:
            message.update_content(content)
        if metadata is not None:
            message.update_metadata(metadata)

        updated = await self.repository.update(message)
        log.info(f"Message updated: {message_id} (tenant={tenant_id})")

        await self._invalidate_conversation(tenant_id, updated.conversation_id, message_id=message_id)
        await self._cache_message(updated)

        try:
            await self.publisher.publish_message_updated(updated)
        except Exception as e:
            log.error(f"Message {message_id} updated but message.updated was not published: {e}")

        return updated

    async def delete_message(self, tenant: TenantContext, message_id: str) -> bool:
        """Returns False if the message does not exist."""
        tenant_id = tenant.tenant_id

        message = await self.repository.find_by_id(message_id, tenant_id)
        if message is None:
            return False

        await self.repository.delete(message_id, tenant_id)
        log.info(f"Message deleted: {message_id} (tenant={tenant_id})")

        await self._invalidate_conversation(tenant_id, message.conversation_id, message_id=message_id)

        try:
            await self.publisher.publish_message_deleted(message_id, message.conversation_id, tenant_id)
        except Exception as e:
            log.error(f"Message {message_id} deleted but message.deleted was not published: {e}")

        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_message_by_id(self, tenant: TenantContext, message_id: str) -> Optional[Message]:
        tenant_id = tenant.tenant_id
        cache_key = CacheKeys.message(tenant_id, message_id)

        cached = await self.cache.get_json(cache_key)
        if cached:
            try:
                return Message.from_dict(cached)
            except ValueError as e:
                log.warning(f"Discarding unreadable cache entry {cache_key}: {e}")

        message = await self.repository.find_by_id(message_id, tenant_id)
        if message is not None:
            await self._cache_message(message)
        return message

    async def get_messages_by_conversation(
            self,
            tenant: TenantContext,
            conversation_id: str,
            page: int = DEFAULT_PAGE,
            limit: int = DEFAULT_LIMIT,
            sort_field: Optional[str] = None,
            sort_direction: Optional[str] = None,
    ) -> PaginatedMessages:
        tenant_id = tenant.tenant_id
        page, limit = coerce_page_limit(page, limit)

        if sort_field is not None and sort_field not in SORTABLE_FIELDS:
            raise InvalidSortFieldError(sort_field, SORTABLE_FIELDS)
        sort_field = sort_field or DEFAULT_SORT_FIELD
        sort_direction = sort_direction or DEFAULT_SORT_DIRECTION

        cache_key = CacheKeys.conversation_page(tenant_id, conversation_id, page, limit, sort_field, sort_direction)
        cached = await self.cache.get_json(cache_key)
        if cached:
            try:
                return PaginatedMessages.from_dict(cached)
            except (KeyError, ValueError) as e:
                log.warning(f"Discarding unreadable cache entry {cache_key}: {e}")

        messages, total = await self.repository.find_by_conversation_id(
            conversation_id, tenant_id, page, limit, sort_field, sort_direction
        )
        result = PaginatedMessages.build(messages, page, limit, total)

        ttl = self.cache_config.conversation_ttl
        if await self.cache.set_json(cache_key, result.to_dict(), ttl):
            await self.cache.track_key(
                CacheKeys.conversation_index(tenant_id, conversation_id), cache_key,
                max(ttl, self.cache_config.key_index_ttl),
            )
        return result

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    async def _cache_message(self, message: Message) -> None:
        await self.cache.set_json(
            CacheKeys.message(message.tenant_id, message.id),
            message.to_dict(),
            self.cache_config.message_ttl,
        )

    async def _invalidate_conversation(
            self,
            tenant_id: str,
            conversation_id: str,
            message_id: Optional[str] = None,
    ) -> None:
        """Drop every cached page of the conversation (and the single message, if given)."""
        extra_keys = [CacheKeys.conversation_page(tenant_id, conversation_id, DEFAULT_PAGE, DEFAULT_LIMIT)]
        if message_id:
            extra_keys.append(CacheKeys.message(tenant_id, message_id))

        await self.cache.invalidate_tracked(
            CacheKeys.conversation_index(tenant_id, conversation_id),
            extra_keys=extra_keys,
        )
