# =============================================================================
# File: app/workers/search_indexer.py
# Description: Applies message lifecycle events to the search index
# - One consumed record at a time; ordering per conversation comes from the
#   partition key
# - Bad records and indexing failures are logged and dropped (no retry, no DLQ)
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from app.infra.metrics.message_metrics import events_consumed_total
from app.infra.search.message_index import MessageSearchIndex
from app.message.events import MessageEventType
from app.security.tenant_context import TenantContext
from app.services.application.search_service import SearchApplicationService

log = logging.getLogger("message_service.workers.search_indexer")

# Documents are addressed by message id; created ones must also carry their filter keys
REQUIRED_PAYLOAD_FIELDS = {
    MessageEventType.CREATED.value: ("id", "conversationId", "tenantId"),
    MessageEventType.UPDATED.value: ("id",),
    MessageEventType.DELETED.value: ("id",),
}


class MessageSearchIndexer:
    """Kafka record handler that keeps Elasticsearch in step with MongoDB."""

    def __init__(
            self,
            search_index: MessageSearchIndex,
            search_service: Optional[SearchApplicationService] = None,
    ):
        self.search_index = search_index
        self.search_service = search_service
        self.processed = 0
        self.dropped = 0

    async def handle(self, raw: Optional[bytes]) -> None:
        if not raw:
            log.warning("Received record with empty value, skipping")
            self._count("unknown", "dropped")
            return

        try:
            event = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            log.error(f"Dropping record that is not valid JSON: {e}")
            self._count("unknown", "dropped")
            return

        if not isinstance(event, dict) or not event.get("type"):
            log.error("Dropping record without an event type")
            self._count("unknown", "dropped")
            return

        event_type = event["type"]
        payload = event.get("payload")
        if not isinstance(payload, dict):
            log.error(f"Dropping {event_type} record whose payload is not an object")
            self._count(event_type, "dropped")
            return

        missing = [name for name in REQUIRED_PAYLOAD_FIELDS.get(event_type, ()) if not payload.get(name)]
        if missing:
            log.error(f"Dropping {event_type} record missing {', '.join(missing)}")
            self._count(event_type, "dropped")
            return

        message_id = payload.get("id")

        log.debug(f"Processing {event_type} for message {message_id}")

        try:
            if event_type == MessageEventType.CREATED.value:
                await self.search_index.index_document(payload)
                log.info(f"Indexed message with ID: {message_id}")
            elif event_type == MessageEventType.UPDATED.value:
                await self.search_index.update_document(message_id, payload)
                log.info(f"Updated message with ID: {message_id}")
            elif event_type == MessageEventType.DELETED.value:
                await self.search_index.delete_document(message_id)
                log.info(f"Deleted message with ID: {message_id}")
            else:
                log.warning(f"Unknown event type: {event_type}")
                self._count(event_type, "dropped")
                return
        except Exception as e:
            log.error(f"Error processing {event_type} for message {message_id}: {e}", exc_info=True)
            self._count(event_type, "failed")
            return

        self.processed += 1
        events_consumed_total.labels(event_type=event_type, status="indexed").inc()
        await self._invalidate_search_cache(payload)

    async def _invalidate_search_cache(self, payload: Dict[str, Any]) -> None:
        if self.search_service is None:
            return
        tenant = TenantContext.from_header(payload.get("tenantId"))
        conversation_id = payload.get("conversationId")
        if not tenant.has_tenant or not conversation_id:
            return
        try:
            await self.search_service.notify_content_changed(tenant, conversation_id)
        except Exception as e:
            log.warning(f"Search cache invalidation failed for {conversation_id}: {e}")

    def _count(self, event_type: str, status: str) -> None:
        if status != "indexed":
            self.dropped += 1
        events_consumed_total.labels(event_type=event_type, status=status).inc()
