# =============================================================================
# File: app/infra/persistence/mongo/message_repository.py
# Description: MongoDB (beanie) implementation of MessageRepositoryPort
# =============================================================================

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from beanie import SortDirection

from app.infra.persistence.mongo.message_document import MessageDocument
from app.message.entity import DEFAULT_SORT_FIELD, Message

log = logging.getLogger("message_service.infra.mongo.message_repository")

# API field name -> stored field name
SORT_FIELD_MAP: Dict[str, str] = {
    "timestamp": "timestamp",
    "id": "_id",
    "conversationId": "conversationId",
    "senderId": "senderId",
    "content": "content",
}


class MongoMessageRepository:
    """
    Message store backed by the "messages" collection.

    Every query filters on tenantId. Driver errors are logged and re-raised
    unchanged; there is no retry.
    """

    async def save(self, message: Message) -> Message:
        try:
            await MessageDocument.from_entity(message).insert()
            log.debug(f"Message saved: {message.id} (tenant={message.tenant_id})")
            return message
        except Exception as e:
            log.error(f"Error saving message {message.id}: {e}", exc_info=True)
            raise

    async def find_by_id(self, message_id: str, tenant_id: str) -> Optional[Message]:
        try:
            document = await MessageDocument.find_one({"_id": message_id, "tenantId": tenant_id})
            return document.to_entity() if document else None
        except Exception as e:
            log.error(f"Error finding message {message_id}: {e}", exc_info=True)
            raise

    async def update(self, message: Message) -> Message:
        try:
            result = await MessageDocument.find_one(
                {"_id": message.id, "tenantId": message.tenant_id}
            ).update({"$set": {"content": message.content, "metadata": message.metadata}})

            if result is None or result.matched_count == 0:
                log.warning(f"No message found to update with ID: {message.id}")
            return message
        except Exception as e:
            log.error(f"Error updating message {message.id}: {e}", exc_info=True)
            raise

    async def delete(self, message_id: str, tenant_id: str) -> None:
        try:
            result = await MessageDocument.find_one({"_id": message_id, "tenantId": tenant_id}).delete()

            if result is None or result.deleted_count == 0:
                log.warning(f"No message found to delete with ID: {message_id}")
        except Exception as e:
            log.error(f"Error deleting message {message_id}: {e}", exc_info=True)
            raise

    async def find_by_conversation_id(
            self,
            conversation_id: str,
            tenant_id: str,
            page: int,
            limit: int,
            sort_field: Optional[str] = None,
            sort_direction: Optional[str] = None,
    ) -> Tuple[List[Message], int]:
        page = max(1, page)
        limit = max(1, limit)
        skip = (page - 1) * limit

        field = SORT_FIELD_MAP.get(sort_field or DEFAULT_SORT_FIELD, SORT_FIELD_MAP[DEFAULT_SORT_FIELD])
        direction = SortDirection.ASCENDING if sort_direction == "asc" else SortDirection.DESCENDING

        query_filter = {"conversationId": conversation_id, "tenantId": tenant_id}

        try:
            documents = await (
                MessageDocument.find(query_filter)
                .sort([(field, direction)])
                .skip(skip)
                .limit(limit)
                .to_list()
            )
            total = await MessageDocument.find(query_filter).count()
            return [document.to_entity() for document in documents], total
        except Exception as e:
            log.error(f"Error finding messages for conversation {conversation_id}: {e}", exc_info=True)
            raise
