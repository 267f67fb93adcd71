# =============================================================================
# File: app/infra/persistence/mongo/message_document.py
# Description: beanie document for the "messages" collection
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel

from app.message.entity import Message
from app.utils.datetime_utils import ensure_utc


class MessageDocument(Document):
    """
    MongoDB document for messages.

    The message id is the document _id, so id lookups hit the primary key.

    Stored field names are camelCase, matching the API and event payloads.

    Indexes:
    - Compound (conversationId, timestamp desc): conversation listing
    - Compound (tenantId, conversationId): tenant-scoped conversation filter
    - Text on content
    - Single conversationId, timestamp, tenantId
    """
    id: str = Field(..., description="Message id (client-visible, assigned by the service)")

    conversationId: str = Field(..., description="Conversation the message belongs to")
    senderId: str = Field(..., description="Sender user id")
    content: str
    tenantId: str = Field(..., description="Owning tenant (isolation boundary)")
    timestamp: datetime = Field(..., description="Creation time, UTC")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    class Settings:
        name = "messages"
        indexes = [
            "conversationId",
            "timestamp",
            "tenantId",
            IndexModel([("conversationId", ASCENDING), ("timestamp", DESCENDING)]),
            IndexModel([("content", TEXT)]),
            IndexModel([("tenantId", ASCENDING), ("conversationId", ASCENDING)]),
        ]

    @classmethod
    def from_entity(cls, message: Message) -> MessageDocument:
        return cls(
            id=message.id,
            conversationId=message.conversation_id,
            senderId=message.sender_id,
            content=message.content,
            tenantId=message.tenant_id,
            timestamp=message.timestamp,
            metadata=message.metadata,
        )

    def to_entity(self) -> Message:
        return Message(
            id=self.id,
            conversation_id=self.conversationId,
            sender_id=self.senderId,
            content=self.content,
            tenant_id=self.tenantId,
            timestamp=ensure_utc(self.timestamp),
            metadata=self.metadata or {},
        )
