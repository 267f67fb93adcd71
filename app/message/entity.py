# =============================================================================
# File: app/message/entity.py
# Description: Message entity - the system-of-record representation of a message
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.utils.datetime_utils import ensure_utc

# API field names a conversation listing may be sorted by
SORTABLE_FIELDS = ("timestamp", "id", "conversationId", "senderId", "content")
DEFAULT_SORT_FIELD = "timestamp"
DEFAULT_SORT_DIRECTION = "desc"


class Message(BaseModel):
    """
    A message posted to a conversation on behalf of a tenant.

    Identity fields and the creation timestamp are frozen; only content and
    metadata change after creation. The JSON form (cache entries, event
    payloads) uses camelCase keys.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(..., min_length=1, frozen=True)
    conversation_id: str = Field(..., min_length=1, frozen=True)
    sender_id: str = Field(..., min_length=1, frozen=True)
    content: str
    tenant_id: str = Field(..., min_length=1, frozen=True)
    timestamp: datetime = Field(..., frozen=True)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def create(
            cls,
            id: str,
            conversation_id: str,
            sender_id: str,
            content: str,
            tenant_id: str,
            metadata: Optional[Dict[str, Any]] = None,
    ) -> Message:
        """New message stamped with the current UTC time."""
        return cls(
            id=id,
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            tenant_id=tenant_id,
            timestamp=datetime.now(timezone.utc),
            metadata=dict(metadata or {}),
        )

    def update_content(self, content: str) -> None:
        self.content = content

    def update_metadata(self, metadata: Dict[str, Any]) -> None:
        """Shallow merge; keys present in both take the new value."""
        self.metadata = {**self.metadata, **metadata}

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON-safe dict (ISO timestamp)"""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Message:
        message = cls.model_validate(data)
        if message.timestamp.tzinfo is None:
            message = message.model_copy(update={"timestamp": ensure_utc(message.timestamp)})
        return message
