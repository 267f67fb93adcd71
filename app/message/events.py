# =============================================================================
# File: app/message/events.py
# Description: Message lifecycle event envelope published to Kafka
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Final

from pydantic import BaseModel, ConfigDict, Field

from app.utils.datetime_utils import to_iso

MESSAGE_EVENT_SCHEMA_VERSION: Final[str] = "1.0"


class MessageEventType(str, Enum):
    """Lifecycle transitions of a message"""
    CREATED = "message.created"
    UPDATED = "message.updated"
    DELETED = "message.deleted"


class MessageEvent(BaseModel):
    """
    Envelope around a message lifecycle transition.

    payload is the full camelCase message for created/updated and
    {id, conversationId, tenantId} for deleted.
    """
    type: str
    payload: Dict[str, Any]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = Field(default=MESSAGE_EVENT_SCHEMA_VERSION, description="Envelope schema version")

    model_config = ConfigDict(
        frozen=True,  # Events are immutable facts
        extra='allow'
    )

    @property
    def payload_id(self) -> str:
        return str(self.payload.get("id", ""))

    @property
    def conversation_id(self) -> str:
        return str(self.payload.get("conversationId", ""))

    def to_dict_for_bus(self) -> Dict[str, Any]:
        """Serializes the envelope for the wire, timestamp as ISO string."""
        event_dict = self.model_dump()
        event_dict["timestamp"] = to_iso(self.timestamp)
        return event_dict
