# =============================================================================
#  File: app/api/models/message_api_models.py
#  Message Service API Models
# =============================================================================
#  Request and response bodies for the message and conversation endpoints.
#  Field names are camelCase on the wire.
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any, Annotated, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from app.message.entity import Message
from app.message.pagination import PaginatedMessages


# =============================================================================
#  TYPE ALIASES
# =============================================================================

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]

DataT = TypeVar("DataT")


# =============================================================================
#  REQUEST MODELS
# =============================================================================

class CreateMessageRequest(BaseModel):
    """Body of POST /messages"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    conversation_id: NonEmptyStr = Field(..., description="Conversation the message belongs to")
    sender_id: NonEmptyStr = Field(..., description="Author of the message")
    content: NonEmptyStr = Field(..., description="Message text")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Free-form attributes")


class UpdateMessageRequest(BaseModel):
    """Body of PUT /messages/{id}; omitted fields are left unchanged, metadata is merged"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


# =============================================================================
#  RESPONSE MODELS
# =============================================================================

class MessageResponse(BaseModel):
    """A message as returned by the API (the tenant is implied by the request)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    conversation_id: str
    sender_id: str
    content: str
    timestamp: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, message: Message) -> MessageResponse:
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            content=message.content,
            timestamp=message.timestamp,
            metadata=message.metadata,
        )


class PaginationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total_items: int
    total_pages: int


class PaginatedMessagesResponse(BaseModel):
    data: List[MessageResponse]
    pagination: PaginationResponse

    @classmethod
    def from_result(cls, result: PaginatedMessages) -> PaginatedMessagesResponse:
        return cls(
            data=[MessageResponse.from_entity(m) for m in result.data],
            pagination=PaginationResponse(
                page=result.pagination.page,
                limit=result.pagination.limit,
                total_items=result.pagination.total_items,
                total_pages=result.pagination.total_pages,
            ),
        )


# =============================================================================
#  SUCCESS ENVELOPE
# =============================================================================

class DataResponse(BaseModel, Generic[DataT]):
    """Every successful API body: {status, data}, status mirroring the HTTP code"""
    status: int
    data: DataT
