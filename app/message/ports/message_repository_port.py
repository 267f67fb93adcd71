# =============================================================================
# File: app/message/ports/message_repository_port.py
# Description: Port interface for message persistence
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import List, Optional, Protocol, Tuple, runtime_checkable

from app.message.entity import Message


@runtime_checkable
class MessageRepositoryPort(Protocol):
    """
    Port: Message Store

    Defined by: Message Domain
    Implemented by: MongoMessageRepository (app/infra/persistence/mongo/message_repository.py)

    Every operation is scoped by tenant id; there is no way to address a
    message without naming its tenant. Store errors propagate unchanged.
    """

    async def save(self, message: Message) -> Message:
        """Insert a new message and return it."""
        ...

    async def find_by_id(self, message_id: str, tenant_id: str) -> Optional[Message]:
        """Return the tenant's message or None."""
        ...

    async def update(self, message: Message) -> Message:
        """
        Persist content and metadata of an existing message.

        Logs a warning (and still returns the message) if nothing matched.
        """
        ...

    async def delete(self, message_id: str, tenant_id: str) -> None:
        """Delete the tenant's message; logs a warning if nothing was deleted."""
        ...

    async def find_by_conversation_id(
        self,
        conversation_id: str,
        tenant_id: str,
        page: int,
        limit: int,
        sort_field: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ) -> Tuple[List[Message], int]:
        """
        One page of a conversation plus the total count.

        Args:
            page: 1-based page index (values < 1 are treated as 1)
            limit: page size (values < 1 are treated as 1)
            sort_field: API field name, default "timestamp"
            sort_direction: "asc" or anything else for descending (default)

        Returns:
            (messages on the page, total messages in the conversation)
        """
        ...
