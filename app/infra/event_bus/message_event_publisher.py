# =============================================================================
# File: app/infra/event_bus/message_event_publisher.py
# Description: Publishes message lifecycle events to the message topic
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

from app.infra.metrics.message_metrics import events_published_total
from app.message.entity import Message
from app.message.events import MessageEvent, MessageEventType
from app.utils.datetime_utils import utc_now_iso
from app.utils.uuid_utils import generate_uuid_str

log = logging.getLogger("message_service.event_bus.publisher")


class EventTransport(Protocol):
    """The subset of KafkaTransportAdapter the publisher needs"""

    async def publish(self, topic: str, value: Any, key: Optional[str] = None,
                      headers: Optional[Dict[str, str]] = None) -> None: ...

    async def publish_batch(self, topic: str, records: List[Tuple[Optional[str], Any]],
                            headers: Optional[Dict[str, str]] = None) -> None: ...


class MessageEventPublisher:
    """
    Wraps each lifecycle transition in a MessageEvent envelope and hands it
    to the transport, keyed by conversation id so one conversation's events
    stay ordered within a partition.

    Transport errors are counted and re-raised; callers decide whether a
    failed publish matters.
    """

    def __init__(self, transport: EventTransport, topic: str, source: str):
        self._transport = transport
        self._topic = topic
        self._source = source

    @property
    def topic(self) -> str:
        return self._topic

    def _headers(self, message_id: str) -> Dict[str, str]:
        return {
            "timestamp": utc_now_iso(),
            "source": self._source,
            "message-id": message_id,
            "correlation-id": generate_uuid_str(),
        }

    async def _publish(self, event: MessageEvent) -> None:
        try:
            await self._transport.publish(
                self._topic,
                event.to_dict_for_bus(),
                key=event.conversation_id,
                headers=self._headers(event.payload_id),
            )
        except Exception as e:
            events_published_total.labels(event_type=event.type, status="failure").inc()
            log.error(f"Failed to publish {event.type} for message {event.payload_id}: {e}")
            raise

        events_published_total.labels(event_type=event.type, status="success").inc()
        log.debug(f"Published {event.type} for message {event.payload_id} to '{self._topic}'")

    async def publish_message_created(self, message: Message) -> None:
        await self._publish(MessageEvent(type=MessageEventType.CREATED.value, payload=message.to_dict()))

    async def publish_message_updated(self, message: Message) -> None:
        await self._publish(MessageEvent(type=MessageEventType.UPDATED.value, payload=message.to_dict()))

    async def publish_message_deleted(self, message_id: str, conversation_id: str, tenant_id: str) -> None:
        payload = {"id": message_id, "conversationId": conversation_id, "tenantId": tenant_id}
        await self._publish(MessageEvent(type=MessageEventType.DELETED.value, payload=payload))

    async def publish_batch_events(self, events: List[MessageEvent]) -> None:
        """Send several envelopes in one producer batch; headers carry batch=true."""
        if not events:
            return

        headers = {
            "timestamp": utc_now_iso(),
            "source": self._source,
            "correlation-id": generate_uuid_str(),
            "batch": "true",
        }
        records = [(event.conversation_id or None, event.to_dict_for_bus()) for event in events]

        try:
            await self._transport.publish_batch(self._topic, records, headers=headers)
        except Exception as e:
            for event in events:
                events_published_total.labels(event_type=event.type, status="failure").inc()
            log.error(f"Failed to publish batch of {len(events)} events: {e}")
            raise

        for event in events:
            events_published_total.labels(event_type=event.type, status="success").inc()
        log.debug(f"Published batch of {len(events)} events to '{self._topic}'")
