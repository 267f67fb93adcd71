# =============================================================================
# File: tests/fakes/fake_kafka_transport.py
# Description: In-memory KafkaTransportAdapter for unit and API tests
# =============================================================================

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from tests.fakes.call_recorder import CallRecorder


@dataclass
class PublishedRecord:
    topic: str
    value: Any
    key: Optional[str]
    headers: Dict[str, str] = field(default_factory=dict)

    def raw(self) -> bytes:
        return json.dumps(self.value).encode("utf-8")


class FakeKafkaTransport(CallRecorder):
    """
    Records published values instead of sending them.

    deliver() feeds every record published since the last delivery to the
    handler subscribed for that topic, which is how tests drive the search
    indexer without a broker.
    With auto_deliver=True each publish is delivered immediately.
    """

    def __init__(self, auto_deliver: bool = False):
        super().__init__()
        self.auto_deliver = auto_deliver
        self.published: List[PublishedRecord] = []
        self.handlers: Dict[str, Callable[[Optional[bytes]], Awaitable[None]]] = {}
        self._delivered = 0
        self.closed = False

    def clear(self) -> None:
        super().clear()
        self.published.clear()
        self.handlers.clear()
        self._delivered = 0

    async def publish(self, topic: str, value: Any, key: Optional[str] = None,
                      headers: Optional[Dict[str, str]] = None) -> None:
        self._record_call("publish", topic, value, key=key, headers=headers)
        self._check_failure("publish")
        self.published.append(PublishedRecord(topic, value, key, dict(headers or {})))
        if self.auto_deliver:
            await self.deliver()

    async def publish_batch(self, topic: str, records: List[Tuple[Optional[str], Any]],
                            headers: Optional[Dict[str, str]] = None) -> None:
        self._record_call("publish_batch", topic, records, headers=headers)
        self._check_failure("publish_batch")
        for key, value in records:
            self.published.append(PublishedRecord(topic, value, key, dict(headers or {})))

    async def subscribe(self, topic: str, group_id: str,
                        handler: Callable[[Optional[bytes]], Awaitable[None]],
                        from_beginning: bool = False) -> None:
        self._record_call("subscribe", topic, group_id, from_beginning=from_beginning)
        self._check_failure("subscribe")
        self.handlers[topic] = handler

    async def deliver(self) -> int:
        """Hand undelivered records to their topic's handler, in publish order."""
        pending = self.published[self._delivered:]
        self._delivered = len(self.published)
        for record in pending:
            handler = self.handlers.get(record.topic)
            if handler:
                await handler(record.raw())
        return len(pending)

    def is_consuming(self, topic: str, group_id: str) -> bool:
        return topic in self.handlers

    async def ping(self) -> bool:
        return "publish" not in self._should_fail

    def get_stats(self) -> Dict[str, Any]:
        return {"messages_sent": len(self.published), "consumers": list(self.handlers)}

    async def close(self) -> None:
        self.closed = True
