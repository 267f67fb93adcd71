# =============================================================================
# File: app/infra/event_bus/kafka_adapter.py
# Description: Kafka transport adapter (aiokafka) for message lifecycle events
# - Lazily started producer shared by all publishers
# - Background consumer loops: partitions processed concurrently, records
#   within one partition strictly in order
# - At-least-once: offsets committed after each processed batch; handler
#   failures are logged and the record is skipped
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaConnectionError

from app.config.kafka_config import KafkaConfig, get_kafka_config

log = logging.getLogger("message_service.kafka_adapter")

RecordHandler = Callable[[Optional[bytes]], Awaitable[None]]


def json_default(obj: Any) -> Any:
    """
    Custom JSON serializer for objects not serializable by default json code.
    Handles UUID, datetime, Decimal and Enum.
    """
    if isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def encode_value(data: Any) -> bytes:
    return json.dumps(data, default=json_default, ensure_ascii=False).encode("utf-8")


def encode_headers(headers: Optional[Dict[str, str]]) -> List[Tuple[str, bytes]]:
    return [(name, str(value).encode("utf-8")) for name, value in (headers or {}).items()]


@dataclass
class ConsumerInfo:
    """Information about an active consumer"""
    consumer: AIOKafkaConsumer
    handler: RecordHandler
    topic: str
    group_id: str
    task: Optional[asyncio.Task] = None
    created_at: float = field(default_factory=time.time)
    messages_processed: int = 0
    last_message_time: float = 0.0
    errors: int = 0
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)


class KafkaTransportAdapter:
    """Kafka producer/consumer management for the message event topic."""

    def __init__(self, config: Optional[KafkaConfig] = None):
        self._config = config or get_kafka_config()
        self._producer: Optional[AIOKafkaProducer] = None
        self._producer_started = False
        self._initialization_lock = asyncio.Lock()
        self._consumers: Dict[str, ConsumerInfo] = {}
        self._running = True

        self._messages_sent = 0
        self._messages_received = 0
        self._connection_errors = 0

    @property
    def config(self) -> KafkaConfig:
        return self._config

    # =========================================================================
    # Producer
    # =========================================================================

    async def _ensure_producer(self) -> AIOKafkaProducer:
        """Ensure producer is initialized and started"""
        async with self._initialization_lock:
            if self._producer is None:
                self._producer = AIOKafkaProducer(**self._config.get_producer_config())

            if not self._producer_started:
                try:
                    await self._producer.start()
                except Exception:
                    self._connection_errors += 1
                    self._producer = None
                    raise
                self._producer_started = True
                log.info(f"Kafka producer started ({self._config.brokers})")

        return self._producer

    async def publish(
            self,
            topic: str,
            value: Any,
            key: Optional[str] = None,
            headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Serialize value as JSON and send it, waiting for broker acks."""
        if not self._running:
            raise RuntimeError(f"KafkaTransportAdapter is closing, cannot publish to {topic}")

        producer = await self._ensure_producer()
        try:
            await producer.send_and_wait(
                topic,
                value=encode_value(value),
                key=key.encode("utf-8") if key else None,
                headers=encode_headers(headers),
            )
            self._messages_sent += 1
        except (KafkaConnectionError, ConnectionError, OSError):
            self._connection_errors += 1
            self._producer_started = False
            raise

        log.debug(f"Published to '{topic}' (key={key})")

    async def publish_batch(
            self,
            topic: str,
            records: List[Tuple[Optional[str], Any]],
            headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Send (key, value) records, then wait until all are acknowledged."""
        if not self._running:
            raise RuntimeError(f"KafkaTransportAdapter is closing, cannot publish to {topic}")
        if not records:
            return

        producer = await self._ensure_producer()
        encoded_headers = encode_headers(headers)
        futures = []
        for key, value in records:
            futures.append(await producer.send(
                topic,
                value=encode_value(value),
                key=key.encode("utf-8") if key else None,
                headers=encoded_headers,
            ))
        await asyncio.gather(*futures)
        self._messages_sent += len(records)

        log.debug(f"Published batch of {len(records)} records to '{topic}'")

    # =========================================================================
    # Consumer
    # =========================================================================

    async def subscribe(
            self,
            topic: str,
            group_id: str,
            handler: RecordHandler,
            from_beginning: bool = False,
    ) -> ConsumerInfo:
        """Start a consumer for topic/group; records are handed to handler as raw bytes."""
        consumer_key = f"{topic}:{group_id}"
        if consumer_key in self._consumers:
            log.warning(f"Consumer {consumer_key} already running")
            return self._consumers[consumer_key]

        consumer = AIOKafkaConsumer(
            topic,
            group_id=group_id,
            auto_offset_reset="earliest" if from_beginning else "latest",
            **self._config.get_consumer_config(),
        )
        try:
            await consumer.start()
        except Exception:
            try:
                # stop() can hang after a failed start
                await asyncio.wait_for(consumer.stop(), timeout=5.0)
            except asyncio.TimeoutError:
                log.warning("Consumer stop timed out after 5s during error cleanup")
            raise

        log.info(f"Consumer started for topic '{topic}' with group '{group_id}'")

        consumer_info = ConsumerInfo(consumer=consumer, handler=handler, topic=topic, group_id=group_id)
        consumer_info.task = asyncio.create_task(
            self._consumer_loop(consumer_key, consumer_info),
            name=f"consumer-{topic}-{group_id}",
        )
        self._consumers[consumer_key] = consumer_info
        return consumer_info

    async def _process_partition(self, consumer_info: ConsumerInfo, topic_partition, messages) -> int:
        """Process all messages from a single partition sequentially"""
        processed = 0
        for msg in messages:
            if consumer_info.stop_event.is_set():
                break
            try:
                await consumer_info.handler(msg.value)
            except Exception as handler_error:
                log.error(
                    f"Handler error for message from {topic_partition.topic} "
                    f"partition {topic_partition.partition} offset {msg.offset}: {handler_error}",
                    exc_info=True,
                )
                consumer_info.errors += 1
            processed += 1
        return processed

    async def _consumer_loop(self, consumer_key: str, consumer_info: ConsumerInfo) -> None:
        consumer = consumer_info.consumer
        consecutive_errors = 0
        max_consecutive_errors = 5

        try:
            while self._running and not consumer_info.stop_event.is_set():
                try:
                    records = await consumer.getmany(
                        timeout_ms=self._config.poll_timeout_ms,
                        max_records=self._config.max_poll_records,
                    )
                    if not records:
                        continue

                    if consecutive_errors > 0:
                        log.info(f"Kafka consumer {consumer_key} recovered after {consecutive_errors} errors")
                        consecutive_errors = 0

                    results = await asyncio.gather(*[
                        self._process_partition(consumer_info, tp, msgs)
                        for tp, msgs in records.items()
                    ])
                    processed = sum(results)
                    self._messages_received += processed
                    consumer_info.messages_processed += processed
                    consumer_info.last_message_time = time.time()

                    await consumer.commit()

                except asyncio.CancelledError:
                    log.info(f"Consumer loop cancelled for {consumer_key}")
                    raise

                except (KafkaConnectionError, ConnectionError, OSError) as e:
                    consecutive_errors += 1
                    self._connection_errors += 1
                    log.error(
                        f"Kafka connection error in consumer loop for {consumer_key}: {e}. "
                        f"Consecutive errors: {consecutive_errors}"
                    )
                    await asyncio.sleep(min(2 ** consecutive_errors, 60))

                except Exception as e:
                    consecutive_errors += 1
                    log.error(f"Unexpected error in consumer loop for {consumer_key}: {e}", exc_info=True)
                    if consecutive_errors >= max_consecutive_errors:
                        log.error(f"Too many errors, stopping consumer {consumer_key}")
                        break
                    await asyncio.sleep(min(2 ** consecutive_errors, 30))
        finally:
            log.info(f"Consumer loop ended for {consumer_key}")

    def is_consuming(self, topic: str, group_id: str) -> bool:
        info = self._consumers.get(f"{topic}:{group_id}")
        return bool(info and info.task and not info.task.done())

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Gracefully shut down the adapter"""
        log.info("Shutting down KafkaTransportAdapter...")
        self._running = False

        for consumer_info in self._consumers.values():
            consumer_info.stop_event.set()
            if consumer_info.task and not consumer_info.task.done():
                consumer_info.task.cancel()

        tasks = [info.task for info in self._consumers.values() if info.task]
        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
                    log.error(f"Consumer task ended with error: {result}")

        for consumer_key, consumer_info in list(self._consumers.items()):
            try:
                await asyncio.wait_for(consumer_info.consumer.stop(), timeout=5.0)
                log.info(f"Stopped consumer for {consumer_key}")
            except asyncio.TimeoutError:
                log.warning(f"Consumer stop timed out after 5s for {consumer_key}, forcing cleanup")
            except Exception as e:
                log.error(f"Error stopping consumer {consumer_key}: {e}")
        self._consumers.clear()

        if self._producer and self._producer_started:
            try:
                await self._producer.stop()
                log.info("Kafka producer stopped")
            except Exception as e:
                log.error(f"Error stopping producer: {e}")
            finally:
                self._producer_started = False
        self._producer = None

        log.info("KafkaTransportAdapter shutdown complete")

    async def ping(self) -> bool:
        """Test connectivity to Kafka"""
        try:
            producer = await self._ensure_producer()
            await producer.client.force_metadata_update()
            return len(producer.client.cluster.brokers()) > 0
        except Exception as e:
            log.error(f"Kafka ping failed: {e}")
            return False

    def get_stats(self) -> Dict[str, Any]:
        return {
            "producer_started": self._producer_started,
            "messages_sent": self._messages_sent,
            "messages_received": self._messages_received,
            "connection_errors": self._connection_errors,
            "consumers": {
                key: {
                    "messages_processed": info.messages_processed,
                    "errors": info.errors,
                    "running": bool(info.task and not info.task.done()),
                }
                for key, info in self._consumers.items()
            },
        }
