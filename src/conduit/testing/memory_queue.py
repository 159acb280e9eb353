# src/conduit/testing/memory_queue.py
"""In-memory queue clients for tests and local development.

MemoryBroker keeps one append-only log per topic (single partition 0) and
assigns offsets monotonically in publish order. MemoryProducer and
MemoryConsumer implement the queue client protocols on top of it.

MemoryConsumer delivers one message at a time and does not deliver the
next one until the handler has invoked ack, mirroring a real consumer
whose position only advances on acknowledgement.

Usage:
    broker = MemoryBroker()
    producer = MemoryProducer(broker)
    consumer = MemoryConsumer(broker, topic="orders")

    # Or feed a consumer directly, without a broker:
    consumer = MemoryConsumer()
    await consumer.connect()
    outcome = consumer.push({"offset": 5, "topic": "orders", "value": "{}"})
    error = await outcome  # None on success, the failure otherwise
"""

import asyncio
import time
from collections import defaultdict
from collections.abc import Callable, Mapping
from typing import Any

from conduit.contracts.records import PublishResult, QueueMessage
from conduit.plugins.protocols import MessageHandler


def _now_ms() -> int:
    return int(time.time() * 1000)


class MemoryBroker:
    """Topic logs shared by in-memory producers and consumers."""

    def __init__(self) -> None:
        self._logs: dict[str, list[QueueMessage]] = defaultdict(list)
        self._subscribers: dict[str, list[Callable[[QueueMessage], Any]]] = defaultdict(list)

    def append(self, topic: str, value: Any, *, key: Any = None, timestamp: int | None = None) -> QueueMessage:
        """Append a message to a topic log and notify subscribers."""
        log = self._logs[topic]
        message = QueueMessage(
            topic=topic,
            partition=0,
            offset=len(log),
            value=value,
            key=key,
            timestamp=timestamp if timestamp is not None else _now_ms(),
        )
        log.append(message)
        for callback in list(self._subscribers[topic]):
            callback(message)
        return message

    def messages(self, topic: str) -> list[QueueMessage]:
        """Return a copy of a topic log."""
        return list(self._logs[topic])

    def subscribe(self, topic: str, callback: Callable[[QueueMessage], Any]) -> None:
        """Replay the topic log to callback, then forward new messages."""
        for message in self._logs[topic]:
            callback(message)
        self._subscribers[topic].append(callback)

    def unsubscribe(self, topic: str, callback: Callable[[QueueMessage], Any]) -> None:
        if callback in self._subscribers[topic]:
            self._subscribers[topic].remove(callback)


class MemoryProducer:
    """Producer appending to a MemoryBroker.

    Only str and bytes values are accepted, like a real producer that
    expects serialized payloads.
    """

    def __init__(self, broker: MemoryBroker | None = None) -> None:
        self.broker = broker if broker is not None else MemoryBroker()
        self.connected = False
        self.sent: list[QueueMessage] = []
        self._failures: list[BaseException] = []

    async def connect(self) -> None:
        self.connected = True

    def fail_next(self, count: int = 1, error: BaseException | None = None) -> None:
        """Make the next count sends raise error (ConnectionError by default)."""
        for _ in range(count):
            self._failures.append(error if error is not None else ConnectionError("simulated send failure"))

    async def send(self, topic: str, value: str | bytes) -> PublishResult:
        if not self.connected:
            raise RuntimeError("producer is not connected")
        if not isinstance(value, str | bytes):
            raise TypeError(f"can only produce str or bytes messages, got {type(value).__name__}")
        if self._failures:
            raise self._failures.pop(0)

        message = self.broker.append(topic, value)
        self.sent.append(message)
        return PublishResult(topic=message.topic, partition=message.partition, offset=message.offset)

    def close(self, commit: bool = False) -> None:
        self.connected = False


class MemoryConsumer:
    """Consumer delivering messages one at a time, gated on ack.

    Attributes:
        acks: (offset, error) per acknowledged message, in ack order
        positions: Next offset to read per partition, advanced on ack
        committed: Positions stored by close(commit=True)
    """

    def __init__(self, broker: MemoryBroker | None = None, topic: str | None = None) -> None:
        if broker is not None and topic is None:
            raise ValueError("topic is required when consuming from a broker")
        self.broker = broker
        self.topic = topic
        self.connected = False
        self.closed = False
        self.acks: list[tuple[int, BaseException | None]] = []
        self.positions: dict[int, int] = {}
        self.committed: dict[int, int] = {}
        self._queue: asyncio.Queue[tuple[QueueMessage, asyncio.Future[BaseException | None]] | None] | None = None
        self._waiting: asyncio.Future[BaseException | None] | None = None

    async def connect(self) -> None:
        self._queue = asyncio.Queue()
        self.connected = True
        self.closed = False
        if self.broker is not None and self.topic is not None:
            self.broker.subscribe(self.topic, self._enqueue)

    def push(self, message: QueueMessage | Mapping[str, Any]) -> "asyncio.Future[BaseException | None]":
        """Queue a message for delivery.

        Returns:
            Future resolved with the ack outcome: None on success, the
            error passed to ack otherwise. Never resolves if ack is withheld.
        """
        if isinstance(message, Mapping):
            message = QueueMessage.from_mapping(message)
        return self._enqueue(message)

    def _enqueue(self, message: QueueMessage) -> "asyncio.Future[BaseException | None]":
        if self._queue is None:
            raise RuntimeError("consumer is not connected")
        outcome: asyncio.Future[BaseException | None] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((message, outcome))
        return outcome

    async def consume(self, handler: MessageHandler) -> None:
        """Deliver messages to handler until closed."""
        if self._queue is None:
            raise RuntimeError("consumer is not connected")
        loop = asyncio.get_running_loop()

        while not self.closed:
            item = await self._queue.get()
            if item is None:
                break
            message, outcome = item

            acked: asyncio.Future[BaseException | None] = loop.create_future()

            def ack(error: BaseException | None = None, _acked: asyncio.Future[BaseException | None] = acked) -> None:
                if not _acked.done():
                    _acked.set_result(error)

            self._waiting = acked
            await handler(message, ack)
            error = await acked
            self._waiting = None

            self.acks.append((message.offset, error))
            self.positions[message.partition] = message.offset + 1
            if not outcome.done():
                outcome.set_result(error)

    def close(self, commit: bool = False) -> None:
        if commit:
            self.committed.update(self.positions)
        self.closed = True
        self.connected = False
        if self.broker is not None and self.topic is not None:
            self.broker.unsubscribe(self.topic, self._enqueue)
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        if self._queue is not None:
            self._queue.put_nowait(None)
