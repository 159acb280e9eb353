# src/conduit/contracts/records.py
"""Record envelopes exchanged between converters, tasks and the queue.

Records are frozen. A converter that changes a record returns a new
instance (see Record.evolve) so no two pipeline stages alias the same
mutable object.

Wire payload (what a source publishes and a sink decodes):

    {"key": ..., "value": ..., "keySchema": ..., "valueSchema": ..., "timestamp": ...}
"""

import dataclasses
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Self

from conduit.contracts.errors import RecordConversionError

# Payload keys on the wire
PAYLOAD_KEYS: frozenset[str] = frozenset({"key", "value", "keySchema", "valueSchema", "timestamp"})


@dataclass(frozen=True)
class Record:
    """Canonical in-flight message envelope.

    Attributes:
        key: Opaque identifier, used by the queue as a partitioning hint
        value: Payload, arbitrary structured data
        key_schema: Optional schema descriptor for the key
        value_schema: Optional schema descriptor for the value
        timestamp: Epoch milliseconds, producer- or broker-assigned
        topic: Queue topic, known only once read from the queue
        partition: Queue partition, assigned by the queue
        offset: Queue offset, assigned by the queue
    """

    key: Any = None
    value: Any = None
    key_schema: Any = None
    value_schema: Any = None
    timestamp: int | None = None
    topic: str | None = None
    partition: int | None = None
    offset: int | None = None

    def evolve(self, **changes: Any) -> Self:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_payload(self) -> dict[str, Any]:
        """Return the wire payload for this record."""
        return {
            "key": self.key,
            "value": self.value,
            "keySchema": self.key_schema,
            "valueSchema": self.value_schema,
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        """Serialize the wire payload as JSON."""
        return json.dumps(self.to_payload())


@dataclass(frozen=True)
class SourceRecord(Record):
    """Record produced by a source task, not yet published.

    The queue assigns partition and offset on publish, so a source record
    must not carry them.
    """

    def __post_init__(self) -> None:
        if self.partition is not None or self.offset is not None:
            raise ValueError("SourceRecord must not carry partition/offset; the queue assigns them on publish")


@dataclass(frozen=True)
class SinkRecord(Record):
    """Record read from the queue, handed to a sink task."""

    def __post_init__(self) -> None:
        if not isinstance(self.partition, int) or not isinstance(self.offset, int):
            raise ValueError(f"SinkRecord requires integer partition and offset, got partition={self.partition!r} offset={self.offset!r}")

    @classmethod
    def from_message(cls, message: "QueueMessage | Mapping[str, Any]") -> "SinkRecord":
        """Build a SinkRecord from a raw queue message.

        String and bytes values are decoded as JSON. A decoded mapping that
        carries a "value" key is read as a wire payload; anything else is
        taken as the record value itself.

        Raises:
            RecordConversionError: If the message cannot be decoded.
        """
        if isinstance(message, Mapping):
            try:
                message = QueueMessage.from_mapping(message)
            except (KeyError, TypeError, ValueError) as e:
                raise RecordConversionError(f"Failed to turn message into SinkRecord: {e}") from e
        if not isinstance(message, QueueMessage):
            raise RecordConversionError(f"Failed to turn message into SinkRecord: unsupported message type {type(message).__name__}")

        payload = decode_value(message.value)

        if isinstance(payload, Mapping) and "value" in payload:
            value = payload["value"]
            key_schema = payload.get("keySchema")
            value_schema = payload.get("valueSchema")
            timestamp = payload.get("timestamp")
            key = message.key if message.key is not None else payload.get("key")
        else:
            value = payload
            key_schema = None
            value_schema = None
            timestamp = None
            key = message.key

        try:
            return cls(
                key=key,
                value=value,
                key_schema=key_schema,
                value_schema=value_schema,
                timestamp=timestamp if timestamp is not None else message.timestamp,
                topic=message.topic,
                partition=message.partition,
                offset=message.offset,
            )
        except ValueError as e:
            raise RecordConversionError(f"Failed to turn message into SinkRecord: {e}") from e


def decode_value(value: Any) -> Any:
    """Decode a raw queue value into a Python object.

    Raises:
        RecordConversionError: If a bytes/str value is not valid JSON.
    """
    if isinstance(value, bytes | bytearray):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RecordConversionError(f"Failed to decode message value: {e}") from e
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise RecordConversionError(f"Failed to decode message value as JSON: {e}") from e
    return value


def encode_value(value: Any) -> str | bytes:
    """Serialize a converted value for publishing.

    Records become their JSON wire payload, str/bytes pass through, and any
    other value is JSON-encoded.
    """
    if isinstance(value, Record):
        return value.to_json()
    if isinstance(value, str | bytes):
        return value
    return json.dumps(value)


@dataclass(frozen=True)
class QueueMessage:
    """Raw message as delivered by a queue consumer."""

    topic: str
    partition: int
    offset: int
    value: Any
    key: Any = None
    timestamp: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "QueueMessage":
        """Build from a plain mapping (partition defaults to 0)."""
        return cls(
            topic=data.get("topic", ""),
            partition=int(data.get("partition", 0)),
            offset=int(data["offset"]),
            value=data.get("value"),
            key=data.get("key"),
            timestamp=data.get("timestamp"),
        )


@dataclass(frozen=True)
class PublishResult:
    """Position assigned by the queue to a published message."""

    topic: str
    partition: int
    offset: int
