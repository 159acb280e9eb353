"""Protocols defining the contracts for each plugin type and the queue client.

These protocols are for type checking. Runtime enforcement is done by
conduit.plugins.validation against the nominal base classes in
conduit.plugins.base.

Any plugin operation except stop() may be a plain method or a coroutine;
the runtime awaits whatever is returned when it is awaitable.

Plugin Types:
- Connector: Owns the connection to the external system, derives task config
- SourceTask: Polls the external system for new records
- SinkTask: Writes records to the external system
- Converter: Bidirectional transform between raw and canonical records
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from conduit.contracts.records import PublishResult, QueueMessage, SinkRecord, SourceRecord


@runtime_checkable
class ConnectorProtocol(Protocol):
    """Protocol for connectors.

    Exactly one connector instance exists per pipeline run.

    Lifecycle:
    1. __init__() - fresh instance per run
    2. start(properties) - open the connection
    3. task_configs(max_tasks) - derive the task configuration
    4. stop() - release the connection
    """

    name: str

    def start(self, properties: dict[str, Any]) -> Awaitable[None] | None: ...

    def task_configs(self, max_tasks: int) -> Awaitable[dict[str, Any]] | dict[str, Any]: ...

    def stop(self) -> None: ...


@runtime_checkable
class SourceTaskProtocol(Protocol):
    """Protocol for source tasks.

    poll() returns a batch of new records. The batch may contain None
    placeholders, which the runtime skips.
    """

    name: str

    def start(self, properties: dict[str, Any]) -> Awaitable[None] | None: ...

    def poll(self) -> "Awaitable[Sequence[SourceRecord | None]] | Sequence[SourceRecord | None]": ...

    def stop(self) -> None: ...


@runtime_checkable
class SinkTaskProtocol(Protocol):
    """Protocol for sink tasks.

    put() durably writes a batch. Failure is signalled by raising, either
    from the call itself or from the returned awaitable.
    """

    name: str

    def start(self, properties: dict[str, Any]) -> Awaitable[None] | None: ...

    def put(self, records: "list[SinkRecord]") -> Awaitable[None] | None: ...

    def stop(self) -> None: ...


@runtime_checkable
class ConverterProtocol(Protocol):
    """Protocol for converters.

    Converters must be stateless between invocations.
    """

    name: str

    def to_connect_data(self, raw: Any) -> Awaitable[Any] | Any: ...

    def from_connect_data(self, record: Any) -> Awaitable[Any] | Any: ...


# Invoked by the consumer with an error (failed/dropped) or None (success).
AckCallback = Callable[[BaseException | None], None]

MessageHandler = Callable[["QueueMessage", AckCallback], Awaitable[None]]


@runtime_checkable
class QueueConsumerProtocol(Protocol):
    """Queue client used by sink pipelines.

    consume() registers handler and delivers messages in arrival order. The
    next message is only delivered after the previous message's ack
    callback has been invoked.
    """

    async def connect(self) -> None: ...

    async def consume(self, handler: MessageHandler) -> None: ...

    def close(self, commit: bool = False) -> None: ...


@runtime_checkable
class QueueProducerProtocol(Protocol):
    """Queue client used by source pipelines."""

    async def connect(self) -> None: ...

    async def send(self, topic: str, value: str | bytes) -> "PublishResult": ...

    def close(self, commit: bool = False) -> None: ...
