"""Event bus carrying pipeline errors and state changes to the host.

Pipelines never use the bus for their own control flow; it is purely an
outbound channel. Handlers run synchronously in subscription order.
"""

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Protocol satisfied by both EventBus and NullEventBus."""

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type."""
        ...

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers."""
        ...


class EventBus:
    """Synchronous, type-keyed event bus.

    Handler exceptions propagate to the emitter.

    Example:
        bus = EventBus()
        bus.subscribe(PipelineErrorEvent, lambda e: print(e.error))
        pipeline = SinkPipeline(config, MyConnector, MyTask, consumer=consumer, event_bus=bus)
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The event class to subscribe to
            handler: Callable that receives the event instance
        """
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Remove a previously subscribed handler (no-op if absent)."""
        handlers = self._subscribers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers of its exact type.

        Events with no subscribers are ignored.
        """
        for handler in list(self._subscribers.get(type(event), [])):
            handler(event)


class NullEventBus:
    """No-op event bus.

    Does NOT inherit from EventBus: subscribing to it is a no-op, so it
    must never be substituted where callbacks are expected.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """No-op subscription - handler will never be called."""
        pass

    def emit(self, event: T) -> None:
        """No-op emission."""
        pass
