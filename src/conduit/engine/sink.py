# src/conduit/engine/sink.py
"""SinkPipeline: consume -> convert -> put, with retry and escalation.

Lifecycle:
    CREATED -> CONNECTOR_STARTED -> TASK_CONFIGURED -> TASK_STARTED -> CONSUMING
    CONSUMING -> HALTED (wait on error) | STOPPED

Per message:
1. The raw message runs through the converter chain (to_connect_data).
   A SinkRecord result is used as-is; anything else is turned into one
   with SinkRecord.from_message. Failure: error event, ack(error), no retry.
2. task.put([record]) runs under the RetryManager. Raised and awaited
   failures take the same path: an error event per failed attempt and a
   fixed delay before the next attempt.
3. Budget exhausted:
   - halt_on_error: terminal error event, then stop() the whole pipeline
   - wait_on_error: terminal error event, HALTED, ack withheld forever
   - otherwise: ack(error) so the queue moves on (record dropped)
   halt_on_error takes precedence over wait_on_error.

The consumer only delivers the next message after ack, so messages are
written and acknowledged strictly in arrival order.

Once stop() has deactivated the run, an in-flight conversion or put that
completes afterwards is discarded: no error event, no escalation, no ack.
"""

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from conduit.contracts.enums import ErrorKind, PipelineKind, PipelineState
from conduit.contracts.errors import (
    ConversionError,
    MaxRetriesExceeded,
    PipelineConfigError,
    PipelineStoppedError,
    RecordConversionError,
)
from conduit.contracts.records import QueueMessage, SinkRecord
from conduit.core.config import PipelineSettings
from conduit.core.events import EventBusProtocol
from conduit.engine.pipeline import PipelineConfig, RunHandle
from conduit.engine.retry import RetryManager, RetryPolicy
from conduit.plugins.base import BaseConnector, BaseTask, Converter, SinkConnector, SinkTask
from conduit.plugins.converters import SinkBaseConverter
from conduit.plugins.protocols import AckCallback, QueueConsumerProtocol


class SinkPipeline(PipelineConfig):
    """Moves records from a queue topic into an external system.

    Example:
        consumer = MemoryConsumer(broker, topic="orders")
        sink = SinkPipeline(settings, OrdersConnector, OrdersSinkTask, consumer=consumer)
        sink.on_error(lambda event: alert(event) if event.terminal else None)
        await sink.run()
    """

    kind = PipelineKind.SINK
    connector_base = SinkConnector
    task_base = SinkTask
    default_converter = SinkBaseConverter

    def __init__(
        self,
        config: PipelineSettings | Mapping[str, Any],
        connector_cls: type[BaseConnector],
        task_cls: type[BaseTask],
        converters: Sequence[type[Converter] | Converter] = (),
        consumer: QueueConsumerProtocol | None = None,
        *,
        event_bus: EventBusProtocol | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(config, connector_cls, task_cls, converters, event_bus=event_bus, name=name)
        self.consumer = consumer
        self.written = 0
        self.dropped = 0
        self._retry: RetryManager | None = None
        self._consume_task: asyncio.Task[None] | None = None

    def _validate_settings(self, settings: PipelineSettings) -> None:
        if self.consumer is None:
            raise PipelineConfigError("a queue consumer is required to run a sink pipeline")

    async def run(self) -> None:
        """Start plugins and begin consuming in the background.

        Returns once the consumer has been handed the message handler.

        Raises:
            PipelineConfigError: Invalid configuration or no consumer.
            PipelineStateError: Already running.
            PluginStartupError: Connector or task failed to start.
        """
        settings = self._prepare_run()
        assert self.consumer is not None  # checked by _validate_settings
        self._retry = RetryManager(RetryPolicy.from_settings(settings))

        await self.consumer.connect()
        handle = await self._start_plugins(settings)

        self._transition(PipelineState.CONSUMING)

        async def handler(message: QueueMessage, ack: AckCallback) -> None:
            await self.handle_message(handle, message, ack)

        self._consume_task = asyncio.create_task(self.consumer.consume(handler), name=f"{self.name}:consume")
        self._consume_task.add_done_callback(self._on_consume_done)

    def _on_consume_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.emit_error(ErrorKind.CONSUME, error)

    async def handle_message(self, handle: RunHandle, message: Any, ack: AckCallback) -> None:
        """Convert one queue message and write it through the task."""
        if not self.is_live(handle):
            return

        try:
            converted = await self.convert_to(message)
            record = converted if isinstance(converted, SinkRecord) else SinkRecord.from_message(converted)
        except (ConversionError, RecordConversionError) as e:
            if not self.is_live(handle):
                return
            # No correction changes the outcome, so conversion is never retried
            self.emit_error(ErrorKind.CONVERSION, e, record_key=getattr(message, "key", None))
            self.dropped += 1
            ack(e)
            return

        if not self.is_live(handle):
            return
        await self._put_record(handle, record, ack)

    async def _put_record(self, handle: RunHandle, record: SinkRecord, ack: AckCallback) -> None:
        assert self._retry is not None

        def attempt() -> Any:
            # Liveness is checked by the retry manager before this runs
            assert handle.task is not None
            return handle.task.put([record])

        def on_failure(attempt_number: int, error: BaseException) -> None:
            # A put that fails after stop() belongs to a dead run
            if self.is_live(handle):
                self.emit_error(ErrorKind.WRITE, error, attempt=attempt_number, record_key=record.key)

        try:
            await self._retry.execute(attempt, is_live=lambda: self.is_live(handle), on_failure=on_failure)
        except PipelineStoppedError:
            self._log.debug("put_skipped_after_stop", offset=record.offset, partition=record.partition)
            return
        except MaxRetriesExceeded as e:
            if not self.is_live(handle):
                self._log.debug("escalation_skipped_after_stop", offset=record.offset, attempts=e.attempts)
                return
            self._escalate(e, record, ack)
            return

        if not self.is_live(handle):
            # Written, but the consumer is closed; the queue redelivers it
            self._log.debug("ack_skipped_after_stop", offset=record.offset, partition=record.partition)
            return

        self.written += 1
        ack(None)

    def _escalate(self, error: MaxRetriesExceeded, record: SinkRecord, ack: AckCallback) -> None:
        assert self.settings is not None

        if self.settings.halt_on_error:
            self._log.error("halting because of retry error", offset=record.offset, attempts=error.attempts)
            self.emit_error(ErrorKind.ESCALATION, error, terminal=True, record_key=record.key)
            self.stop()
            return

        if self.settings.wait_on_error:
            self._log.error("waiting because of retry error", offset=record.offset, attempts=error.attempts)
            self.emit_error(ErrorKind.ESCALATION, error, terminal=True, record_key=record.key)
            self._transition(PipelineState.HALTED)
            # ack is deliberately never called; the consumer stays blocked
            return

        self.dropped += 1
        ack(error)

    def _cancel_drive_loop(self) -> None:
        if self._consume_task is not None and not self._consume_task.done():
            self._consume_task.cancel()
        self._consume_task = None

    def _close_queue(self, *, commit: bool) -> None:
        if self.consumer is None:
            return
        try:
            self.consumer.close(commit)
        except Exception as e:
            self.emit_error(ErrorKind.TEARDOWN, e)
