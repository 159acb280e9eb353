# src/conduit/engine/source.py
"""SourcePipeline: poll -> convert -> publish on a fixed interval.

Lifecycle:
    CREATED -> CONNECTOR_STARTED -> TASK_CONFIGURED -> TASK_STARTED -> POLLING -> STOPPED

Each poll's batch is drained completely (converted and published, in
order) before the interval sleep starts, so polls never overlap and the
number of in-flight records is bounded by one batch.

Poll, conversion and publish failures are reported on the error channel
and polling continues (best-effort, at-least-once). A poll result that is
not a sequence of records counts as a poll failure. If the poll loop
itself dies, a terminal poll error is emitted.
"""

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from conduit.contracts.enums import ErrorKind, PipelineKind, PipelineState
from conduit.contracts.errors import ConversionError, PipelineConfigError
from conduit.contracts.records import PublishResult, encode_value
from conduit.core.config import PipelineSettings
from conduit.core.events import EventBusProtocol
from conduit.engine.awaitables import call_plugin
from conduit.engine.pipeline import PipelineConfig, RunHandle
from conduit.plugins.base import BaseConnector, BaseTask, Converter, SourceConnector, SourceTask
from conduit.plugins.converters import SourceBaseConverter
from conduit.plugins.protocols import QueueProducerProtocol


class SourcePipeline(PipelineConfig):
    """Moves records from an external system into a queue topic.

    Example:
        producer = MemoryProducer(broker)
        source = SourcePipeline(settings, OrdersConnector, OrdersSourceTask, producer=producer)
        source.on_error(lambda event: print(event.error))
        await source.run()
        ...
        source.stop()
    """

    kind = PipelineKind.SOURCE
    connector_base = SourceConnector
    task_base = SourceTask
    default_converter = SourceBaseConverter

    def __init__(
        self,
        config: PipelineSettings | Mapping[str, Any],
        connector_cls: type[BaseConnector],
        task_cls: type[BaseTask],
        converters: Sequence[type[Converter] | Converter] = (),
        producer: QueueProducerProtocol | None = None,
        *,
        event_bus: EventBusProtocol | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(config, connector_cls, task_cls, converters, event_bus=event_bus, name=name)
        self.producer = producer
        self.published = 0
        self._poll_task: asyncio.Task[None] | None = None

    def _validate_settings(self, settings: PipelineSettings) -> None:
        if settings.topic is None:
            raise PipelineConfigError("config.topic must be set for a source pipeline")
        if self.producer is None:
            raise PipelineConfigError("a queue producer is required to run a source pipeline")

    async def run(self) -> None:
        """Start plugins and begin polling in the background.

        Returns once the poll loop has been scheduled.

        Raises:
            PipelineConfigError: Invalid configuration or no producer.
            PipelineStateError: Already running.
            PluginStartupError: Connector or task failed to start.
        """
        settings = self._prepare_run()
        assert self.producer is not None  # checked by _validate_settings

        await self.producer.connect()
        handle = await self._start_plugins(settings)

        self._transition(PipelineState.POLLING)
        self._poll_task = asyncio.create_task(self._poll_loop(handle, settings), name=f"{self.name}:poll")
        self._poll_task.add_done_callback(self._on_poll_done)

    async def _poll_loop(self, handle: RunHandle, settings: PipelineSettings) -> None:
        interval = settings.poll_interval / 1000
        while self.is_live(handle):
            await self.poll_once(handle)
            await asyncio.sleep(interval)

    def _on_poll_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            # Nothing restarts the loop, so the run no longer polls
            self.emit_error(ErrorKind.POLL, error, terminal=True)

    async def poll_once(self, handle: RunHandle) -> list[PublishResult]:
        """Poll the task once and drain the batch.

        Returns:
            Publish results for the records that were published, in order.
        """
        task = handle.task
        if not self.is_live(handle) or task is None:
            return []

        try:
            batch = await call_plugin(task.poll)
            if batch is None:
                batch = []
            elif not isinstance(batch, Sequence) or isinstance(batch, (str, bytes)):
                raise TypeError(f"poll() must return a sequence of records, got {type(batch).__name__}")
        except Exception as e:
            if self.is_live(handle):
                self.emit_error(ErrorKind.POLL, e)
            return []

        results: list[PublishResult] = []
        for record in batch:
            # Holes in a poll result are skipped, not errors
            if record is None:
                continue
            if not self.is_live(handle):
                break
            result = await self._publish(record)
            if result is not None:
                results.append(result)
        return results

    async def _publish(self, record: Any) -> PublishResult | None:
        assert self.settings is not None and self.settings.topic is not None
        assert self.producer is not None
        key = getattr(record, "key", None)

        try:
            payload = encode_value(await self.convert_from(record))
        except (ConversionError, TypeError, ValueError) as e:
            self.emit_error(ErrorKind.CONVERSION, e, record_key=key)
            return None

        try:
            result = await self.producer.send(self.settings.topic, payload)
        except Exception as e:
            self.emit_error(ErrorKind.PUBLISH, e, record_key=key)
            return None

        self.published += 1
        return result

    def _cancel_drive_loop(self) -> None:
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()
        self._poll_task = None

    def _close_queue(self, *, commit: bool) -> None:
        if self.producer is None:
            return
        try:
            self.producer.close(commit)
        except Exception as e:
            self.emit_error(ErrorKind.TEARDOWN, e)
