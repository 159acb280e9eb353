# src/conduit/engine/pipeline.py
"""PipelineConfig: shared lifecycle for source and sink pipelines.

Holds the validated plugin set (connector class, task class, converter
chain) and the configuration, drives the startup sequence and owns the
connector/task pair of the current run.

Ownership:
    Every run() creates a fresh RunHandle holding new Connector and Task
    instances. stop() deactivates the handle before tearing the plugins
    down, so continuations scheduled before the stop (a pending retry, a
    poll in flight) see an inactive handle and never touch the stale task.

Error channel:
    Errors are published as PipelineErrorEvent on the event bus and logged.
    The bus is outbound only; pipelines never react to their own events.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

from conduit.contracts.enums import ErrorKind, PipelineKind, PipelineState, can_transition
from conduit.contracts.errors import PipelineConfigError, PipelineStateError, PluginStartupError
from conduit.contracts.events import PipelineErrorEvent, PipelineStateChanged
from conduit.core.config import PipelineSettings, coerce_settings
from conduit.core.events import EventBus, EventBusProtocol
from conduit.core.logging import pipeline_logger
from conduit.engine.awaitables import call_plugin
from conduit.engine.chain import ConverterChain
from conduit.plugins.base import BaseConnector, BaseTask, Converter
from conduit.plugins.validation import validate_connector, validate_task


@dataclass
class RunHandle:
    """Connector and task owned by a single run.

    Attributes:
        run_id: Sequence number of the run within this pipeline
        connector: Connector instance, None until constructed
        task: Task instance, None until constructed
        active: False once the run has been stopped
    """

    run_id: int
    connector: BaseConnector | None = None
    task: BaseTask | None = None
    active: bool = True
    task_config: dict[str, Any] = field(default_factory=dict)


class PipelineConfig(ABC):
    """Base class for SourcePipeline and SinkPipeline.

    Subclasses set kind, connector_base, task_base and default_converter,
    and implement run().

    Args:
        config: PipelineSettings or a mapping validated at run()
        connector_cls: Connector class, instantiated fresh per run
        task_cls: Task class, instantiated fresh per run
        converters: Converter classes or instances, applied in order
        event_bus: Error/state channel; a private EventBus by default
        name: Pipeline name used in events and logs

    Raises:
        MissingFunctionsError: A plugin lacks required operations.
        InheritanceError: A plugin does not derive from the expected base.
    """

    kind: ClassVar[PipelineKind]
    connector_base: ClassVar[type[BaseConnector]]
    task_base: ClassVar[type[BaseTask]]
    default_converter: ClassVar[type[Converter]]

    def __init__(
        self,
        config: PipelineSettings | Mapping[str, Any],
        connector_cls: type[BaseConnector],
        task_cls: type[BaseTask],
        converters: Sequence[type[Converter] | Converter] = (),
        *,
        event_bus: EventBusProtocol | None = None,
        name: str | None = None,
    ) -> None:
        # Contract checks happen here, before any I/O
        self.connector_cls = validate_connector(connector_cls, self.connector_base)
        self.task_cls = validate_task(task_cls, self.task_base)
        self.chain = ConverterChain.build(converters, default=self.default_converter)

        self.config = config
        self.settings: PipelineSettings | None = None
        self.name = name or f"{self.kind}:{connector_cls.name}"
        self.events: EventBusProtocol = event_bus if event_bus is not None else EventBus()

        self._state = PipelineState.CREATED
        self._handle: RunHandle | None = None
        self._runs = 0
        self._log = pipeline_logger(__name__, pipeline=self.name, kind=str(self.kind))

    # === Observability ===

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def handle(self) -> RunHandle | None:
        """RunHandle of the current (or last) run."""
        return self._handle

    def on_error(self, handler: Callable[[PipelineErrorEvent], None]) -> None:
        """Subscribe to error events."""
        self.events.subscribe(PipelineErrorEvent, handler)

    def on_state_change(self, handler: Callable[[PipelineStateChanged], None]) -> None:
        """Subscribe to lifecycle transitions."""
        self.events.subscribe(PipelineStateChanged, handler)

    def emit_error(
        self,
        kind: ErrorKind,
        error: BaseException,
        *,
        terminal: bool = False,
        attempt: int | None = None,
        record_key: Any = None,
    ) -> None:
        """Log an error and publish it on the error channel."""
        log = self._log.error if terminal else self._log.warning
        log(
            "pipeline_error",
            error_kind=str(kind),
            error=str(error),
            error_type=type(error).__name__,
            terminal=terminal,
            attempt=attempt,
        )
        self.events.emit(
            PipelineErrorEvent(
                pipeline=self.name,
                kind=kind,
                error=error,
                terminal=terminal,
                attempt=attempt,
                record_key=record_key,
            )
        )

    def _transition(self, target: PipelineState) -> None:
        """Move to target state.

        Raises:
            PipelineStateError: If the transition is not allowed.
        """
        previous = self._state
        if previous == target:
            return
        if not can_transition(previous, target):
            raise PipelineStateError(f"Illegal transition {previous} -> {target} for pipeline {self.name!r}")
        self._state = target
        self._log.info("pipeline_state_changed", previous=str(previous), current=str(target))
        self.events.emit(PipelineStateChanged(pipeline=self.name, previous=previous, current=target))

    # === Lifecycle ===

    def _prepare_run(self) -> PipelineSettings:
        """Validate configuration and reset state for a new run.

        Raises:
            PipelineStateError: If a run is already active.
            PipelineConfigError: If the configuration is invalid.
        """
        if self._state.is_running:
            raise PipelineStateError(f"Pipeline {self.name!r} is already running ({self._state})")

        settings = coerce_settings(self.config)
        self._validate_settings(settings)
        self.settings = settings

        if self._state == PipelineState.STOPPED:
            self._transition(PipelineState.CREATED)
        return settings

    def _validate_settings(self, settings: PipelineSettings) -> None:
        """Hook for direction-specific checks. Raise PipelineConfigError."""

    async def _start_plugins(self, settings: PipelineSettings) -> RunHandle:
        """Start a fresh connector and task.

        Raises:
            PluginStartupError: If any startup step fails. Whatever already
                started is stopped and the pipeline moves to STOPPED.
        """
        self._runs += 1
        handle = RunHandle(run_id=self._runs)
        self._handle = handle

        stage = "connector.start"
        try:
            handle.connector = self.connector_cls()
            await call_plugin(handle.connector.start, dict(settings.connector))
            self._transition(PipelineState.CONNECTOR_STARTED)

            stage = "connector.task_configs"
            task_config = await call_plugin(handle.connector.task_configs, settings.max_tasks)
            if task_config is None:
                task_config = {}
            if not isinstance(task_config, Mapping):
                raise PipelineConfigError(f"task_configs() must return a mapping, got {type(task_config).__name__}")
            handle.task_config = dict(task_config)
            self._transition(PipelineState.TASK_CONFIGURED)

            stage = "task.start"
            handle.task = self.task_cls()
            await call_plugin(handle.task.start, handle.task_config)
            self._transition(PipelineState.TASK_STARTED)
        except Exception as e:
            self._log.error("pipeline_startup_failed", stage=stage, error=str(e))
            self._teardown(handle)
            self._close_queue(commit=False)
            self._transition(PipelineState.STOPPED)
            raise PluginStartupError(stage, e) from e

        self._log.info("pipeline_started", run_id=handle.run_id, task_config=handle.task_config)
        return handle

    def is_live(self, handle: RunHandle) -> bool:
        """Whether handle still owns a running task."""
        return handle.active and handle is self._handle

    async def convert_to(self, raw: Any) -> Any:
        """Run raw data through the converter chain (to_connect_data)."""
        return await self.chain.convert_to(raw)

    async def convert_from(self, record: Any) -> Any:
        """Run a record through the converter chain (from_connect_data)."""
        return await self.chain.convert_from(record)

    def stop(self, commit: bool = False) -> None:
        """Stop the pipeline. Synchronous, best-effort and idempotent.

        Closes the queue handle, stops the task, stops the connector and
        invalidates the current RunHandle. Failures are reported on the
        error channel and do not interrupt the remaining teardown.

        Args:
            commit: Passed to the queue client's close()
        """
        if self._state in (PipelineState.CREATED, PipelineState.STOPPED):
            return

        self._log.info("pipeline_stopping", commit=commit)
        self._cancel_drive_loop()
        self._close_queue(commit=commit)
        if self._handle is not None:
            self._teardown(self._handle)
        self._transition(PipelineState.STOPPED)

    def _teardown(self, handle: RunHandle) -> None:
        handle.active = False
        task, connector = handle.task, handle.connector
        handle.task = None
        handle.connector = None

        if task is not None:
            try:
                task.stop()
            except Exception as e:
                self.emit_error(ErrorKind.TEARDOWN, e)
        if connector is not None:
            try:
                connector.stop()
            except Exception as e:
                self.emit_error(ErrorKind.TEARDOWN, e)

    def _cancel_drive_loop(self) -> None:
        """Hook: cancel any background loop owned by the subclass."""

    def _close_queue(self, *, commit: bool) -> None:
        """Hook: close the subclass's queue client."""

    @abstractmethod
    async def run(self) -> None:
        """Start the plugins and the background drive loop."""
        ...
