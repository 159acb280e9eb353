"""Base classes for plugin implementations.

Plugins MUST subclass these base classes. The pipeline checks nominal
inheritance at construction time (see conduit.plugins.validation), so an
object that merely looks right is rejected with InheritanceError.

Lifecycle Contract (driven by the pipeline, fresh instances per run):
    connector.start(props) -> connector.task_configs(max_tasks)
    -> task.start(task_config) -> [poll | put ...] -> task.stop() -> connector.stop()

Subclasses may implement start/task_configs/poll/put and the converter
operations as plain methods or as coroutines.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Sequence
from typing import Any, ClassVar

from conduit.contracts.records import SinkRecord, SourceRecord


class _NamedPlugin(ABC):
    """Shared metadata for all plugin types.

    Subclasses that do not declare a name are registered under their class name.
    """

    name: ClassVar[str]
    plugin_version: ClassVar[str] = "0.0.0"

    # Operations checked by the pipeline at construction
    required_functions: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "name" not in cls.__dict__:
            cls.name = cls.__name__


class BaseConnector(_NamedPlugin):
    """Base class for connectors.

    Example:
        class OrdersConnector(SinkConnector):
            name = "orders"

            async def start(self, properties):
                self._dsn = properties["dsn"]

            async def task_configs(self, max_tasks):
                return {"dsn": self._dsn, "max_tasks": max_tasks}

            def stop(self):
                pass
    """

    required_functions: ClassVar[tuple[str, ...]] = ("start", "task_configs", "stop")

    @abstractmethod
    def start(self, properties: dict[str, Any]) -> Awaitable[None] | None:
        """Open the connection to the external system."""
        ...

    @abstractmethod
    def task_configs(self, max_tasks: int) -> Awaitable[dict[str, Any]] | dict[str, Any]:
        """Return the configuration handed to Task.start()."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Release the connection. Called once, when the pipeline stops."""
        ...


class SourceConnector(BaseConnector):
    """Connector for source pipelines."""


class SinkConnector(BaseConnector):
    """Connector for sink pipelines."""


class BaseTask(_NamedPlugin):
    """Base class for tasks."""

    required_functions: ClassVar[tuple[str, ...]] = ("start", "stop")

    @abstractmethod
    def start(self, properties: dict[str, Any]) -> Awaitable[None] | None:
        """Prepare the task with the connector-derived configuration."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Release task resources."""
        ...


class SourceTask(BaseTask):
    """Task for source pipelines."""

    required_functions: ClassVar[tuple[str, ...]] = ("start", "poll", "stop")

    @abstractmethod
    def poll(self) -> Awaitable[Sequence[SourceRecord | None]] | Sequence[SourceRecord | None]:
        """Return newly available records. None entries are skipped."""
        ...


class SinkTask(BaseTask):
    """Task for sink pipelines."""

    required_functions: ClassVar[tuple[str, ...]] = ("start", "put", "stop")

    @abstractmethod
    def put(self, records: list[SinkRecord]) -> Awaitable[None] | None:
        """Durably write records. Raise to signal failure; the pipeline retries."""
        ...


class Converter(_NamedPlugin):
    """Base class for converters.

    to_connect_data turns a raw payload into pipeline-internal form;
    from_connect_data turns a pipeline record back into external form.
    Converters are stateless between invocations.
    """

    required_functions: ClassVar[tuple[str, ...]] = ("to_connect_data", "from_connect_data")

    @abstractmethod
    def to_connect_data(self, raw: Any) -> Awaitable[Any] | Any:
        """Transform a raw payload into pipeline-internal form."""
        ...

    @abstractmethod
    def from_connect_data(self, record: Any) -> Awaitable[Any] | Any:
        """Transform a pipeline record into external form."""
        ...
