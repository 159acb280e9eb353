"""Plugin system: Connectors, Tasks and Converters via pluggy.

- Protocols: Type contracts for plugin implementations
- Base classes: Nominal bases plugins must derive from
- Validation: Construction-time capability checks
- Converters: Built-in identity converters
- Manager / Hookspecs: pluggy registration and lookup by name
"""

from conduit.plugins.base import (
    BaseConnector,
    BaseTask,
    Converter,
    SinkConnector,
    SinkTask,
    SourceConnector,
    SourceTask,
)
from conduit.plugins.converters import SinkBaseConverter, SourceBaseConverter
from conduit.plugins.hookspecs import hookimpl, hookspec
from conduit.plugins.manager import PluginManager
from conduit.plugins.protocols import (
    AckCallback,
    ConnectorProtocol,
    ConverterProtocol,
    MessageHandler,
    QueueConsumerProtocol,
    QueueProducerProtocol,
    SinkTaskProtocol,
    SourceTaskProtocol,
)
from conduit.plugins.validation import validate_connector, validate_converter, validate_task

__all__ = [
    "AckCallback",
    "BaseConnector",
    "BaseTask",
    "ConnectorProtocol",
    "Converter",
    "ConverterProtocol",
    "MessageHandler",
    "PluginManager",
    "QueueConsumerProtocol",
    "QueueProducerProtocol",
    "SinkBaseConverter",
    "SinkConnector",
    "SinkTask",
    "SinkTaskProtocol",
    "SourceBaseConverter",
    "SourceConnector",
    "SourceTask",
    "SourceTaskProtocol",
    "hookimpl",
    "hookspec",
    "validate_connector",
    "validate_converter",
    "validate_task",
]
