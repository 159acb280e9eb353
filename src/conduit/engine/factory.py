"""Build pipelines from settings and registered plugins.

Resolves the connector, task and converter names in settings.plugins
through a PluginManager, so a pipeline can be described entirely in
configuration.
"""

from collections.abc import Mapping
from typing import Any

from conduit.contracts.enums import PipelineKind
from conduit.contracts.errors import PipelineConfigError
from conduit.core.config import PipelineSettings, coerce_settings
from conduit.core.events import EventBusProtocol
from conduit.engine.sink import SinkPipeline
from conduit.engine.source import SourcePipeline
from conduit.plugins.base import Converter
from conduit.plugins.manager import PluginManager
from conduit.plugins.protocols import QueueConsumerProtocol, QueueProducerProtocol


def _resolve(
    settings: PipelineSettings,
    manager: PluginManager,
    kind: PipelineKind,
) -> tuple[type, type, list[type[Converter]]]:
    if settings.plugins is None:
        raise PipelineConfigError("config.plugins must name a connector and task to build a pipeline from settings")
    selection = settings.plugins
    try:
        connector_cls = manager.get_connector_by_name(selection.connector, kind)
        task_cls = manager.get_task_by_name(selection.task, kind)
        converters = [manager.get_converter_by_name(name) for name in selection.converters]
    except ValueError as e:
        raise PipelineConfigError(str(e)) from e
    return connector_cls, task_cls, converters


def build_source_pipeline(
    config: PipelineSettings | Mapping[str, Any],
    manager: PluginManager,
    producer: QueueProducerProtocol,
    *,
    event_bus: EventBusProtocol | None = None,
) -> SourcePipeline:
    """Create a SourcePipeline from settings.plugins.

    Raises:
        PipelineConfigError: If settings are invalid or name unknown plugins.
    """
    settings = coerce_settings(config)
    connector_cls, task_cls, converters = _resolve(settings, manager, PipelineKind.SOURCE)
    return SourcePipeline(settings, connector_cls, task_cls, converters, producer, event_bus=event_bus)


def build_sink_pipeline(
    config: PipelineSettings | Mapping[str, Any],
    manager: PluginManager,
    consumer: QueueConsumerProtocol,
    *,
    event_bus: EventBusProtocol | None = None,
) -> SinkPipeline:
    """Create a SinkPipeline from settings.plugins.

    Raises:
        PipelineConfigError: If settings are invalid or name unknown plugins.
    """
    settings = coerce_settings(config)
    connector_cls, task_cls, converters = _resolve(settings, manager, PipelineKind.SINK)
    return SinkPipeline(settings, connector_cls, task_cls, converters, consumer, event_bus=event_bus)
