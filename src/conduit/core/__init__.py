"""Core infrastructure: configuration, event bus and logging."""

from conduit.core.config import PipelineSettings, PluginSelection, coerce_settings, load_settings
from conduit.core.events import EventBus, EventBusProtocol, NullEventBus
from conduit.core.logging import configure_logging, get_logger

__all__ = [
    "EventBus",
    "EventBusProtocol",
    "NullEventBus",
    "PipelineSettings",
    "PluginSelection",
    "coerce_settings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
