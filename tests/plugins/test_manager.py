# tests/plugins/test_manager.py
"""Tests for plugin registration and lookup."""

from typing import Any

import pytest

from conduit.contracts.enums import PipelineKind
from conduit.plugins.base import Converter, SinkConnector, SourceConnector
from conduit.plugins.converters import SinkBaseConverter, SourceBaseConverter
from conduit.plugins.hookspecs import hookimpl
from conduit.plugins.manager import PluginManager
from tests.fixtures.plugins import AppendTag, Journal, make_connector, make_sink_task, make_source_task


class OrdersPlugin:
    """Registers a source and a sink pair that share the name "orders"."""

    def __init__(self, journal: Journal) -> None:
        self.source_connector = make_connector(journal, SourceConnector, connector_name="orders")
        self.sink_connector = make_connector(journal, SinkConnector, connector_name="orders")
        self.source_task = make_source_task(journal, task_name="orders")
        self.sink_task = make_sink_task(journal, task_name="orders")

    @hookimpl
    def conduit_get_connectors(self) -> list[type]:
        return [self.source_connector, self.sink_connector]

    @hookimpl
    def conduit_get_tasks(self) -> list[type]:
        return [self.source_task, self.sink_task]


class TagPlugin:
    @hookimpl
    def conduit_get_converters(self) -> list[type[Converter]]:
        return [AppendTag]


class TestPluginManager:
    """Tests for PluginManager."""

    def test_builtin_converters(self) -> None:
        manager = PluginManager()
        manager.register_builtin_plugins()

        assert manager.get_converter_by_name("source_base") is SourceBaseConverter
        assert manager.get_converter_by_name("sink_base") is SinkBaseConverter

    def test_connectors_are_kept_per_direction(self, journal: Journal) -> None:
        """A source and a sink connector may share a name."""
        plugin = OrdersPlugin(journal)
        manager = PluginManager()
        manager.register(plugin)

        assert manager.get_connector_by_name("orders", PipelineKind.SOURCE) is plugin.source_connector
        assert manager.get_connector_by_name("orders", PipelineKind.SINK) is plugin.sink_connector
        assert manager.get_task_by_name("orders", PipelineKind.SOURCE) is plugin.source_task
        assert manager.get_task_by_name("orders", PipelineKind.SINK) is plugin.sink_task
        assert manager.get_connectors(PipelineKind.SINK) == [plugin.sink_connector]
        assert manager.get_tasks(PipelineKind.SOURCE) == [plugin.source_task]

    def test_plugin_with_some_hooks(self) -> None:
        manager = PluginManager()
        manager.register(TagPlugin())

        assert manager.get_converters() == [AppendTag]
        assert manager.get_connectors(PipelineKind.SOURCE) == []

    def test_unknown_name_lists_available(self) -> None:
        manager = PluginManager()
        manager.register_builtin_plugins()

        with pytest.raises(ValueError, match=r"Unknown converter: 'json'. Available: sink_base, source_base"):
            manager.get_converter_by_name("json")

    def test_unknown_connector_with_empty_registry(self) -> None:
        with pytest.raises(ValueError, match="Available: none"):
            PluginManager().get_connector_by_name("orders", PipelineKind.SINK)

    def test_duplicate_name_rejected_and_unregistered(self, journal: Journal) -> None:
        """A plugin that introduces a duplicate name is not left registered."""
        manager = PluginManager()
        manager.register(OrdersPlugin(journal))

        with pytest.raises(ValueError, match="Duplicate sink connector plugin name: 'orders'"):
            manager.register(OrdersPlugin(journal))

        # The first registration is still intact and lookups work
        assert len(manager.get_connectors(PipelineKind.SINK)) == 1

    def test_duplicate_builtin_converter_rejected(self) -> None:
        class Shadow(Converter):
            name = "sink_base"

            def to_connect_data(self, raw: Any) -> Any:
                return raw

            def from_connect_data(self, record: Any) -> Any:
                return record

        class ShadowPlugin:
            @hookimpl
            def conduit_get_converters(self) -> list[type[Converter]]:
                return [Shadow]

        manager = PluginManager()
        manager.register_builtin_plugins()

        with pytest.raises(ValueError, match="Duplicate converter"):
            manager.register(ShadowPlugin())
        assert manager.get_converter_by_name("sink_base") is SinkBaseConverter
