"""Plugin manager for registration and lookup by name.

Uses pluggy for hook-based plugin registration. Connectors and tasks are
kept per pipeline direction, so a source and a sink plugin may share a
name.
"""

from typing import Any

import pluggy

from conduit.contracts.enums import PipelineKind
from conduit.plugins.base import (
    BaseConnector,
    BaseTask,
    Converter,
    SinkConnector,
    SinkTask,
    SourceConnector,
    SourceTask,
)
from conduit.plugins.hookspecs import (
    PROJECT_NAME,
    ConduitConnectorSpec,
    ConduitConverterSpec,
    ConduitTaskSpec,
)

_CONNECTOR_BASES: dict[PipelineKind, type[BaseConnector]] = {
    PipelineKind.SOURCE: SourceConnector,
    PipelineKind.SINK: SinkConnector,
}

_TASK_BASES: dict[PipelineKind, type[BaseTask]] = {
    PipelineKind.SOURCE: SourceTask,
    PipelineKind.SINK: SinkTask,
}


def _index(label: str, classes: list[list[type]], base: type) -> dict[str, type]:
    """Index classes deriving from base by name, rejecting duplicates."""
    indexed: dict[str, type] = {}
    for group in classes:
        for cls in group:
            if not issubclass(cls, base):
                continue
            name = cls.name
            if name in indexed:
                raise ValueError(f"Duplicate {label} plugin name: '{name}'. Already registered by {indexed[name].__name__}")
            indexed[name] = cls
    return indexed


class PluginManager:
    """Manages plugin registration and lookup.

    Usage:
        manager = PluginManager()
        manager.register_builtin_plugins()
        manager.register(OrdersPlugin())

        connector_cls = manager.get_connector_by_name("orders", PipelineKind.SINK)
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)

        self._pm.add_hookspecs(ConduitConnectorSpec)
        self._pm.add_hookspecs(ConduitTaskSpec)
        self._pm.add_hookspecs(ConduitConverterSpec)

        self._connectors: dict[PipelineKind, dict[str, type]] = {kind: {} for kind in PipelineKind}
        self._tasks: dict[PipelineKind, dict[str, type]] = {kind: {} for kind in PipelineKind}
        self._converters: dict[str, type[Converter]] = {}

    def register_builtin_plugins(self) -> None:
        """Register the built-in identity converters."""
        from conduit.plugins.converters import BuiltinConverters

        self.register(BuiltinConverters())

    def register(self, plugin: Any) -> None:
        """Register a plugin object implementing one or more hooks.

        Raises:
            ValueError: If a plugin name is already registered for the same type.
        """
        self._pm.register(plugin)
        try:
            self._refresh_caches()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def load_setuptools_entrypoints(self, group: str = PROJECT_NAME) -> int:
        """Register plugins advertised under an entry point group.

        Returns:
            Number of plugins loaded.
        """
        count = self._pm.load_setuptools_entrypoints(group)
        self._refresh_caches()
        return count

    def _refresh_caches(self) -> None:
        # Build everything first so a duplicate leaves the caches untouched
        connector_groups = self._pm.hook.conduit_get_connectors()
        task_groups = self._pm.hook.conduit_get_tasks()

        connectors = {kind: _index(f"{kind} connector", connector_groups, base) for kind, base in _CONNECTOR_BASES.items()}
        tasks = {kind: _index(f"{kind} task", task_groups, base) for kind, base in _TASK_BASES.items()}
        converters = _index("converter", self._pm.hook.conduit_get_converters(), Converter)

        self._connectors = connectors
        self._tasks = tasks
        self._converters = converters

    # === Getters ===

    def get_connectors(self, kind: PipelineKind) -> list[type]:
        """Get all registered connectors for a pipeline direction."""
        return list(self._connectors[kind].values())

    def get_tasks(self, kind: PipelineKind) -> list[type]:
        """Get all registered tasks for a pipeline direction."""
        return list(self._tasks[kind].values())

    def get_converters(self) -> list[type[Converter]]:
        """Get all registered converters."""
        return list(self._converters.values())

    # === Lookup by name ===

    def get_connector_by_name(self, name: str, kind: PipelineKind) -> type:
        """Get a connector class by name.

        Raises:
            ValueError: If no connector of that name is registered.
        """
        return self._lookup(self._connectors[kind], name, f"{kind} connector")

    def get_task_by_name(self, name: str, kind: PipelineKind) -> type:
        """Get a task class by name.

        Raises:
            ValueError: If no task of that name is registered.
        """
        return self._lookup(self._tasks[kind], name, f"{kind} task")

    def get_converter_by_name(self, name: str) -> type[Converter]:
        """Get a converter class by name.

        Raises:
            ValueError: If no converter of that name is registered.
        """
        return self._lookup(self._converters, name, "converter")

    @staticmethod
    def _lookup(registry: dict[str, Any], name: str, label: str) -> Any:
        try:
            return registry[name]
        except KeyError:
            available = ", ".join(sorted(registry)) or "none"
            raise ValueError(f"Unknown {label}: '{name}'. Available: {available}") from None
