"""pluggy hook specifications for conduit plugins.

Plugins implement these hooks to register their classes with the
framework. The plugin manager calls them during registration.

Usage (implementing a plugin):
    from conduit.plugins.hookspecs import hookimpl

    class OrdersPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def conduit_get_connectors(self):
            return [OrdersConnector]

        @hookimpl
        def conduit_get_tasks(self):
            return [OrdersSinkTask]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from conduit.plugins.base import BaseConnector, BaseTask, Converter

PROJECT_NAME = "conduit"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class ConduitConnectorSpec:
    """Hook specifications for connector plugins."""

    @hookspec
    def conduit_get_connectors(self) -> list[type["BaseConnector"]]:  # type: ignore[empty-body]
        """Return connector classes (not instances)."""


class ConduitTaskSpec:
    """Hook specifications for task plugins."""

    @hookspec
    def conduit_get_tasks(self) -> list[type["BaseTask"]]:  # type: ignore[empty-body]
        """Return source or sink task classes."""


class ConduitConverterSpec:
    """Hook specifications for converter plugins."""

    @hookspec
    def conduit_get_converters(self) -> list[type["Converter"]]:  # type: ignore[empty-body]
        """Return converter classes."""
