"""Built-in identity converters.

These are the implicit first (and only) stage of a converter chain built
from an empty converter list.
"""

from typing import Any

from conduit.plugins.base import Converter
from conduit.plugins.hookspecs import hookimpl


class SourceBaseConverter(Converter):
    """Identity converter for source pipelines."""

    name = "source_base"

    def to_connect_data(self, raw: Any) -> Any:
        return raw

    def from_connect_data(self, record: Any) -> Any:
        return record


class SinkBaseConverter(Converter):
    """Identity converter for sink pipelines.

    Raw queue messages pass through unchanged; the sink pipeline turns
    them into SinkRecords after the chain has run.
    """

    name = "sink_base"

    def to_connect_data(self, raw: Any) -> Any:
        return raw

    def from_connect_data(self, record: Any) -> Any:
        return record


class BuiltinConverters:
    """Hook implementation registering the built-in converters."""

    @hookimpl
    def conduit_get_converters(self) -> list[type[Converter]]:
        return [SourceBaseConverter, SinkBaseConverter]
