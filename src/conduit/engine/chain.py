# src/conduit/engine/chain.py
"""ConverterChain: ordered, bidirectional converter stages.

Each stage's output is the next stage's input. The chain always holds at
least one stage: building from an empty converter list yields a chain
containing only the default (identity) converter for the pipeline
direction.

The chain keeps no per-record state, so independent records can be
converted concurrently without synchronization.
"""

from collections.abc import Iterator, Sequence
from typing import Any

from conduit.contracts.errors import ConversionError
from conduit.engine.awaitables import call_plugin
from conduit.plugins.base import Converter
from conduit.plugins.validation import validate_converter


class ConverterChain:
    """Immutable sequence of validated converter instances.

    Use ConverterChain.build() rather than the constructor.

    Example:
        chain = ConverterChain.build([JsonValueConverter, UpperCaseKeys()], default=SinkBaseConverter)
        record = await chain.convert_to(message)
    """

    def __init__(self, stages: Sequence[Converter]) -> None:
        if not stages:
            raise ValueError("ConverterChain requires at least one stage")
        self._stages: tuple[Converter, ...] = tuple(stages)

    @classmethod
    def build(
        cls,
        converters: Sequence[type[Converter] | Converter],
        *,
        default: type[Converter] | Converter,
    ) -> "ConverterChain":
        """Validate converters and build a chain.

        Args:
            converters: Converter classes or instances, in application order
            default: Converter used when converters is empty

        Raises:
            MissingFunctionsError: If a converter lacks required operations.
            InheritanceError: If a converter does not derive from Converter.
        """
        supplied = list(converters) or [default]
        return cls([validate_converter(converter) for converter in supplied])

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Converter]:
        return iter(self._stages)

    @property
    def names(self) -> list[str]:
        """Converter names in application order."""
        return [stage.name for stage in self._stages]

    async def convert_to(self, raw: Any) -> Any:
        """Apply to_connect_data left-to-right.

        Raises:
            ConversionError: On the first failing stage; later stages are skipped.
        """
        value = raw
        for index, stage in enumerate(self._stages):
            try:
                value = await call_plugin(stage.to_connect_data, value)
            except Exception as e:
                raise ConversionError(index, stage.name, e) from e
        return value

    async def convert_from(self, record: Any) -> Any:
        """Apply from_connect_data left-to-right.

        Raises:
            ConversionError: On the first failing stage; later stages are skipped.
        """
        value = record
        for index, stage in enumerate(self._stages):
            try:
                value = await call_plugin(stage.from_connect_data, value)
            except Exception as e:
                raise ConversionError(index, stage.name, e) from e
        return value
