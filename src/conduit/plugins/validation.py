"""Capability contract validation for pluggable components.

Runs once, eagerly, when a pipeline is constructed and before any I/O, so
a misconfigured pipeline fails synchronously instead of mid-stream.

Two failures are distinguished:
- MissingFunctionsError: a required operation is absent, not callable, or
  left abstract. Checked first.
- InheritanceError: the operations exist but the plugin does not derive
  from the expected base class.

Usage:
    connector_cls = validate_connector(MyConnector, SinkConnector)
    converters = [validate_converter(c) for c in [JsonConverter, MyConverter()]]
"""

import inspect
from collections.abc import Iterable
from typing import Any, TypeVar

from conduit.contracts.errors import InheritanceError, MissingFunctionsError
from conduit.plugins.base import BaseConnector, BaseTask, Converter

P = TypeVar("P")


def _missing_functions(plugin: Any, required: Iterable[str]) -> list[str]:
    """Return required operation names that plugin does not implement."""
    abstract = getattr(plugin, "__abstractmethods__", frozenset())
    missing: list[str] = []
    for function_name in required:
        attr = inspect.getattr_static(plugin, function_name, None)
        if attr is None or function_name in abstract:
            missing.append(function_name)
            continue
        if not callable(getattr(plugin, function_name)):
            missing.append(function_name)
    return missing


def _check(plugin: Any, expected: type, required: Iterable[str]) -> None:
    missing = _missing_functions(plugin, required)
    if missing:
        raise MissingFunctionsError(plugin, expected, missing)

    cls = plugin if isinstance(plugin, type) else type(plugin)
    if not issubclass(cls, expected):
        raise InheritanceError(plugin, expected)


def validate_connector(connector_cls: type[P], expected: type[BaseConnector] = BaseConnector) -> type[P]:
    """Validate a connector class against its expected base.

    Raises:
        MissingFunctionsError: If start/task_configs/stop are missing.
        InheritanceError: If connector_cls does not derive from expected.
    """
    if not isinstance(connector_cls, type):
        raise TypeError(f"Connector must be a class, got {type(connector_cls).__name__}")
    _check(connector_cls, expected, expected.required_functions)
    return connector_cls


def validate_task(task_cls: type[P], expected: type[BaseTask] = BaseTask) -> type[P]:
    """Validate a task class against its expected base (SourceTask or SinkTask).

    Raises:
        MissingFunctionsError: If poll/put/start/stop are missing.
        InheritanceError: If task_cls does not derive from expected.
    """
    if not isinstance(task_cls, type):
        raise TypeError(f"Task must be a class, got {type(task_cls).__name__}")
    _check(task_cls, expected, expected.required_functions)
    return task_cls


def validate_converter(converter: type[Converter] | Converter) -> Converter:
    """Validate a converter class or instance and return an instance.

    Classes are checked before instantiation and instantiated with no
    arguments.

    Raises:
        MissingFunctionsError: If to_connect_data/from_connect_data are missing.
        InheritanceError: If the converter does not derive from Converter.
    """
    _check(converter, Converter, Converter.required_functions)
    if isinstance(converter, type):
        return converter()
    return converter
