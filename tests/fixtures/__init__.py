# tests/fixtures/__init__.py
"""Shared test helpers for conduit tests.

Available helpers:
- Journal plus make_connector / make_sink_task / make_source_task / make_converter
- eventually / settle for driving the event loop
"""

from tests.fixtures.plugins import (
    AppendTag,
    Explode,
    Journal,
    eventually,
    make_connector,
    make_converter,
    make_sink_task,
    make_source_task,
    settle,
    source_record,
)

__all__ = [
    "AppendTag",
    "Explode",
    "Journal",
    "eventually",
    "make_connector",
    "make_converter",
    "make_sink_task",
    "make_source_task",
    "settle",
    "source_record",
]
