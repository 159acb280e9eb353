# tests/fixtures/plugins.py
"""Scripted connector, task and converter classes for pipeline tests.

Pipelines instantiate plugins themselves (fresh instances per run), so
tests build a new class per scenario with one of the make_* factories and
observe what happened through a shared Journal.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from conduit.contracts.records import SinkRecord, SourceRecord
from conduit.plugins.base import (
    BaseConnector,
    Converter,
    SinkConnector,
    SinkTask,
    SourceConnector,
    SourceTask,
)


@dataclass
class Journal:
    """What the scripted plugins saw, in call order."""

    calls: list[tuple[str, Any]] = field(default_factory=list)
    puts: list[list[SinkRecord]] = field(default_factory=list)
    written: list[SinkRecord] = field(default_factory=list)
    polls: int = 0
    conversions: list[tuple[str, str, Any]] = field(default_factory=list)

    def record(self, name: str, argument: Any = None) -> None:
        self.calls.append((name, argument))

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def count(self, name: str) -> int:
        return self.call_names.count(name)


def make_connector(
    journal: Journal,
    base: type[BaseConnector] = SinkConnector,
    *,
    connector_name: str = "stub",
    start_error: Exception | None = None,
    stop_error: Exception | None = None,
    task_config: Any = "default",
) -> type[BaseConnector]:
    """Build a connector class that records its lifecycle calls."""

    class _Connector(base):  # type: ignore[valid-type,misc]
        name = connector_name

        async def start(self, properties: dict[str, Any]) -> None:
            journal.record("connector.start", properties)
            if start_error is not None:
                raise start_error

        async def task_configs(self, max_tasks: int) -> Any:
            journal.record("connector.task_configs", max_tasks)
            if task_config == "default":
                return {"max_tasks": max_tasks}
            return task_config

        def stop(self) -> None:
            journal.record("connector.stop")
            if stop_error is not None:
                raise stop_error

    return _Connector


def make_sink_task(
    journal: Journal,
    outcomes: Sequence[str] = (),
    *,
    default: str = "ok",
    task_name: str = "stub",
    start_error: Exception | None = None,
) -> type[SinkTask]:
    """Build a sink task whose put() follows a script.

    Outcomes, one per put() call, then default:
        "ok": the returned coroutine succeeds
        "raise": put() raises before returning anything
        "error": put() returns a coroutine that raises when awaited
    """
    script = list(outcomes)

    class _SinkTask(SinkTask):
        name = task_name

        def start(self, properties: dict[str, Any]) -> None:
            journal.record("task.start", properties)
            if start_error is not None:
                raise start_error

        def put(self, records: list[SinkRecord]) -> Any:
            journal.puts.append(records)
            attempt = len(journal.puts)
            outcome = script.pop(0) if script else default
            if outcome == "raise":
                raise RuntimeError(f"failed to sink on attempt {attempt}")

            async def _write() -> None:
                await asyncio.sleep(0)
                if outcome == "error":
                    raise RuntimeError(f"failed to sink on attempt {attempt}")
                journal.written.extend(records)

            return _write()

        def stop(self) -> None:
            journal.record("task.stop")

    return _SinkTask


def make_source_task(
    journal: Journal,
    batches: Sequence[Sequence[SourceRecord | None] | Exception] = (),
    *,
    task_name: str = "stub",
) -> type[SourceTask]:
    """Build a source task returning one scripted batch per poll, then [].

    An Exception in batches is raised by that poll instead.
    """
    script = list(batches)

    class _SourceTask(SourceTask):
        name = task_name

        async def start(self, properties: dict[str, Any]) -> None:
            journal.record("task.start", properties)

        async def poll(self) -> Sequence[SourceRecord | None]:
            journal.polls += 1
            if not script:
                return []
            batch = script.pop(0)
            if isinstance(batch, Exception):
                raise batch
            return batch

        def stop(self) -> None:
            journal.record("task.stop")

    return _SourceTask


def make_converter(
    journal: Journal,
    tag: str,
    *,
    to_connect: Callable[[Any], Any] | None = None,
    from_connect: Callable[[Any], Any] | None = None,
) -> type[Converter]:
    """Build a converter that records each invocation.

    Without transforms both directions are the identity.
    """

    class _Converter(Converter):
        name = tag

        def to_connect_data(self, raw: Any) -> Any:
            journal.conversions.append((tag, "to", raw))
            return to_connect(raw) if to_connect is not None else raw

        async def from_connect_data(self, record: Any) -> Any:
            journal.conversions.append((tag, "from", record))
            return from_connect(record) if from_connect is not None else record

    return _Converter


class AppendTag(Converter):
    """Appends its tag to a list in both directions."""

    name = "append_tag"

    def __init__(self, tag: str = "x") -> None:
        self.tag = tag

    def to_connect_data(self, raw: list[str]) -> list[str]:
        return [*raw, self.tag]

    async def from_connect_data(self, record: list[str]) -> list[str]:
        return [*record, self.tag]


class Explode(Converter):
    """Fails in both directions."""

    name = "explode"

    def to_connect_data(self, raw: Any) -> Any:
        raise ValueError("cannot convert")

    def from_connect_data(self, record: Any) -> Any:
        raise ValueError("cannot convert")


def source_record(key: str, value: Any) -> SourceRecord:
    return SourceRecord(key=key, value=value, timestamp=1_700_000_000_000)


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate holds.

    Raises:
        AssertionError: If predicate is still false after timeout seconds.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.001)


async def settle(rounds: int = 20) -> None:
    """Let pending callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
