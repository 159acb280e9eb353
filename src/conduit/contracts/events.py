"""Events emitted by a running pipeline.

The error event is the only externally observable signal besides plugin
side effects. State changes are emitted so hosts can react to a halt.
"""

from dataclasses import dataclass
from typing import Any

from conduit.contracts.enums import ErrorKind, PipelineState


@dataclass(frozen=True)
class PipelineErrorEvent:
    """An error reported by a pipeline.

    Attributes:
        pipeline: Name of the emitting pipeline
        kind: Where the error originated
        error: The cause
        terminal: True when the pipeline stops or suspends because of it
        attempt: Write attempt number (1-based) for WRITE errors
        record_key: Key of the affected record, if known
    """

    pipeline: str
    kind: ErrorKind
    error: BaseException
    terminal: bool = False
    attempt: int | None = None
    record_key: Any = None


@dataclass(frozen=True)
class PipelineStateChanged:
    """A lifecycle transition."""

    pipeline: str
    previous: PipelineState
    current: PipelineState
