"""Status codes and kinds used across subsystem boundaries."""

from enum import StrEnum


class PipelineKind(StrEnum):
    """Direction a pipeline moves records in."""

    SOURCE = "source"
    SINK = "sink"


class PipelineState(StrEnum):
    """Lifecycle state of a pipeline.

    Source: CREATED -> CONNECTOR_STARTED -> TASK_CONFIGURED -> TASK_STARTED
    -> POLLING -> STOPPED.

    Sink: same startup sequence, then CONSUMING -> HALTED | STOPPED.
    HALTED is the wait-on-error suspension: nothing advances until the
    pipeline is stopped.
    """

    CREATED = "created"
    CONNECTOR_STARTED = "connector_started"
    TASK_CONFIGURED = "task_configured"
    TASK_STARTED = "task_started"
    POLLING = "polling"
    CONSUMING = "consuming"
    HALTED = "halted"
    STOPPED = "stopped"

    @property
    def is_running(self) -> bool:
        """Whether a run currently owns a connector/task pair."""
        return self not in (PipelineState.CREATED, PipelineState.STOPPED)


_STARTUP_STATES = frozenset(
    {
        PipelineState.CREATED,
        PipelineState.CONNECTOR_STARTED,
        PipelineState.TASK_CONFIGURED,
        PipelineState.TASK_STARTED,
    }
)

ALLOWED_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.CREATED: frozenset({PipelineState.CONNECTOR_STARTED, PipelineState.STOPPED}),
    PipelineState.CONNECTOR_STARTED: frozenset({PipelineState.TASK_CONFIGURED, PipelineState.STOPPED}),
    PipelineState.TASK_CONFIGURED: frozenset({PipelineState.TASK_STARTED, PipelineState.STOPPED}),
    PipelineState.TASK_STARTED: frozenset({PipelineState.POLLING, PipelineState.CONSUMING, PipelineState.STOPPED}),
    PipelineState.POLLING: frozenset({PipelineState.STOPPED}),
    PipelineState.CONSUMING: frozenset({PipelineState.HALTED, PipelineState.STOPPED}),
    PipelineState.HALTED: frozenset({PipelineState.STOPPED}),
    PipelineState.STOPPED: frozenset({PipelineState.CREATED}),
}


def can_transition(current: PipelineState, target: PipelineState) -> bool:
    """Return True if current -> target is a legal lifecycle step."""
    return target in ALLOWED_TRANSITIONS[current]


def is_startup_state(state: PipelineState) -> bool:
    """Return True for states before the drive loop begins."""
    return state in _STARTUP_STATES


class ErrorKind(StrEnum):
    """Where in the pipeline an error event originated.

    Values:
        POLL: Task.poll failed (source)
        CONVERSION: A converter stage failed or a message could not become a record
        PUBLISH: Producer send failed (source)
        WRITE: Task.put failed (sink, retried)
        CONSUME: The queue consumer itself failed (sink)
        TEARDOWN: A plugin or queue client failed while stopping
        ESCALATION: Retry budget exhausted and halt/wait policy applied
    """

    POLL = "poll"
    CONVERSION = "conversion"
    PUBLISH = "publish"
    WRITE = "write"
    CONSUME = "consume"
    TEARDOWN = "teardown"
    ESCALATION = "escalation"
