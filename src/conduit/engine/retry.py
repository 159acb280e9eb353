# src/conduit/engine/retry.py
"""RetryManager: fixed-delay retry of sink writes with tenacity.

Semantics:
- The attempt counter starts at 0 and is incremented before each attempt.
- Every failed attempt is reported through on_failure before anything else
  happens, including the final one.
- Once attempts exceed max_retries, MaxRetriesExceeded is raised and the
  caller applies its escalation policy.
- Before each attempt is_live() is consulted. A run that was stopped while
  a retry delay was pending raises PipelineStoppedError and the stale
  operation is never invoked.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from conduit.contracts.errors import MaxRetriesExceeded, PipelineStoppedError
from conduit.engine.awaitables import call_plugin

if TYPE_CHECKING:
    from conduit.core.config import PipelineSettings

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for a single record.

    max_retries counts retries, not attempts: max_retries=3 means up to
    four attempts in total.
    """

    max_retries: int = 3
    await_retry_ms: int = 10

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.await_retry_ms < 0:
            raise ValueError("await_retry_ms must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @property
    def await_retry_seconds(self) -> float:
        return self.await_retry_ms / 1000

    @classmethod
    def from_settings(cls, settings: "PipelineSettings") -> "RetryPolicy":
        return cls(max_retries=settings.max_retries, await_retry_ms=settings.await_retry)


class RetryManager:
    """Runs an operation until it succeeds or the budget is spent.

    Example:
        manager = RetryManager(RetryPolicy(max_retries=3, await_retry_ms=10))

        await manager.execute(
            lambda: task.put([record]),
            is_live=lambda: handle.active,
            on_failure=lambda attempt, error: report(attempt, error),
        )
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        operation: Callable[[], Awaitable[T] | T],
        *,
        is_live: Callable[[], bool],
        on_failure: Callable[[int, BaseException], None] | None = None,
    ) -> T:
        """Execute operation with retry.

        operation may raise directly or return an awaitable that raises;
        both count as a failed attempt.

        Args:
            operation: Zero-argument callable performing one attempt
            is_live: Checked before every attempt
            on_failure: Called with (attempt, error) after each failed attempt

        Returns:
            Result of the first successful attempt

        Raises:
            MaxRetriesExceeded: If every attempt failed
            PipelineStoppedError: If is_live() returned False before an attempt
        """
        attempt = 0
        last_error: BaseException | None = None

        try:
            async for attempt_state in AsyncRetrying(
                stop=stop_after_attempt(self._policy.max_attempts),
                wait=wait_fixed(self._policy.await_retry_seconds),
                # CancelledError and friends are not Exceptions and are never retried
                retry=retry_if_exception_type(Exception) & retry_if_not_exception_type(PipelineStoppedError),
                reraise=False,
            ):
                with attempt_state:
                    attempt = attempt_state.retry_state.attempt_number
                    if not is_live():
                        raise PipelineStoppedError(f"Run stopped before attempt {attempt}")
                    try:
                        return await call_plugin(operation)
                    except Exception as e:
                        last_error = e
                        if on_failure is not None:
                            on_failure(attempt, e)
                        raise

        except RetryError as e:
            final_error = last_error or e.last_attempt.exception()
            assert final_error is not None, "RetryError without exception is impossible"
            raise MaxRetriesExceeded(attempt, final_error) from e

        # AsyncRetrying always returns or raises
        raise RuntimeError("Unexpected state in retry loop")  # pragma: no cover
