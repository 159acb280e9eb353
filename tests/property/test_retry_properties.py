# tests/property/test_retry_properties.py
"""Property-based tests for retry budgets."""

import asyncio

from hypothesis import given
from hypothesis import strategies as st

from conduit.contracts.errors import MaxRetriesExceeded
from conduit.engine.retry import RetryManager, RetryPolicy


@given(max_retries=st.integers(min_value=0, max_value=6), failures=st.integers(min_value=0, max_value=8))
def test_attempts_bounded_by_budget(max_retries: int, failures: int) -> None:
    """The operation runs min(failures + 1, max_retries + 1) times."""
    manager = RetryManager(RetryPolicy(max_retries=max_retries, await_retry_ms=0))
    calls = 0
    reported: list[int] = []

    def operation() -> str:
        nonlocal calls
        calls += 1
        if calls <= failures:
            raise RuntimeError(f"failure {calls}")
        return "ok"

    async def scenario() -> str | None:
        try:
            return await manager.execute(operation, is_live=lambda: True, on_failure=lambda n, e: reported.append(n))
        except MaxRetriesExceeded:
            return None

    result = asyncio.run(scenario())

    if failures <= max_retries:
        assert result == "ok"
        assert calls == failures + 1
    else:
        assert result is None
        assert calls == max_retries + 1
    assert reported == list(range(1, min(failures, max_retries + 1) + 1))
