"""Helpers for calling plugin operations that may or may not be coroutines."""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


async def maybe_await(value: Awaitable[T] | T) -> T:
    """Await value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def call_plugin(operation: Callable[..., Any], *args: Any) -> Any:
    """Invoke a plugin operation and await its result when needed.

    An exception raised by the call itself and one raised while awaiting
    the returned awaitable both propagate to the caller.
    """
    return await maybe_await(operation(*args))
