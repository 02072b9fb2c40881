"""Single-flight execution of identical concurrent requests."""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """Share one in-flight execution between all callers with the same key.

    The first caller for a key starts ``operation`` as a task; later callers
    await that same task until it settles. The key is dropped as soon as the
    task finishes, successfully or not, so the next call starts afresh.
    """

    def __init__(
        self,
        key_fn: Callable[..., str],
        operation: Callable[..., Awaitable[T]],
    ) -> None:
        self._key_fn = key_fn
        self._operation = operation
        self._ongoing: dict[str, asyncio.Task[T]] = {}

    async def run(self, *args: Any, **kwargs: Any) -> T:
        key = self._key_fn(*args, **kwargs)
        task = self._ongoing.get(key)
        if task is None:
            task = asyncio.ensure_future(self._operation(*args, **kwargs))
            self._ongoing[key] = task
            task.add_done_callback(lambda done, k=key: self._release(k, done))
        else:
            logger.debug("coalescer.joined", extra={"key": key})
        # A cancelled waiter must not cancel the execution other waiters share.
        return await asyncio.shield(task)

    def in_flight(self, key: str) -> bool:
        return key in self._ongoing

    def _release(self, key: str, task: asyncio.Task[T]) -> None:
        if self._ongoing.get(key) is task:
            del self._ongoing[key]
        if not task.cancelled():
            # Mark the exception retrieved when every waiter went away.
            task.exception()


def coalesce(
    key_fn: Callable[..., str],
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator form of :class:`RequestCoalescer`."""

    def decorator(operation: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        coalescer: RequestCoalescer[T] = RequestCoalescer(key_fn, operation)

        @wraps(operation)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await coalescer.run(*args, **kwargs)

        wrapper.coalescer = coalescer  # type: ignore[attr-defined]
        return wrapper

    return decorator
