"""Deduplicates concurrent computations that share a key."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """At most one in-flight call per key within one event loop.

    The first caller starts the computation as its own task; callers that
    arrive while it runs await the same task instead of starting their own.
    Every caller awaits through `asyncio.shield`, so cancelling one caller
    never cancels the shared computation or the other callers. The key is
    released once the task finishes, so later calls start fresh.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[T]] = {}

    def __len__(self) -> int:
        return len(self._inflight)

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run `fn` once for `key`. Returns `(result, shared)`."""
        task = self._inflight.get(key)
        shared = task is not None
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._release(key, done))
        return await asyncio.shield(task), shared

    def _release(self, key: str, task: asyncio.Future[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark retrieved so a failure with no remaining waiters is not reported.
        if not task.cancelled():
            task.exception()
