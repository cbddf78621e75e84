"""
Cancellation scope for the asynchronous work owned by one view.

Closing a scope cancels every task spawned in it, and marks the scope so a
response that still arrives afterwards is not committed anywhere.
"""

import asyncio
from typing import Any, Coroutine, Optional, TypeVar

T = TypeVar("T")


class Scope:
    def __init__(self, name: str = "view"):
        self.name = name
        self._closed = False
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def cancelled(self) -> bool:
        return self._closed

    def spawn(self, coro: Coroutine[Any, Any, T]) -> "asyncio.Task[T]":
        if self._closed:
            coro.close()
            raise RuntimeError(f"Scope {self.name!r} is closed")
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def close(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def __repr__(self) -> str:
        return f"Scope(name={self.name!r}, cancelled={self._closed}, pending={len(self._tasks)})"


def is_live(scope: Optional[Scope]) -> bool:
    """True when results may still be committed on behalf of scope."""
    return scope is None or not scope.cancelled
