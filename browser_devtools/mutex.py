"""FIFO async mutex with disposable ownership guards.

Serializes tool calls against the shared browser context. Unlike
``asyncio.Lock``, ownership is represented by an explicit ``Guard`` object so
release is tied to one token that can only be consumed once.

Usage::

    mutex = Mutex()

    guard = await mutex.acquire()
    with guard:
        ...

    # or, scoped:
    async with mutex.hold():
        ...

Ownership is handed directly from the disposing guard to the earliest queued
waiter, so acquisition order is strict FIFO even when new callers arrive while
the handoff is in flight.
"""

from __future__ import annotations

__all__ = [
    'Guard',
    'Mutex',
]

import asyncio
import collections
import contextlib
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Self

from browser_devtools.errors import GuardDisposedError


class Guard:
    """Exclusive ownership of a ``Mutex``. Dispose exactly once."""

    def __init__(self, mutex: Mutex) -> None:
        self._mutex = mutex
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Release ownership, waking the earliest waiter if any.

        Raises:
            GuardDisposedError: The guard was already disposed. The mutex is
                left untouched, since its current owner may be another guard.
        """
        if self._disposed:
            raise GuardDisposedError('Guard already disposed')
        self._disposed = True
        self._mutex._release()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.dispose()


class Mutex:
    """Async mutual exclusion with FIFO waiters. No timeouts, no reentrancy."""

    def __init__(self) -> None:
        self._locked = False
        self._waiters: collections.deque[asyncio.Future[None]] = collections.deque()

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def waiting(self) -> int:
        """Number of callers queued behind the current owner."""
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def acquire(self) -> Guard:
        """Wait for ownership and return the guard that represents it."""
        if not self._locked and not self._waiters:
            self._locked = True
            return Guard(self)

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Ownership was handed to us just before cancellation landed
                self._release()
            else:
                with contextlib.suppress(ValueError):
                    self._waiters.remove(waiter)
            raise
        return Guard(self)

    @contextlib.asynccontextmanager
    async def hold(self) -> AsyncIterator[Guard]:
        """Scoped acquisition: the guard is disposed on every exit path."""
        guard = await self.acquire()
        with guard:
            yield guard

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                # Ownership stays locked and passes to the waiter
                waiter.set_result(None)
                return
        self._locked = False
