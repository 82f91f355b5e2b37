"""Asyncio reader/writer lock.

Readers share the lock; a writer holds it alone. Waiters are served in
arrival order, so a queued writer blocks readers that arrive after it and a
steady stream of reads cannot starve updates.
"""

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator


class AsyncReadWriteLock:
    """FIFO reader/writer lock for coroutines of one event loop.

    Releasing never awaits, so a lock is always handed back even when the
    releasing task is being cancelled.

    Example:
        >>> lock = AsyncReadWriteLock()
        >>> async with lock.read():
        ...     ...  # shared access
        >>> async with lock.write():
        ...     ...  # exclusive access
    """

    def __init__(self) -> None:
        self._readers = 0
        self._writer = False
        self._waiters: deque[tuple[bool, asyncio.Future[None]]] = deque()

    @property
    def readers(self) -> int:
        """Number of coroutines currently holding shared access."""
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer

    async def acquire_read(self) -> None:
        if not self._writer and not self._waiters:
            self._readers += 1
            return
        await self._wait(is_writer=False)

    async def acquire_write(self) -> None:
        if not self._writer and self._readers == 0 and not self._waiters:
            self._writer = True
            return
        await self._wait(is_writer=True)

    def release_read(self) -> None:
        if self._readers <= 0:
            raise RuntimeError("release_read() called without shared access held")
        self._readers -= 1
        self._wake()

    def release_write(self) -> None:
        if not self._writer:
            raise RuntimeError("release_write() called without exclusive access held")
        self._writer = False
        self._wake()

    async def _wait(self, is_writer: bool) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append((is_writer, future))
        try:
            await future
        except asyncio.CancelledError:
            if future.done() and not future.cancelled():
                # Granted and cancelled in the same tick: hand the lock back
                if is_writer:
                    self.release_write()
                else:
                    self.release_read()
            else:
                self._wake()
            raise

    def _wake(self) -> None:
        while self._waiters:
            is_writer, future = self._waiters[0]
            if future.done():
                self._waiters.popleft()
                continue
            if is_writer:
                if self._writer or self._readers:
                    return
                self._waiters.popleft()
                self._writer = True
                future.set_result(None)
                return
            if self._writer:
                return
            self._waiters.popleft()
            self._readers += 1
            future.set_result(None)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        """Hold shared access for the duration of the block."""
        await self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        """Hold exclusive access for the duration of the block."""
        await self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
