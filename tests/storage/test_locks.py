"""Tests for AsyncReadWriteLock."""

import asyncio

import pytest

from prefixstore.storage.locks import AsyncReadWriteLock


class TestAsyncReadWriteLock:
    """Tests for shared/exclusive semantics."""

    @pytest.mark.asyncio
    async def test_readers_share(self) -> None:
        """Several readers hold the lock at once."""
        lock = AsyncReadWriteLock()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def reader() -> None:
            async with lock.read():
                if lock.readers == 3:
                    inside.set()
                await release.wait()

        tasks = [asyncio.create_task(reader()) for _ in range(3)]
        await asyncio.wait_for(inside.wait(), timeout=1)
        assert lock.readers == 3
        release.set()
        await asyncio.gather(*tasks)
        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_excludes_readers(self) -> None:
        lock = AsyncReadWriteLock()
        order: list[str] = []

        await lock.acquire_write()
        reader = asyncio.create_task(self._record(lock, order, "read"))
        await asyncio.sleep(0.01)
        assert order == []
        order.append("write-done")
        lock.release_write()
        await reader
        assert order == ["write-done", "read"]

    @pytest.mark.asyncio
    async def test_writer_waits_for_readers(self) -> None:
        lock = AsyncReadWriteLock()
        await lock.acquire_read()

        writer = asyncio.create_task(lock.acquire_write())
        await asyncio.sleep(0.01)
        assert not writer.done()

        lock.release_read()
        await asyncio.wait_for(writer, timeout=1)
        assert lock.write_locked
        lock.release_write()

    @pytest.mark.asyncio
    async def test_queued_writer_blocks_new_readers(self) -> None:
        """Readers arriving after a waiting writer go after it."""
        lock = AsyncReadWriteLock()
        order: list[str] = []

        await lock.acquire_read()
        writer = asyncio.create_task(self._record(lock, order, "write", exclusive=True))
        await asyncio.sleep(0.01)
        late_reader = asyncio.create_task(self._record(lock, order, "late-read"))
        await asyncio.sleep(0.01)
        assert order == []

        lock.release_read()
        await asyncio.gather(writer, late_reader)
        assert order == ["write", "late-read"]

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_hold_lock(self) -> None:
        lock = AsyncReadWriteLock()
        await lock.acquire_read()

        writer = asyncio.create_task(lock.acquire_write())
        await asyncio.sleep(0.01)
        writer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await writer

        # A cancelled writer must not block later readers or writers
        await asyncio.wait_for(lock.acquire_read(), timeout=1)
        lock.release_read()
        lock.release_read()
        await asyncio.wait_for(lock.acquire_write(), timeout=1)
        lock.release_write()

    @pytest.mark.asyncio
    async def test_release_without_hold_raises(self) -> None:
        lock = AsyncReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()

    @staticmethod
    async def _record(
        lock: AsyncReadWriteLock, order: list[str], label: str, exclusive: bool = False
    ) -> None:
        context = lock.write() if exclusive else lock.read()
        async with context:
            order.append(label)
