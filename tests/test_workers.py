"""Tests for the edit worker pool."""

import asyncio
from uuid import UUID, uuid4

import pytest

from printapic.domain.errors import CapacityExceeded
from printapic.services.workers import EditWorkerPool


def test_enqueue_before_start_raises() -> None:
    pool = EditWorkerPool()

    assert not pool.has_capacity()
    with pytest.raises(RuntimeError):
        pool.enqueue(uuid4())


def test_workers_handle_every_queued_id() -> None:
    handled: list[UUID] = []

    async def handler(edit_id: UUID) -> None:
        await asyncio.sleep(0)
        handled.append(edit_id)

    ids = [uuid4() for _ in range(5)]

    async def scenario() -> None:
        pool = EditWorkerPool(concurrency=2, max_queue_size=10)
        await pool.start(handler)
        for edit_id in ids:
            pool.enqueue(edit_id)
        await pool.join()
        await pool.stop()
        assert not pool.running

    asyncio.run(scenario())

    assert sorted(handled) == sorted(ids)


def test_full_queue_rejects_new_edits() -> None:
    async def scenario() -> None:
        release = asyncio.Event()

        async def handler(edit_id: UUID) -> None:
            await release.wait()

        pool = EditWorkerPool(concurrency=1, max_queue_size=1)
        await pool.start(handler)
        pool.enqueue(uuid4())
        await asyncio.sleep(0)  # worker takes the first id
        pool.enqueue(uuid4())
        assert not pool.has_capacity()
        with pytest.raises(CapacityExceeded):
            pool.enqueue(uuid4())
        release.set()
        await pool.join()
        await pool.stop()

    asyncio.run(scenario())


def test_handler_error_does_not_stop_worker() -> None:
    handled: list[UUID] = []
    ids = [uuid4(), uuid4()]

    async def handler(edit_id: UUID) -> None:
        if edit_id == ids[0]:
            raise ValueError("boom")
        handled.append(edit_id)

    async def scenario() -> None:
        pool = EditWorkerPool(concurrency=1, max_queue_size=5)
        await pool.start(handler)
        for edit_id in ids:
            pool.enqueue(edit_id)
        await pool.join()
        await pool.stop()

    asyncio.run(scenario())

    assert handled == [ids[1]]
