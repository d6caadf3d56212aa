"""Bounded background worker pool for edit processing."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from uuid import UUID

from printapic.domain.errors import CapacityExceeded

logger = logging.getLogger(__name__)

EditHandler = Callable[[UUID], Awaitable[None]]


@dataclass
class EditWorkerPool:
    """Fixed number of worker tasks consuming edit ids from a bounded queue."""

    concurrency: int = 4
    max_queue_size: int = 100
    _queue: asyncio.Queue | None = field(default=None, init=False, repr=False)
    _workers: list[asyncio.Task] = field(default_factory=list, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._queue is not None

    async def start(self, handler: EditHandler) -> None:
        """Start the worker tasks on the running event loop."""
        if self._queue is not None:
            return
        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._workers = [
            asyncio.create_task(self._run(index, handler), name=f"edit-worker-{index}")
            for index in range(self.concurrency)
        ]
        logger.info("Started %d edit workers", self.concurrency)

    def has_capacity(self) -> bool:
        """Return true when another edit can be queued."""
        return self._queue is not None and not self._queue.full()

    def enqueue(self, edit_id: UUID) -> None:
        """Queue an edit id without waiting."""
        if self._queue is None:
            raise RuntimeError("Edit worker pool is not running")
        try:
            self._queue.put_nowait(edit_id)
        except asyncio.QueueFull:
            raise CapacityExceeded(
                "Too many edits in progress, please try again shortly"
            ) from None

    async def join(self) -> None:
        """Wait until every queued edit has been handled."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        """Cancel the workers; queued edits stay pending in the store."""
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None

    async def _run(self, index: int, handler: EditHandler) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            edit_id = await queue.get()
            try:
                await handler(edit_id)
            except Exception:
                logger.exception(
                    "Edit worker crashed", extra={"worker": index, "edit_id": edit_id}
                )
            finally:
                queue.task_done()
