from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

RoomWork = Callable[[], Awaitable[None]]


class RoomDispatcher:
    """Runs message work in arrival order per room, concurrently across rooms.

    Each room with pending work gets a single worker task draining its own
    queue. The worker exits once the queue is empty; the next ``submit`` for
    that room starts a fresh one.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._queues: dict[str, asyncio.Queue[RoomWork]] = {}
        self._workers: dict[str, asyncio.Task] = {}
        self._logger = logger or logging.getLogger(__name__)

    def submit(self, room_id: str, work: RoomWork) -> None:
        queue = self._queues.get(room_id)
        if queue is None:
            queue = asyncio.Queue()
            self._queues[room_id] = queue
        queue.put_nowait(work)
        worker = self._workers.get(room_id)
        if worker is None or worker.done():
            self._workers[room_id] = asyncio.create_task(self._drain(room_id, queue))

    def pending(self, room_id: str) -> int:
        queue = self._queues.get(room_id)
        return queue.qsize() if queue is not None else 0

    async def join(self) -> None:
        """Wait until every room's queue has been drained."""
        while True:
            workers = [task for task in self._workers.values() if not task.done()]
            if not workers:
                return
            await asyncio.gather(*workers, return_exceptions=True)

    async def _drain(self, room_id: str, queue: asyncio.Queue[RoomWork]) -> None:
        while True:
            try:
                work = queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            try:
                await work()
            except Exception:
                self._logger.exception("Room work failed: room=%s", room_id)
            finally:
                queue.task_done()
        if self._queues.get(room_id) is queue and queue.empty():
            self._queues.pop(room_id, None)
            self._workers.pop(room_id, None)
