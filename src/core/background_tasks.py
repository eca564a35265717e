import asyncio
import logging
from typing import Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """
    Holds references to detached fire-and-forget tasks until they finish.
    Completion order relative to later probe ticks is unspecified.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self):
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc!r}")

    async def join(self):
        """Wait until every task spawned so far, and any they spawn, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self):
        for task in list(self._tasks):
            task.cancel()
