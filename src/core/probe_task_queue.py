import asyncio
import logging

from contracts.probe import ProbeDefinition

logger = logging.getLogger(__name__)


class ProbeTaskQueue:
    """
    Shared FIFO of probe executions requested by scheduler ticks. Every tick is
    kept, including repeated ticks of the same probe.
    """

    def __init__(self, capacity: int):
        # At least one slot per probe so one round of ticks fits while the consumer is busy
        self.capacity = max(capacity, 1)
        self._queue = asyncio.Queue(maxsize=self.capacity)

    @property
    def size(self):
        """Return the number of pending probe executions."""
        return self._queue.qsize()

    async def add_task(self, definition: ProbeDefinition):
        await self._queue.put(definition)
        logger.debug(f"Queued probe {definition.id}")

    async def get_task(self) -> ProbeDefinition:
        definition = await self._queue.get()
        logger.debug(f"Dequeued probe {definition.id}")
        return definition

    def task_done(self):
        self._queue.task_done()
