import asyncio

from config.config import Config


class ConcurrencyLimiter:
    """
    Counting semaphore capping simultaneous probe executions across all probes.
    """

    def __init__(self, capacity: int = 0):
        self.capacity = capacity if capacity > 0 else Config.DEFAULT_CONCURRENCY
        self._semaphore = asyncio.Semaphore(self.capacity)
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def acquire(self):
        await self._semaphore.acquire()
        self._in_flight += 1

    def release(self):
        self._in_flight -= 1
        self._semaphore.release()
