import asyncio
import logging
from typing import Dict, Iterable

from contracts.probe import ProbeDefinition
from core.probe_task_queue import ProbeTaskQueue

logger = logging.getLogger(__name__)


class ProbeScheduler:
    """
    Runs one periodic timer per probe, each tick enqueueing the probe onto the
    shared work queue.
    """

    def __init__(self, queue: ProbeTaskQueue):
        self.queue = queue
        self._tasks: Dict[int, asyncio.Task] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self, definitions: Iterable[ProbeDefinition]):
        """
        Start a ticker task for every probe.
        """
        self._running = True
        for definition in definitions:
            self._tasks[definition.id] = asyncio.create_task(
                self._tick_loop(definition), name=f"probe-ticker-{definition.id}"
            )
        logger.info(f"Scheduler started {len(self._tasks)} probe timers.")

    async def stop(self):
        """
        Stop all timers. Executions already queued or running are not drained.
        """
        self._running = False
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Scheduler stopped.")

    async def _tick_loop(self, definition: ProbeDefinition):
        """
        Fixed-rate ticker: deadlines advance by exactly one interval so slow
        queue puts do not accumulate drift.
        """
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + definition.interval
        while self._running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            await self.queue.add_task(definition)
            next_tick += definition.interval
            now = loop.time()
            if next_tick < now:
                # ticks missed while blocked on a full queue are skipped
                missed = int((now - next_tick) // definition.interval) + 1
                next_tick += missed * definition.interval
