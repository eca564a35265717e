import asyncio
import unittest

from contracts.probe import ProbeDefinition
from core.probe_task_queue import ProbeTaskQueue
from core.scheduler import ProbeScheduler


def make_definition(probe_id, interval):
    return ProbeDefinition(
        id=probe_id,
        url=f"http://example.com/{probe_id}",
        method="GET",
        expected_latency_ms=100,
        interval=interval,
    )


class TestProbeScheduler(unittest.IsolatedAsyncioTestCase):
    async def test_no_tick_before_first_interval(self):
        queue = ProbeTaskQueue(4)
        scheduler = ProbeScheduler(queue)
        scheduler.start([make_definition(1, 0.2)])
        await asyncio.sleep(0.05)
        self.assertEqual(queue.size, 0)
        await scheduler.stop()

    async def test_ticks_enqueue_probe(self):
        queue = ProbeTaskQueue(100)
        scheduler = ProbeScheduler(queue)
        scheduler.start([make_definition(1, 0.01)])
        self.assertTrue(scheduler.running)
        await asyncio.sleep(0.1)
        await scheduler.stop()
        self.assertFalse(scheduler.running)
        self.assertGreaterEqual(queue.size, 3)
        self.assertEqual((await queue.get_task()).id, 1)

    async def test_independent_timers(self):
        queue = ProbeTaskQueue(100)
        scheduler = ProbeScheduler(queue)
        scheduler.start([make_definition(1, 0.01), make_definition(2, 10)])
        await asyncio.sleep(0.08)
        await scheduler.stop()
        ids = []
        while queue.size:
            ids.append((await queue.get_task()).id)
        self.assertIn(1, ids)
        self.assertNotIn(2, ids)

    async def test_stop_halts_ticks(self):
        queue = ProbeTaskQueue(100)
        scheduler = ProbeScheduler(queue)
        scheduler.start([make_definition(1, 0.01)])
        await asyncio.sleep(0.05)
        await scheduler.stop()
        size = queue.size
        await asyncio.sleep(0.05)
        self.assertEqual(queue.size, size)

    async def test_full_queue_applies_backpressure(self):
        queue = ProbeTaskQueue(1)
        scheduler = ProbeScheduler(queue)
        scheduler.start([make_definition(1, 0.01)])
        await asyncio.sleep(0.1)
        self.assertEqual(queue.size, 1)
        await scheduler.stop()


if __name__ == "__main__":
    unittest.main()
