import asyncio
import unittest

from core.concurrency_limiter import ConcurrencyLimiter


class TestConcurrencyLimiter(unittest.IsolatedAsyncioTestCase):
    async def test_default_capacity(self):
        self.assertEqual(ConcurrencyLimiter().capacity, 1)
        self.assertEqual(ConcurrencyLimiter(-4).capacity, 1)
        self.assertEqual(ConcurrencyLimiter(5).capacity, 5)

    async def test_in_flight_tracking(self):
        limiter = ConcurrencyLimiter(2)
        await limiter.acquire()
        await limiter.acquire()
        self.assertEqual(limiter.in_flight, 2)
        limiter.release()
        self.assertEqual(limiter.in_flight, 1)

    async def test_acquire_blocks_at_capacity(self):
        limiter = ConcurrencyLimiter(1)
        await limiter.acquire()
        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.01)
        self.assertFalse(waiter.done())
        limiter.release()
        await asyncio.wait_for(waiter, timeout=1)
        self.assertEqual(limiter.in_flight, 1)

    async def test_never_exceeds_capacity(self):
        limiter = ConcurrencyLimiter(3)
        peak = 0

        async def work():
            nonlocal peak
            await limiter.acquire()
            try:
                peak = max(peak, limiter.in_flight)
                await asyncio.sleep(0.005)
            finally:
                limiter.release()

        await asyncio.gather(*(work() for _ in range(20)))
        self.assertLessEqual(peak, 3)
        self.assertEqual(limiter.in_flight, 0)


if __name__ == "__main__":
    unittest.main()
