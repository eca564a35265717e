import asyncio
import unittest

from contracts.alert import HardFailure, SlowResponse
from contracts.probe import ProbeDefinition
from contracts.probe_result import FailureReason, ProbeFailure, ProbeResult
from core.latency_aggregator import LatencyAggregator, mean_latency, median_latency


def make_definition(**overrides):
    data = dict(
        id=1,
        url="http://example.com",
        method="GET",
        expected_latency_ms=1000,
        window_size=3,
    )
    data.update(overrides)
    return ProbeDefinition(**data)


def failure_result(probe_id=1):
    return ProbeResult(
        probe_id=probe_id,
        outcome=ProbeFailure(
            status_code=503,
            reason=FailureReason.RESPONSE_MISMATCH,
            message="Got Response code 503. Expected Response Code 200",
            response_body="unavailable",
        ),
    )


class TestMedianAndMean(unittest.TestCase):
    def test_odd_median(self):
        self.assertEqual(median_latency([3, 4, 8]), 4)

    def test_even_median_is_integer_average(self):
        self.assertEqual(median_latency([10, 3, 4, 8]), 6)
        self.assertEqual(median_latency([1, 2]), 1)

    def test_single_value(self):
        self.assertEqual(median_latency([3]), 3)

    def test_median_does_not_reorder_input(self):
        values = [9, 1, 5]
        median_latency(values)
        self.assertEqual(values, [9, 1, 5])

    def test_mean(self):
        self.assertEqual(mean_latency([10, 15, 5]), 10)
        self.assertEqual(mean_latency([20, 10]), 15)

    def test_empty(self):
        with self.assertRaises(ValueError):
            median_latency([])
        with self.assertRaises(ValueError):
            mean_latency([])


class TestLatencyAggregator(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.aggregator = LatencyAggregator()

    async def test_not_enough_data(self):
        definition = make_definition(window_size=3)
        self.assertIsNone(await self.aggregator.get_median(1))
        self.assertIsNone(await self.aggregator.get_mean(1))
        await self.aggregator.record_latency(definition, 10)
        await self.aggregator.record_latency(definition, 20)
        self.assertEqual(await self.aggregator.count(1), 2)
        self.assertIsNone(await self.aggregator.get_median(1))
        self.assertIsNone(await self.aggregator.get_mean(1))

    async def test_window_keeps_most_recent(self):
        definition = make_definition(window_size=3)
        for latency in (10, 3, 9, 8):
            await self.aggregator.record_latency(definition, latency)
        self.assertEqual(await self.aggregator.window(1), [3, 9, 8])
        self.assertEqual(await self.aggregator.get_median(1), 8)

    async def test_mean_of_full_window(self):
        definition = make_definition(window_size=3)
        for latency in (10, 15, 5):
            await self.aggregator.record_latency(definition, latency)
        self.assertEqual(await self.aggregator.get_mean(1), 10)

    async def test_even_window_median(self):
        definition = make_definition(window_size=4)
        for latency in (10, 3, 4, 8):
            await self.aggregator.record_latency(definition, latency)
        self.assertEqual(await self.aggregator.get_median(1), 6)

    async def test_eviction_is_exactly_one_oldest(self):
        definition = make_definition(window_size=3)
        for latency in range(1, 11):
            await self.aggregator.record_latency(definition, latency)
            window = await self.aggregator.window(1)
            self.assertLessEqual(len(window), 3)
            self.assertEqual(window, list(range(max(1, latency - 2), latency + 1)))

    async def test_slow_median_alerts_and_clears(self):
        definition = make_definition(expected_latency_ms=100, window_size=3)
        self.assertIsNone(await self.aggregator.record_latency(definition, 150))
        self.assertIsNone(await self.aggregator.record_latency(definition, 50))
        alert = await self.aggregator.record_latency(definition, 200)
        self.assertIsNotNone(alert)
        self.assertIsInstance(alert.detail, SlowResponse)
        self.assertEqual(alert.detail.observed_median_ms, 150)
        self.assertEqual(alert.detail.expected_latency_ms, 100)
        self.assertEqual(alert.probe_id, 1)
        self.assertEqual(await self.aggregator.count(1), 0)

    async def test_fast_median_keeps_window_sliding(self):
        definition = make_definition(expected_latency_ms=100, window_size=3)
        for latency in (10, 20, 30):
            self.assertIsNone(await self.aggregator.record_latency(definition, latency))
        self.assertEqual(await self.aggregator.count(1), 3)
        # Next fill re-evaluates with the slid window
        self.assertIsNone(await self.aggregator.record_latency(definition, 500))
        alert = await self.aggregator.record_latency(definition, 400)
        self.assertIsNotNone(alert)
        self.assertEqual(alert.detail.observed_median_ms, 400)

    async def test_median_equal_to_expected_does_not_alert(self):
        definition = make_definition(expected_latency_ms=100, window_size=1)
        self.assertIsNone(await self.aggregator.record_latency(definition, 100))
        self.assertIsNotNone(await self.aggregator.record_latency(definition, 101))

    async def test_repeated_cycles_are_deterministic(self):
        definition = make_definition(expected_latency_ms=5, window_size=3)
        medians = []
        for _ in range(4):
            alert = None
            for latency in (10, 3, 9):
                alert = await self.aggregator.record_latency(definition, latency)
            medians.append(alert.detail.observed_median_ms)
            self.assertEqual(await self.aggregator.window(1), [])
        self.assertEqual(medians, [9, 9, 9, 9])

    async def test_failure_always_alerts(self):
        definition = make_definition(window_size=3)
        for filled in range(4):
            with self.subTest(filled=filled):
                aggregator = LatencyAggregator()
                for _ in range(filled):
                    await aggregator.record_latency(definition, 10)
                before = await aggregator.window(1)
                alert = await aggregator.record_failure(definition, failure_result())
                self.assertIsInstance(alert.detail, HardFailure)
                self.assertEqual(alert.detail.reason, "ResponseMismatchError")
                self.assertEqual(alert.detail.response_code, 503)
                self.assertEqual(alert.detail.response_body, "unavailable")
                self.assertEqual(await aggregator.window(1), before)

    async def test_windows_are_per_probe(self):
        first = make_definition(id=1, window_size=2)
        second = make_definition(id=2, window_size=2)
        await self.aggregator.record_latency(first, 10)
        await self.aggregator.record_latency(second, 99)
        self.assertEqual(await self.aggregator.window(1), [10])
        self.assertEqual(await self.aggregator.window(2), [99])

    async def test_concurrent_records_respect_capacity(self):
        definition = make_definition(expected_latency_ms=10_000, window_size=3)
        await asyncio.gather(
            *(self.aggregator.record_latency(definition, i) for i in range(100))
        )
        self.assertEqual(await self.aggregator.count(1), 3)


if __name__ == "__main__":
    unittest.main()
