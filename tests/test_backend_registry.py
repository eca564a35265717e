import asyncio
import unittest
from unittest.mock import MagicMock

from backend_fakes import FakeDatabase, FakeNotifier
from contracts.alert import AlertEvent, HardFailure, SlowResponse
from contracts.errors import BackendInitError
from contracts.records import TEST_ERROR_INFO, TEST_REQUEST_INFO, RequestInfo
from core.backend_registry import BackendRegistry


def slow_alert():
    return AlertEvent(
        probe_id=1,
        url="http://example.com",
        request_type="GET",
        detail=SlowResponse(expected_latency_ms=100, observed_median_ms=250),
    )


def failure_alert():
    return AlertEvent(
        probe_id=1,
        url="http://example.com",
        request_type="GET",
        detail=HardFailure(
            reason="TransportError", response_code=0, other_info="Request failed: refused"
        ),
    )


def request_info():
    return RequestInfo(
        id=1,
        url="http://example.com",
        request_type="GET",
        response_code=200,
        response_time_ms=42,
        expected_response_time_ms=100,
    )


class TestBackendRegistry(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.metrics = MagicMock()
        self.registry = BackendRegistry(metrics=self.metrics)

    async def test_register_initializes_and_smoke_tests_databases(self):
        database = FakeDatabase()
        notifier = FakeNotifier()
        await self.registry.register([database], [notifier])
        self.assertTrue(database.initialized)
        self.assertTrue(notifier.initialized)
        self.assertEqual(database.request_infos, [TEST_REQUEST_INFO])
        self.assertEqual(database.error_infos, [TEST_ERROR_INFO])
        self.assertEqual(self.registry.databases, (database,))
        self.assertEqual(self.registry.notifiers, (notifier,))

    async def test_empty_backends_are_skipped(self):
        database = FakeDatabase(empty=True)
        notifier = FakeNotifier(empty=True)
        await self.registry.register([database], [notifier])
        self.assertFalse(database.initialized)
        self.assertFalse(notifier.initialized)
        self.assertEqual(self.registry.databases, ())
        self.assertEqual(self.registry.notifiers, ())

        self.assertEqual(self.registry.publish_request_info(request_info()), [])
        self.assertEqual(self.registry.publish_alert(failure_alert()), [])
        self.assertEqual(database.request_infos, [])
        self.assertEqual(notifier.error_alerts, [])

    async def test_no_backends_is_valid(self):
        await self.registry.register([], [])
        self.assertEqual(self.registry.databases, ())

    async def test_init_failures_are_collected(self):
        good = FakeNotifier(name="good")
        bad_db = FakeDatabase(name="bad-db", init_error=ConnectionError("refused"))
        bad_notifier = FakeNotifier(name="bad-notifier", init_error=ValueError("no url"))
        with self.assertRaises(BackendInitError) as ctx:
            await self.registry.register([bad_db], [bad_notifier, good])
        self.assertEqual(len(ctx.exception.problems), 2)
        self.assertIn("bad-db", ctx.exception.problems[0])
        self.assertIn("bad-notifier", ctx.exception.problems[1])
        self.assertEqual(self.registry.notifiers, (good,))

    async def test_smoke_test_failure_excludes_database(self):
        database = FakeDatabase(write_error=IOError("read only"))
        with self.assertRaises(BackendInitError) as ctx:
            await self.registry.register([database], [])
        self.assertIn("Failed to access Database", ctx.exception.problems[0])
        self.assertTrue(database.closed)
        self.assertEqual(self.registry.databases, ())

    async def test_publish_request_info_to_every_database(self):
        first, second = FakeDatabase(name="a"), FakeDatabase(name="b")
        await self.registry.register([first, second], [])
        tasks = self.registry.publish_request_info(request_info())
        self.assertEqual(len(tasks), 2)
        await self.registry.tasks.join()
        self.assertEqual(first.request_infos[-1], request_info())
        self.assertEqual(second.request_infos[-1], request_info())

    async def test_slow_alert_goes_to_notifiers_only(self):
        database = FakeDatabase()
        notifier = FakeNotifier()
        await self.registry.register([database], [notifier])
        tasks = self.registry.publish_alert(slow_alert())
        self.assertEqual(len(tasks), 1)
        await self.registry.tasks.join()
        self.assertEqual(len(notifier.response_time_alerts), 1)
        self.assertEqual(notifier.error_alerts, [])
        self.assertEqual(database.error_infos, [TEST_ERROR_INFO])

    async def test_failure_alert_goes_to_notifiers_and_databases(self):
        database = FakeDatabase()
        notifier = FakeNotifier()
        await self.registry.register([database], [notifier])
        self.registry.publish_alert(failure_alert())
        await self.registry.tasks.join()
        self.assertEqual(len(notifier.error_alerts), 1)
        error_info = database.error_infos[-1]
        self.assertEqual(error_info.reason, "TransportError")
        self.assertEqual(error_info.other_info, "Request failed: refused")
        self.assertEqual(error_info.id, 1)

    async def test_backend_errors_are_swallowed(self):
        flaky = FakeNotifier(name="flaky")
        healthy = FakeNotifier(name="healthy")
        await self.registry.register([], [flaky, healthy])
        flaky.send_error = RuntimeError("webhook down")
        tasks = self.registry.publish_alert(failure_alert())
        await self.registry.tasks.join()
        for task in tasks:
            self.assertIsNone(task.exception())
        self.assertEqual(len(healthy.error_alerts), 1)
        self.metrics.observe_backend_error.assert_called_once_with("flaky")

    async def test_hung_backend_call_is_bounded(self):
        class HangingNotifier(FakeNotifier):
            async def send_response_time_notification(self, alert):
                await asyncio.sleep(10)

        registry = BackendRegistry(metrics=self.metrics, call_timeout=0.05)
        await registry.register([], [HangingNotifier(name="hanging")])
        registry.publish_alert(slow_alert())
        await asyncio.wait_for(registry.tasks.join(), timeout=1)
        self.metrics.observe_backend_error.assert_called_once_with("hanging")

    async def test_close_releases_backends(self):
        database = FakeDatabase()
        notifier = FakeNotifier()
        await self.registry.register([database], [notifier])
        await self.registry.close()
        self.assertTrue(database.closed)
        self.assertTrue(notifier.closed)


if __name__ == "__main__":
    unittest.main()
