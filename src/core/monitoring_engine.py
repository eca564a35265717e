import asyncio
import logging
from typing import List, Optional

import httpx

from abstractions.database import Database
from abstractions.notifier import Notifier
from config.config import Config
from contracts.alert import AlertEvent
from contracts.errors import (
    BackendInitError,
    ConfigError,
    SmokeTestError,
    StartupError,
)
from contracts.probe import ProbeDefinition
from contracts.probe_result import ProbeResult
from contracts.records import RequestInfo
from contracts.settings import Settings
from core.backend_factory import BackendFactory
from core.backend_registry import BackendRegistry
from core.background_tasks import BackgroundTasks
from core.concurrency_limiter import ConcurrencyLimiter
from core.latency_aggregator import LatencyAggregator
from core.probe_executor import ProbeExecutor
from core.probe_metrics import ProbeMetrics
from core.probe_task_queue import ProbeTaskQueue
from core.probe_validator import ProbeValidator
from core.scheduler import ProbeScheduler

logger = logging.getLogger(__name__)


class MonitoringEngine:
    """
    Composition root of one monitoring run. Owns the probe definitions, the
    latency aggregator, the backend registry and the concurrency limiter, and
    wires scheduler -> queue -> limiter -> executor -> {aggregator, backends}.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        databases: Optional[List[Database]] = None,
        notifiers: Optional[List[Notifier]] = None,
    ):
        """
        Args:
            settings (Settings): The parsed configuration document.
            client (Optional[httpx.AsyncClient]): HTTP client for probes; one is created if omitted.
            databases (Optional[List[Database]]): Storage backends; built from settings if omitted.
            notifiers (Optional[List[Notifier]]): Alert channels; built from settings if omitted.
        """
        self.settings = settings
        self.tasks = BackgroundTasks()
        self.metrics = ProbeMetrics()
        self.validator = ProbeValidator(settings.notify_when.min_response_count)
        self.aggregator = LatencyAggregator()
        self.registry = BackendRegistry(tasks=self.tasks, metrics=self.metrics)
        self.limiter = ConcurrencyLimiter(settings.concurrency)

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(follow_redirects=True)
        self.executor = ProbeExecutor(self.client)

        self._databases = (
            databases if databases is not None else BackendFactory.create_databases(settings.database)
        )
        self._notifiers = (
            notifiers
            if notifiers is not None
            else BackendFactory.create_notifiers(settings.notifications)
        )

        self.definitions: List[ProbeDefinition] = []
        self.queue: Optional[ProbeTaskQueue] = None
        self.scheduler: Optional[ProbeScheduler] = None
        self._consumer: Optional[asyncio.Task] = None
        self._running = False

    @property
    def port(self) -> int:
        return self.settings.port or Config.DEFAULT_PORT

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """
        Validate, register backends, smoke-test every probe and start monitoring.

        Raises:
            StartupError: On any fatal configuration, backend or probe problem.
        """
        await self.prepare()
        await self.run_smoke_tests()
        self.start_monitoring()

    async def prepare(self):
        """
        Validate all probe definitions and register all backends, reporting
        every problem found in one error.
        """
        config_problems: List[str] = []
        backend_problems: List[str] = []

        if not self.settings.requests:
            config_problems.append("No requests to monitor. Please add requests to your config file!")
        try:
            self.definitions = self.validator.validate_all(self.settings.requests)
        except ConfigError as e:
            config_problems.extend(e.problems)

        if self.settings.notify_when.error_count > 1:
            logger.warning("notifyWhen.errorCount is ignored: every failed request raises an alert.")

        try:
            await self.registry.register(self._databases, self._notifiers)
        except BackendInitError as e:
            backend_problems.extend(e.problems)

        if config_problems and backend_problems:
            raise StartupError(config_problems + backend_problems)
        if config_problems:
            raise ConfigError(config_problems)
        if backend_problems:
            raise BackendInitError(backend_problems)

        logger.info(
            f"Prepared {len(self.definitions)} probes, {len(self.registry.databases)} databases, "
            f"{len(self.registry.notifiers)} notifiers, concurrency {self.limiter.capacity}"
        )

    async def run_smoke_tests(self):
        """
        Run every probe once, in definition order, before monitoring starts.

        Raises:
            SmokeTestError: On the first probe that fails.
        """
        logger.info(
            "Sending requests to apis.....making sure everything is right before we start monitoring"
        )
        logger.info(f"Api Count: {len(self.definitions)}")
        for index, definition in enumerate(self.definitions):
            logger.info(f"Request #{index}: {definition.method} {definition.url}")
            result = await self.executor.execute(definition)
            if not result.ok:
                failure = result.outcome
                raise SmokeTestError(
                    [
                        f"Request #{index} failed. Url: {definition.url} Type: {definition.method} "
                        f"Error: {failure.reason.value}: {failure.message}"
                    ]
                )
            self.dispatch(definition, result)
        logger.info("All requests Successful")

    def start_monitoring(self):
        """
        Start the scheduler timers and the queue consumer.
        """
        self.queue = ProbeTaskQueue(len(self.definitions))
        self.scheduler = ProbeScheduler(self.queue)
        self._running = True
        self._consumer = asyncio.create_task(self._consume(), name="probe-consumer")
        self.scheduler.start(self.definitions)
        logger.info(f"Started Monitoring {len(self.definitions)} apis .....")

    async def _consume(self):
        while self._running:
            definition = await self.queue.get_task()
            await self.limiter.acquire()
            task = self.tasks.spawn(self._run_probe(definition), name=f"probe-{definition.id}")
            # Slot is freed when the task ends, even if cancelled before its first step
            task.add_done_callback(lambda _: self.limiter.release())
            self.queue.task_done()

    async def _run_probe(self, definition: ProbeDefinition):
        self.metrics.probe_started()
        try:
            result = await self.executor.execute(definition)
        finally:
            self.metrics.probe_finished()
        self.dispatch(definition, result)

    def dispatch(self, definition: ProbeDefinition, result: ProbeResult):
        """
        Hand a probe result to the aggregator and the backends as detached
        tasks. Returns immediately.
        """
        self.metrics.observe_result(definition, result)
        if result.ok:
            self.registry.publish_request_info(RequestInfo.from_result(definition, result))
            self.tasks.spawn(
                self._aggregate_success(definition, result), name=f"aggregate-{definition.id}"
            )
        else:
            self.tasks.spawn(
                self._aggregate_failure(definition, result), name=f"aggregate-{definition.id}"
            )

    async def _aggregate_success(self, definition: ProbeDefinition, result: ProbeResult):
        alert = await self.aggregator.record_latency(definition, result.outcome.latency_ms)
        if alert is not None:
            self._raise_alert(alert)

    async def _aggregate_failure(self, definition: ProbeDefinition, result: ProbeResult):
        alert = await self.aggregator.record_failure(definition, result)
        self._raise_alert(alert)

    def _raise_alert(self, alert: AlertEvent):
        self.metrics.observe_alert(alert)
        self.registry.publish_alert(alert)

    async def wait_idle(self):
        """Wait for all detached probe, aggregation and backend tasks to finish."""
        await self.tasks.join()

    async def stop(self):
        """
        Stop timers and the consumer, then release backends and the HTTP client.
        In-flight executions and backend calls are cancelled, not drained.
        """
        self._running = False
        if self.scheduler is not None:
            await self.scheduler.stop()
        if self._consumer is not None:
            self._consumer.cancel()
            await asyncio.gather(self._consumer, return_exceptions=True)
            self._consumer = None
        self.tasks.cancel_all()
        await self.tasks.join()
        await self.registry.close()
        if self._owns_client:
            await self.client.aclose()
        logger.info("Monitoring stopped.")
