import asyncio
import logging
from typing import Awaitable, Iterable, List, Optional, Tuple

from abstractions.database import Database
from abstractions.notifier import Notifier
from config.config import Config
from contracts.alert import AlertEvent
from contracts.errors import BackendInitError, BackendWriteError
from contracts.records import TEST_ERROR_INFO, TEST_REQUEST_INFO, ErrorInfo, RequestInfo
from core.background_tasks import BackgroundTasks
from core.probe_metrics import ProbeMetrics
from core.profiler import Profiler

logger = logging.getLogger(__name__)


class BackendRegistry:
    """
    Registry of initialized database and notifier backends. Written once at
    startup, read-only afterwards; fans every record and alert out to all
    registered backends as independent best-effort tasks.
    """

    def __init__(
        self,
        tasks: Optional[BackgroundTasks] = None,
        metrics: Optional[ProbeMetrics] = None,
        call_timeout: Optional[float] = None,
    ):
        """
        Initialize the BackendRegistry.

        Args:
            tasks (Optional[BackgroundTasks]): Where fan-out calls are spawned.
            metrics (Optional[ProbeMetrics]): Counts failed backend calls.
            call_timeout (Optional[float]): Bound on each backend call in seconds, 0 disables.
        """
        self.tasks = tasks or BackgroundTasks()
        self.metrics = metrics or ProbeMetrics()
        self.call_timeout = Config.BACKEND_CALL_TIMEOUT if call_timeout is None else call_timeout
        self._databases: Tuple[Database, ...] = ()
        self._notifiers: Tuple[Notifier, ...] = ()

    @property
    def databases(self) -> Tuple[Database, ...]:
        return self._databases

    @property
    def notifiers(self) -> Tuple[Notifier, ...]:
        return self._notifiers

    @Profiler.profile
    async def register(self, databases: Iterable[Database], notifiers: Iterable[Notifier]):
        """
        Initialize and register every configured backend. Unconfigured
        backends are skipped silently.

        Args:
            databases (Iterable[Database]): Candidate storage backends.
            notifiers (Iterable[Notifier]): Candidate alert channels.

        Raises:
            BackendInitError: Listing every backend that failed to initialize.
        """
        problems: List[str] = []
        active_databases = []
        active_notifiers = []

        for database in databases:
            if database.is_empty():
                continue
            name = database.get_database_name()
            try:
                await database.initialize()
            except Exception as e:
                problems.append(f"Failed to Initialize Database {name}, err: {e}")
                continue
            try:
                await self._smoke_test(database)
            except Exception as e:
                problems.append(f"Failed to access Database {name}, err: {e}")
                await self._close_quietly(database, name)
                continue
            active_databases.append(database)
            logger.info(f"Registered database: {name}")

        for notifier in notifiers:
            if notifier.is_empty():
                continue
            name = notifier.get_client_name()
            try:
                await notifier.initialize()
            except Exception as e:
                problems.append(f"Failed to Initialize Notifier {name}, err: {e}")
                continue
            active_notifiers.append(notifier)
            logger.info(f"Registered notifier: {name}")

        self._databases = tuple(active_databases)
        self._notifiers = tuple(active_notifiers)

        if not self._databases:
            logger.info("No Database selected.")
        if not self._notifiers:
            logger.info("No Notifier selected.")
        if problems:
            raise BackendInitError(problems)

    async def _smoke_test(self, database: Database):
        logger.info(f"Adding Test data to your database {database.get_database_name()}...")
        await database.add_request_info(TEST_REQUEST_INFO)
        await database.add_error_info(TEST_ERROR_INFO)

    def publish_request_info(self, request_info: RequestInfo) -> List[asyncio.Task]:
        """
        Forward a success record to every database.

        Returns:
            List[asyncio.Task]: The detached tasks, one per database.
        """
        return [
            self._spawn(db.get_database_name(), "add_request_info", db.add_request_info(request_info))
            for db in self._databases
        ]

    def publish_alert(self, alert: AlertEvent) -> List[asyncio.Task]:
        """
        Forward an alert to every notifier and, for hard failures, the error
        record to every database.

        Returns:
            List[asyncio.Task]: The detached tasks, one per backend call.
        """
        spawned = []
        for notifier in self._notifiers:
            name = notifier.get_client_name()
            if alert.is_failure:
                spawned.append(
                    self._spawn(name, "send_error_notification", notifier.send_error_notification(alert))
                )
            else:
                spawned.append(
                    self._spawn(
                        name,
                        "send_response_time_notification",
                        notifier.send_response_time_notification(alert),
                    )
                )
        if alert.is_failure:
            error_info = ErrorInfo.from_alert(alert)
            for db in self._databases:
                spawned.append(
                    self._spawn(db.get_database_name(), "add_error_info", db.add_error_info(error_info))
                )
        return spawned

    def _spawn(self, backend_name: str, operation: str, call: Awaitable) -> asyncio.Task:
        return self.tasks.spawn(
            self._guarded(backend_name, operation, call),
            name=f"{backend_name}:{operation}",
        )

    async def _guarded(self, backend_name: str, operation: str, call: Awaitable):
        try:
            if self.call_timeout:
                await asyncio.wait_for(call, timeout=self.call_timeout)
            else:
                await call
        except Exception as e:
            error = BackendWriteError(backend_name, operation, e)
            self.metrics.observe_backend_error(backend_name)
            logger.error(str(error))

    async def close(self):
        """
        Close every registered backend.
        """
        for db in self._databases:
            await self._close_quietly(db, db.get_database_name())
        for notifier in self._notifiers:
            await self._close_quietly(notifier, notifier.get_client_name())

    async def _close_quietly(self, backend, name: str):
        try:
            await backend.close()
        except Exception as e:
            logger.warning(f"Error closing backend {name}: {e}")
