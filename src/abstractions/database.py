from abc import ABC, abstractmethod

from contracts.records import ErrorInfo, RequestInfo


class Database(ABC):
    """
    Abstract base class for storage backends that persist probe outcomes.
    """

    @abstractmethod
    def get_database_name(self) -> str:
        """
        Return a human readable name for log and error messages.
        """

    @abstractmethod
    def is_empty(self) -> bool:
        """
        Return True when the backend is not configured and must be skipped.
        """

    @abstractmethod
    async def initialize(self):
        """
        Connect to the backend and verify it is usable.

        Raises:
            Exception: Any error means the backend is excluded at startup.
        """

    @abstractmethod
    async def add_request_info(self, request_info: RequestInfo):
        """
        Persist the record of a successful probe.

        Args:
            request_info (RequestInfo): The record to write.
        """

    @abstractmethod
    async def add_error_info(self, error_info: ErrorInfo):
        """
        Persist the record of a failed probe.

        Args:
            error_info (ErrorInfo): The record to write.
        """

    async def close(self):
        """
        Release resources acquired in initialize().
        """
