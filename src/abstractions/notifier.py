from abc import ABC, abstractmethod

from contracts.alert import AlertEvent


class Notifier(ABC):
    """
    Abstract base class for alert channels.
    """

    @abstractmethod
    def get_client_name(self) -> str:
        """
        Return a human readable name for log and error messages.
        """

    @abstractmethod
    def is_empty(self) -> bool:
        """
        Return True when the channel is not configured and must be skipped.
        """

    @abstractmethod
    async def initialize(self):
        """
        Validate settings and prepare the channel's client.

        Raises:
            Exception: Any error means the channel is excluded at startup.
        """

    @abstractmethod
    async def send_response_time_notification(self, alert: AlertEvent):
        """
        Send a slow-response alert.

        Args:
            alert (AlertEvent): Alert whose detail is a SlowResponse.
        """

    @abstractmethod
    async def send_error_notification(self, alert: AlertEvent):
        """
        Send a hard-failure alert.

        Args:
            alert (AlertEvent): Alert whose detail is a HardFailure.
        """

    async def close(self):
        """
        Release resources acquired in initialize().
        """
