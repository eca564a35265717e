import logging
from abc import abstractmethod
from typing import Optional

import httpx

from abstractions.notifier import Notifier
from contracts.alert import AlertEvent
from contracts.settings import HttpNotifySettings, PagerdutySettings, SlackSettings
from notifiers.messages import alert_message

logger = logging.getLogger(__name__)

NOTIFY_TIMEOUT = httpx.Timeout(10.0)


def _require_http_url(url: str, owner: str):
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ValueError(f"{owner}: invalid url {url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(f"{owner}: invalid url {url!r}")


class WebhookNotifier(Notifier):
    """
    Shared plumbing for channels that deliver alerts with one HTTP request.
    The client is created in initialize() and owned by the notifier.
    """

    def __init__(self):
        self._client: Optional[httpx.AsyncClient] = None

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=NOTIFY_TIMEOUT)

    async def initialize(self):
        self._client = self._new_client()

    async def _post(self, method: str, url: str, **kwargs):
        if self._client is None:
            raise RuntimeError(f"{self.get_client_name()}: client not initialized")
        resp = await self._client.request(method, url, **kwargs)
        resp.raise_for_status()
        logger.debug(f"{self.get_client_name()} delivered alert, status={resp.status_code}")

    async def send_response_time_notification(self, alert: AlertEvent):
        await self._deliver(alert)

    async def send_error_notification(self, alert: AlertEvent):
        await self._deliver(alert)

    @abstractmethod
    async def _deliver(self, alert: AlertEvent):
        """Send one alert to the channel."""

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class SlackNotify(WebhookNotifier):
    """Slack incoming webhook."""

    def __init__(self, settings: SlackSettings):
        super().__init__()
        self.settings = settings

    def get_client_name(self) -> str:
        return "Slack"

    def is_empty(self) -> bool:
        return not self.settings.channel_webhook_url

    async def initialize(self):
        _require_http_url(self.settings.channel_webhook_url, "Slack")
        await super().initialize()

    def payload(self, alert: AlertEvent) -> dict:
        payload = {"text": alert_message(alert)}
        if self.settings.username:
            payload["username"] = self.settings.username
        if self.settings.channel_name:
            payload["channel"] = self.settings.channel_name
        if self.settings.icon_url:
            payload["icon_url"] = self.settings.icon_url
        return payload

    async def _deliver(self, alert: AlertEvent):
        await self._post("POST", self.settings.channel_webhook_url, json=self.payload(alert))


class HttpNotify(WebhookNotifier):
    """Generic HTTP endpoint receiving a JSON description of the alert."""

    def __init__(self, settings: HttpNotifySettings):
        super().__init__()
        self.settings = settings

    def get_client_name(self) -> str:
        return "Http"

    def is_empty(self) -> bool:
        return not self.settings.url

    async def initialize(self):
        _require_http_url(self.settings.url, "Http")
        await super().initialize()

    def payload(self, alert: AlertEvent) -> dict:
        return {
            "url": alert.url,
            "requestType": alert.request_type,
            "kind": alert.detail.kind,
            "message": alert_message(alert),
            "detail": alert.detail.model_dump(mode="json"),
        }

    async def _deliver(self, alert: AlertEvent):
        await self._post(
            (self.settings.request_type or "POST").upper(),
            self.settings.url,
            headers=self.settings.headers,
            json=self.payload(alert),
        )


class PagerdutyNotify(WebhookNotifier):
    """PagerDuty Events API v2."""

    DEFAULT_URL = "https://events.pagerduty.com/v2/enqueue"
    SEVERITIES = ("critical", "error", "warning", "info")

    def __init__(self, settings: PagerdutySettings):
        super().__init__()
        self.settings = settings

    def get_client_name(self) -> str:
        return "Pagerduty"

    def is_empty(self) -> bool:
        return not self.settings.routing_key

    @property
    def url(self) -> str:
        return self.settings.url or self.DEFAULT_URL

    async def initialize(self):
        _require_http_url(self.url, "Pagerduty")
        if self.settings.severity and self.settings.severity not in self.SEVERITIES:
            raise ValueError(f"Pagerduty: unknown severity {self.settings.severity!r}")
        await super().initialize()

    def payload(self, alert: AlertEvent) -> dict:
        if alert.is_failure:
            summary = f"StatusOk: {alert.request_type} {alert.url} failed: {alert.detail.reason}"
        else:
            summary = (
                f"StatusOk: {alert.request_type} {alert.url} median response time "
                f"{alert.detail.observed_median_ms}ms exceeds {alert.detail.expected_latency_ms}ms"
            )
        return {
            "routing_key": self.settings.routing_key,
            "event_action": "trigger",
            "payload": {
                "summary": summary,
                "source": alert.url,
                "severity": self.settings.severity or ("error" if alert.is_failure else "warning"),
                "custom_details": alert.detail.model_dump(mode="json"),
            },
        }

    async def _deliver(self, alert: AlertEvent):
        await self._post("POST", self.url, json=self.payload(alert))
