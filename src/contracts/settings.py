from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigModel(BaseModel):
    """
    Base for configuration document models. Fields are read by their camelCase
    JSON names and may also be populated by attribute name.
    """

    model_config = ConfigDict(populate_by_name=True)


class NotifyWhen(ConfigModel):
    min_response_count: int = Field(0, alias="minResponseCount")
    # Accepted for compatibility; every failure alerts.
    error_count: int = Field(0, alias="errorCount")


class ProbeConfig(ConfigModel):
    """
    One entry of the "requests" list, as written in the config file.
    Defaults and duration parsing are applied by the probe validator.
    """

    url: str = ""
    request_type: str = Field("", alias="requestType")
    headers: Optional[Dict[str, str]] = None
    form_params: Optional[Dict[str, Any]] = Field(None, alias="formParams")
    url_params: Optional[Dict[str, str]] = Field(None, alias="urlParams")
    response_code: int = Field(0, alias="responseCode")
    response_time: int = Field(0, alias="responseTime")
    check_every: str = Field("", alias="checkEvery")
    timeout: str = ""
    median_response_count: int = Field(0, alias="medianResponseCount")


class MailSettings(ConfigModel):
    username: str = ""
    password: str = ""
    smtp_host: str = Field("", alias="smtpHost")
    port: int = 0
    from_address: str = Field("", alias="from")
    to: str = ""
    cc: str = ""


class SlackSettings(ConfigModel):
    username: str = ""
    channel_name: str = Field("", alias="channelName")
    channel_webhook_url: str = Field("", alias="channelWebhookURL")
    icon_url: str = Field("", alias="iconUrl")


class HttpNotifySettings(ConfigModel):
    url: str = ""
    request_type: str = Field("", alias="requestType")
    headers: Dict[str, str] = Field(default_factory=dict)


class PagerdutySettings(ConfigModel):
    url: str = ""
    routing_key: str = Field("", alias="routingKey")
    severity: str = ""


class NotificationSettings(ConfigModel):
    mail: MailSettings = Field(default_factory=MailSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    http: HttpNotifySettings = Field(default_factory=HttpNotifySettings)
    pagerduty: PagerdutySettings = Field(default_factory=PagerdutySettings)


class InfluxDbSettings(ConfigModel):
    host: str = ""
    port: int = 0
    bucket: str = ""
    org: str = ""
    token: str = ""


class DatabaseSettings(ConfigModel):
    influx_db: InfluxDbSettings = Field(default_factory=InfluxDbSettings, alias="influxDb")


class Settings(ConfigModel):
    """
    The configuration document consumed by the monitoring engine.
    """

    notify_when: NotifyWhen = Field(default_factory=NotifyWhen, alias="notifyWhen")
    requests: List[ProbeConfig] = Field(default_factory=list)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    concurrency: int = 0
    port: int = 0
