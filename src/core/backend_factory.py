"""
Backend factory for building storage and notification backends from the
configuration document.
"""
from typing import List

from abstractions.database import Database
from abstractions.notifier import Notifier
from backends.influxdb import InfluxDb
from contracts.settings import DatabaseSettings, NotificationSettings
from notifiers.mail_notify import MailNotify
from notifiers.webhook_notify import HttpNotify, PagerdutyNotify, SlackNotify


class BackendFactory:
    """
    Factory class for creating backend instances. Every supported backend is
    created; unconfigured ones report is_empty() and are skipped at registration.
    """

    @staticmethod
    def create_databases(settings: DatabaseSettings) -> List[Database]:
        """
        Args:
            settings (DatabaseSettings): The "database" section of the config.

        Returns:
            List[Database]: One instance per supported storage backend.
        """
        return [InfluxDb(settings.influx_db)]

    @staticmethod
    def create_notifiers(settings: NotificationSettings) -> List[Notifier]:
        """
        Args:
            settings (NotificationSettings): The "notifications" section of the config.

        Returns:
            List[Notifier]: One instance per supported alert channel.
        """
        return [
            MailNotify(settings.mail),
            SlackNotify(settings.slack),
            HttpNotify(settings.http),
            PagerdutyNotify(settings.pagerduty),
        ]
