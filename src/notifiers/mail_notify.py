import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid, parseaddr

from abstractions.notifier import Notifier
from contracts.alert import AlertEvent
from contracts.settings import MailSettings
from notifiers.messages import (
    ERROR_SUBJECT,
    RESPONSE_TIME_SUBJECT,
    error_message,
    response_time_message,
)

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 3
IMPLICIT_TLS_PORT = 465


def _valid_address(value: str) -> bool:
    _, address = parseaddr(value)
    return "@" in address


class MailNotify(Notifier):
    """
    SMTP mail channel. smtplib is blocking, so every session runs in a worker
    thread.
    """

    def __init__(self, settings: MailSettings):
        self.settings = settings
        self._tls_context = ssl.create_default_context()

    def get_client_name(self) -> str:
        return "Smtp Mail"

    def is_empty(self) -> bool:
        s = self.settings
        return not (s.smtp_host and s.port and s.from_address and s.to)

    @property
    def is_authorized(self) -> bool:
        return bool(self.settings.username or self.settings.password)

    async def initialize(self):
        if not _valid_address(self.settings.from_address):
            raise ValueError(f"Invalid From address {self.settings.from_address!r}")
        if not _valid_address(self.settings.to):
            raise ValueError(f"Invalid To address {self.settings.to!r}")
        # Check server connection
        await asyncio.to_thread(self._check_connection)

    def _connect(self) -> smtplib.SMTP:
        host, port = self.settings.smtp_host, self.settings.port
        if port == IMPLICIT_TLS_PORT:
            client = smtplib.SMTP_SSL(host, port, timeout=SMTP_TIMEOUT, context=self._tls_context)
        else:
            client = smtplib.SMTP(host, port, timeout=SMTP_TIMEOUT)
        try:
            if port != IMPLICIT_TLS_PORT:
                client.ehlo()
                if client.has_extn("starttls"):
                    client.starttls(context=self._tls_context)
                    client.ehlo()
            if self.is_authorized and client.has_extn("auth"):
                client.login(self.settings.username, self.settings.password)
        except Exception:
            client.close()
            raise
        return client

    def _check_connection(self):
        client = self._connect()
        client.quit()

    def build_message(self, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.settings.from_address
        message["To"] = self.settings.to
        if self.settings.cc:
            message["Cc"] = self.settings.cc
        message["Date"] = formatdate(localtime=True)
        message["Message-Id"] = make_msgid()
        message.set_content(body, cte="quoted-printable")
        return message

    def _send(self, message: EmailMessage):
        client = self._connect()
        try:
            client.send_message(message)
        finally:
            client.quit()

    async def send_response_time_notification(self, alert: AlertEvent):
        message = self.build_message(RESPONSE_TIME_SUBJECT, response_time_message(alert))
        await asyncio.to_thread(self._send, message)

    async def send_error_notification(self, alert: AlertEvent):
        message = self.build_message(ERROR_SUBJECT, error_message(alert))
        await asyncio.to_thread(self._send, message)
