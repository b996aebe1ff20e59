"""Email channel and SMTP transport."""
import asyncio
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage

from market_watch.schemas import AlertRead
from market_watch.services.notifications.channel_abc import (
    NotificationChannelABC, NotificationJob)
from market_watch.services.notifications.directory import UserDirectory
from market_watch.services.notifications.templates import (EmailContent,
                                                            render_email)

logger = logging.getLogger(__name__)


class MailTransportABC(ABC):
    @abstractmethod
    async def send(self, to: str, content: EmailContent) -> None:
        """Hand the message to the mail system; raise on failure."""


class SmtpTransport(MailTransportABC):
    """Sends through an SMTP relay with STARTTLS.

    smtplib is blocking, so each message goes out from a worker thread.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str = "",
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender or username
        self._timeout = timeout

    async def send(self, to: str, content: EmailContent) -> None:
        await asyncio.to_thread(self._send_sync, to, content)

    def _build_message(self, to: str, content: EmailContent) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = content.subject
        msg["From"] = self._sender
        msg["To"] = to
        msg.set_content(content.text)
        msg.add_alternative(content.html, subtype="html")
        return msg

    def _send_sync(self, to: str, content: EmailContent) -> None:
        msg = self._build_message(to, content)
        ctx = ssl.create_default_context()
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            smtp.starttls(context=ctx)
            smtp.login(self._username, self._password)
            smtp.send_message(msg)


class EmailChannel(NotificationChannelABC):
    name = "email"

    def __init__(
        self,
        transport: MailTransportABC | None,
        directory: UserDirectory,
        dashboard_url: str,
    ) -> None:
        self._transport = transport
        self._directory = directory
        self._dashboard_url = dashboard_url

    def enabled_for(self, alert: AlertRead) -> bool:
        return alert.notification_channels.email

    async def send(self, job: NotificationJob) -> None:
        alert = job.alert
        if self._transport is None:
            logger.info("Email not configured; skipping email for alert %s", alert.id)
            return
        address = self._directory.email_for(alert.owner_id)
        if not address:
            logger.info("No email address for %s; skipping alert %s", alert.owner_id, alert.id)
            return
        content = render_email(alert, job.price, job.triggered_at, self._dashboard_url)
        await self._transport.send(address, content)
        logger.info("Alert email sent to %s for %s", address, alert.asset_symbol)
