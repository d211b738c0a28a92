"""Outbound mail via SMTP.

Credentials come from settings (SMTP_HOST, SMTP_PORT, SMTP_SECURE, SMTP_USER,
SMTP_PASS). The password is never logged.
"""
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from orderhook.core.config import Settings
from orderhook.errors import MailDeliveryError

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send(self, sender: str, to: str, subject: str, html: str) -> None: ...


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int = 465,
        secure: bool = True,
        user: str = "",
        password: str = "",
        timeout: float = 15,
    ):
        self._host = host
        self._port = port
        self._secure = secure
        self._user = user
        self._password = password
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            secure=settings.smtp_secure,
            user=settings.smtp_user,
            password=settings.smtp_pass,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._host)

    def _build(self, sender: str, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to
        msg.set_content(html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        if self._secure:
            server = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        else:
            server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        with server:
            if not self._secure:
                server.starttls()
            if self._user and self._password:
                server.login(self._user, self._password)
            server.send_message(msg)

    async def send(self, sender: str, to: str, subject: str, html: str) -> None:
        if not self.is_configured:
            raise MailDeliveryError("Email not configured (missing SMTP_HOST)")

        msg = self._build(sender, to, subject, html)
        try:
            await run_in_threadpool(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"SMTP error: {e}") from e
        logger.info(f"Email sent to {to}: {subject}")
