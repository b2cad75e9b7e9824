from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional, Protocol

from legalsite.core.config import Settings

logger = logging.getLogger(__name__)


class MailTransport(Protocol):
    """Anything able to deliver an already-built message."""

    async def send(self, message: EmailMessage) -> None:
        ...


class SmtpMailTransport:
    """SMTP delivery using credentials from settings.

    smtplib is blocking, so every network round-trip runs in a worker thread.
    One connection per call; no retries.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = False,
        timeout: float = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailTransport":
        return cls(
            host=settings.SMTP_SERVER or "",
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=(
                settings.SMTP_PASSWORD.get_secret_value()
                if settings.SMTP_PASSWORD
                else None
            ),
            use_ssl=settings.SMTP_SECURE,
            timeout=settings.SMTP_TIMEOUT,
        )

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=context
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            server.starttls(context=context)
        if self.username and self._password:
            server.login(self.username, self._password)
        return server

    def _verify_sync(self) -> None:
        with self._connect() as server:
            server.noop()

    def _send_sync(self, message: EmailMessage) -> None:
        with self._connect() as server:
            server.send_message(message)

    async def verify(self) -> None:
        await asyncio.to_thread(self._verify_sync)

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._send_sync, message)


async def connect_mail_transport(settings: Settings) -> Optional[SmtpMailTransport]:
    """Build and verify the SMTP transport once, at startup.

    Returns None when mail is not configured or the server cannot be reached;
    notifications are then disabled for the lifetime of the process.
    """
    if not settings.mail_configured:
        logger.info("Email not configured (SMTP_* / FROM_EMAIL / TO_EMAIL missing)")
        return None

    transport = SmtpMailTransport.from_settings(settings)
    try:
        await transport.verify()
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Email server connection failed: %s", exc)
        logger.warning("Emails will not be sent. Check the SMTP_* settings.")
        return None

    logger.info("Email transport verified host=%s port=%s", transport.host, transport.port)
    return transport
