# propmarket/services/mailer.py
from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from propmarket.config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP sender. Without SMTP_HOST the mail is only logged (dev)."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_address: str = "no-reply@localhost",
        from_name: str = "Bada Builder",
        timeout: float = 20.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, s: Settings) -> "Mailer":
        return cls(
            s.SMTP_HOST,
            s.SMTP_PORT,
            username=s.SMTP_USER,
            password=s.SMTP_PASSWORD,
            from_address=s.SMTP_FROM,
            from_name=s.EMAIL_FROM_NAME,
            timeout=s.SMTP_TIMEOUT_SECONDS,
        )

    def _send_sync(self, to: str, subject: str, html: str) -> None:
        if not self.host:
            logger.info("[DEV] mail not sent (SMTP_HOST unset) subject=%s to=%s", subject, to)
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_address}>"
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls(context=ssl.create_default_context())
            if self.username and self.password:
                server.login(self.username, self.password)
            server.sendmail(self.from_address, [to], msg.as_string())

    async def send(self, to: str, subject: str, html: str) -> None:
        await asyncio.to_thread(self._send_sync, to, subject, html)
