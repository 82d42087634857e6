"""
Mail transport implementations.
Mock (development) and SMTP (production ready).
"""
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import List, Optional

from leadcapture.config import Settings, settings as default_settings
from leadcapture.core.exceptions import TransportError
from leadcapture.services.integrations.base import MailTransport

logger = logging.getLogger(__name__)


class MockMailTransport(MailTransport):
    """
    Mock transport for development.
    Logs emails instead of sending and keeps them for inspection.
    """

    def __init__(self):
        self.sent_emails: List[dict] = []

    async def send_email(self, to: str, subject: str, html_body: str) -> str:
        message_id = make_msgid(domain="leadcapture.local")
        self.sent_emails.append({
            "to": to,
            "subject": subject,
            "body": html_body,
            "message_id": message_id
        })
        logger.info(f"[MOCK EMAIL] To: {to}, Subject: {subject}")
        logger.debug(f"[MOCK EMAIL] Body: {html_body[:100]}...")
        return message_id

    def get_last_email(self) -> Optional[dict]:
        """Get the last sent email (for testing)."""
        return self.sent_emails[-1] if self.sent_emails else None


class SMTPMailTransport(MailTransport):
    """
    SMTP transport for production.
    Configure with environment variables:
    - SMTP_HOST
    - SMTP_PORT
    - SMTP_USER
    - SMTP_PASSWORD
    - SMTP_USE_TLS
    - EMAIL_FROM
    """

    def __init__(self, config: Settings):
        self.host = config.SMTP_HOST or "smtp.gmail.com"
        self.port = config.SMTP_PORT
        self.user = config.SMTP_USER
        self.password = config.SMTP_PASSWORD
        self.use_tls = config.SMTP_USE_TLS
        self.from_email = config.EMAIL_FROM

    def _build_message(self, to: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = self.from_email
        msg['To'] = to
        msg['Message-ID'] = make_msgid()
        msg.attach(MIMEText(html_body, 'html'))
        return msg

    def _deliver(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port) as server:
            if self.use_tls:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)

    async def send_email(self, to: str, subject: str, html_body: str) -> str:
        """Send email via SMTP without blocking the event loop."""
        msg = self._build_message(to, subject, html_body)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(str(e)) from e

        logger.info(f"Email sent to {to}: {subject}")
        return msg['Message-ID']


def build_mail_transport(config: Optional[Settings] = None) -> MailTransport:
    """Pick the transport from EMAIL_PROVIDER."""
    config = config or default_settings
    provider = (config.EMAIL_PROVIDER or "mock").lower()

    if provider == "smtp":
        if config.SMTP_HOST:
            return SMTPMailTransport(config)
        logger.warning("SMTP_HOST not configured, using mock mail transport")
    elif provider != "mock":
        raise ValueError(f"Unknown EMAIL_PROVIDER '{config.EMAIL_PROVIDER}'")

    return MockMailTransport()
