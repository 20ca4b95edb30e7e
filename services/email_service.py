"""Minimal Email Service for OTP delivery.

If SMTP settings are not configured, falls back to dev mode and logs the
message instead of sending an email.

Env vars:
  SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from services.notification_service import DeliveryResult, Notifier

logger = logging.getLogger(__name__)


class EmailService(Notifier):
    channel = "email"

    def __init__(self, host: Optional[str], port: int, user: Optional[str], password: Optional[str], sender: Optional[str] = None):
        self.host = host
        self.port = port or 0
        self.user = user
        self.password = password
        self.sender = sender or user or "noreply@pay4me.com"

    @classmethod
    def from_settings(cls, settings) -> "EmailService":
        return cls(settings.smtp_host, settings.smtp_port, settings.smtp_user, settings.smtp_password, settings.smtp_from)

    @property
    def enabled(self) -> bool:
        return all([self.host, self.port, self.user, self.password, self.sender]) and self.port > 0

    def _build_message(self, to_email: str, subject: str, body: str, html: Optional[str]):
        if html:
            msg = MIMEMultipart("alternative")
            msg.attach(MIMEText(body, "plain"))
            msg.attach(MIMEText(html, "html"))
        else:
            msg = MIMEText(body, "plain")
        msg["Subject"] = subject
        msg["From"] = f'"Pay4Me" <{self.sender}>'
        msg["To"] = to_email
        return msg

    def send(self, recipient: str, subject: str, body: str, html: Optional[str] = None) -> DeliveryResult:
        """Synchronous send. ``delivered`` is True only if the SMTP server accepted the message."""
        if not self.enabled:
            logger.info("Dev mode (no SMTP configured). Email to %s: %s", recipient, body)
            return DeliveryResult(delivered=False, channel=self.channel, simulated=True)
        try:
            msg = self._build_message(recipient, subject, body, html)
            with smtplib.SMTP(self.host, self.port, timeout=15) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.send_message(msg)
            logger.info("Email sent to %s", recipient)
            return DeliveryResult(delivered=True, channel=self.channel)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed sending email to %s: %s", recipient, e)
            return DeliveryResult(delivered=False, channel=self.channel, error=str(e))
