"""Notification port - deliver OTP messages by email or SMS.

Notifiers report what actually happened through a ``DeliveryResult`` so the
caller can tell the client when a code was generated but never delivered.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    delivered: bool
    channel: str
    simulated: bool = False
    error: Optional[str] = None


class Notifier:
    channel = "generic"

    @property
    def enabled(self) -> bool:
        raise NotImplementedError

    def send(self, recipient: str, subject: str, body: str, html: Optional[str] = None) -> DeliveryResult:
        raise NotImplementedError


OTP_EMAIL_SUBJECT = "Pay4Me - Email Verification Code"

OTP_EMAIL_HTML = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background: #f4f7f9; border-radius: 10px;">
  <div style="background: #667eea; padding: 30px; border-radius: 10px 10px 0 0; text-align: center;">
    <h1 style="color: white; margin: 0;">Pay4Me</h1>
  </div>
  <div style="background: white; padding: 30px; border-radius: 0 0 10px 10px;">
    <h2 style="color: #333;">Email Verification Code</h2>
    <p style="color: #666; font-size: 16px;">Hello! Your verification code is:</p>
    <div style="background: #f0f4ff; border: 2px dashed #667eea; border-radius: 8px; padding: 20px; text-align: center; margin: 20px 0;">
      <h1 style="color: #667eea; font-size: 36px; margin: 0; letter-spacing: 5px;">{otp}</h1>
    </div>
    <p style="color: #666; font-size: 14px;">This code will expire in <strong>{minutes} minutes</strong>.</p>
    <p style="color: #666; font-size: 14px;">If you didn't request this code, please ignore this email.</p>
  </div>
</div>
"""


class NotificationService:
    def __init__(self, email: Notifier, sms: Notifier, ttl_seconds: int = 300):
        self.notifiers: Dict[str, Notifier] = {"email": email, "phone": sms}
        self.ttl_seconds = ttl_seconds

    @property
    def delivery_configured(self) -> bool:
        return any(n.enabled for n in self.notifiers.values())

    def send_otp(self, identifier: str, channel: str, otp: str) -> DeliveryResult:
        notifier = self.notifiers.get(channel)
        if notifier is None:
            return DeliveryResult(delivered=False, channel=channel, error=f"Unsupported channel: {channel}")
        minutes = max(1, self.ttl_seconds // 60)
        if channel == "email":
            body = (
                f"Your Pay4Me verification code is: {otp}\n\n"
                f"It expires in {minutes} minutes. If you did not request this, ignore this email."
            )
            html = OTP_EMAIL_HTML.format(otp=otp, minutes=minutes)
            result = notifier.send(identifier, OTP_EMAIL_SUBJECT, body, html=html)
        else:
            body = f"Your Pay4Me verification code is: {otp}. Valid for {minutes} minutes. Do not share this code."
            result = notifier.send(identifier, "", body)
        if not result.delivered and not result.simulated:
            logger.warning("OTP delivery to %s via %s failed: %s", identifier, channel, result.error)
        return result
