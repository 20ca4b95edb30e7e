"""SMS Service - OTP delivery through the Termii messaging API (popular in Nigeria).

Without TERMII_API_KEY the message is only logged (dev mode).
"""
import logging
from typing import Optional

import requests

from services.notification_service import DeliveryResult, Notifier

logger = logging.getLogger(__name__)

TERMII_SMS_URL = "https://api.ng.termii.com/api/sms/send"


class SMSService(Notifier):
    channel = "phone"

    def __init__(self, api_key: Optional[str], sender_id: str = "Pay4Me", url: str = TERMII_SMS_URL, timeout: int = 15):
        self.api_key = api_key
        self.sender_id = sender_id
        self.url = url
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "SMSService":
        return cls(settings.termii_api_key, settings.termii_sender_id)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, recipient: str, subject: str, body: str, html: Optional[str] = None) -> DeliveryResult:
        if not self.enabled:
            logger.info("Dev mode (no TERMII_API_KEY). SMS to %s: %s", recipient, body)
            return DeliveryResult(delivered=False, channel=self.channel, simulated=True)
        payload = {
            "to": recipient,
            "from": self.sender_id,
            "sms": body,
            "type": "plain",
            "channel": "generic",
            "api_key": self.api_key,
        }
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("SMS sending error for %s: %s", recipient, e)
            return DeliveryResult(delivered=False, channel=self.channel, error=str(e))
        logger.info("SMS sent to %s", recipient)
        return DeliveryResult(delivered=True, channel=self.channel)
