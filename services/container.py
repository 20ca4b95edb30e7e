"""Wires the record stores and services for one application instance."""
import time
from typing import Callable

from config import Settings
from services.auth_service import AuthService
from services.email_service import EmailService
from services.notification_service import NotificationService
from services.otp_service import OTPService, is_valid_entry as is_valid_otp_entry
from services.profile_service import ProfileService
from services.record_store import RecordStore
from services.sms_service import SMSService
from services.support_service import SupportService
from services.transaction_service import TransactionService

USERS_FILE = "users.json"
TRANSACTIONS_FILE = "transactions.json"
OTP_FILE = "otps.json"
SUPPORT_FILE = "support.json"


class Services:
    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time):
        self.settings = settings
        self.users = RecordStore(settings.path_for(USERS_FILE), "users")
        self.transactions = RecordStore(settings.path_for(TRANSACTIONS_FILE), "transactions")
        self.otps = RecordStore(settings.path_for(OTP_FILE), "otps", factory=dict, validator=is_valid_otp_entry)
        self.tickets = RecordStore(settings.path_for(SUPPORT_FILE), "support tickets")

        self.auth = AuthService(self.users, settings.secret_key, settings.token_expire_hours)
        self.otp = OTPService(self.otps, settings.otp_expire_seconds, settings.otp_max_attempts, clock=clock)
        self.notifications = NotificationService(
            EmailService.from_settings(settings),
            SMSService.from_settings(settings),
            ttl_seconds=settings.otp_expire_seconds,
        )
        self.ledger = TransactionService(self.transactions)
        self.profiles = ProfileService(self.users)
        self.support = SupportService(self.tickets)

    @property
    def echo_otp(self) -> bool:
        return self.settings.should_echo_otp(self.notifications.delivery_configured)
