"""Application settings read from the environment.

Env vars:
  APP_ENV, SECRET_KEY, TOKEN_EXPIRE_HOURS, DATA_DIR, OTP_EXPIRE_SECONDS,
  OTP_MAX_ATTEMPTS, OTP_ECHO, SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS,
  SMTP_FROM, TERMII_API_KEY, TERMII_SENDER_ID, FRONTEND_URL, PORT
"""
import os
from typing import Optional

from dotenv import load_dotenv

# .env is a local development convenience only
if os.getenv("APP_ENV", "development").lower() != "production":
    load_dotenv()


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    def __init__(self, **overrides):
        self.app_env = os.getenv("APP_ENV", "development").lower()
        self.secret_key = os.getenv("SECRET_KEY", "pay4me-dev-secret-change-me")
        self.token_expire_hours = int(os.getenv("TOKEN_EXPIRE_HOURS", "24"))
        self.data_dir = os.getenv("DATA_DIR", "data")

        self.otp_expire_seconds = int(os.getenv("OTP_EXPIRE_SECONDS", "300"))
        self.otp_max_attempts = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
        self.otp_echo = _env_bool("OTP_ECHO")

        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = int(os.getenv("SMTP_PORT", "0") or 0)
        self.smtp_user = os.getenv("SMTP_USER")
        self.smtp_password = os.getenv("SMTP_PASS")
        self.smtp_from = os.getenv("SMTP_FROM", self.smtp_user or "noreply@pay4me.com")

        self.termii_api_key = os.getenv("TERMII_API_KEY")
        self.termii_sender_id = os.getenv("TERMII_SENDER_ID", "Pay4Me")

        self.frontend_url = os.getenv("FRONTEND_URL", "*")
        self.port = int(os.getenv("PORT", "3000"))

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def path_for(self, filename: str) -> str:
        return os.path.join(str(self.data_dir), filename)

    def should_echo_otp(self, delivery_configured: bool) -> bool:
        """OTP echo is explicit when OTP_ECHO is set, otherwise dev-only with no delivery credential."""
        if self.otp_echo is not None:
            return self.otp_echo
        return not self.is_production and not delivery_configured
