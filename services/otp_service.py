"""OTP Service - one pending code per identifier (email or phone) with lazy expiry"""
import hmac
import logging
import secrets
import time
from enum import Enum
from typing import Callable, Dict, Optional

from services.errors import ValidationError
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

OTP_EXP_SECONDS = 300  # 5 minutes
OTP_MAX_ATTEMPTS = 5
CHANNELS = ("email", "phone")


def expires_at_ms(entry: Dict) -> Optional[int]:
    """Parsed ``expiresAt`` of a stored challenge, or None when it is missing or unreadable."""
    value = entry.get("expiresAt") if isinstance(entry, dict) else None
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def is_valid_entry(entry: Dict) -> bool:
    return isinstance(entry.get("otp"), str) and expires_at_ms(entry) is not None


class OTPStatus(str, Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    LOCKED = "locked"


class OTPService:
    def __init__(
        self,
        store: RecordStore,
        ttl_seconds: int = OTP_EXP_SECONDS,
        max_attempts: int = OTP_MAX_ATTEMPTS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.clock = clock
        self.sweep_expired()

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _is_expired(self, entry: Dict, now_ms: int) -> bool:
        expires_at = expires_at_ms(entry)
        return expires_at is None or now_ms >= expires_at

    def generate_code(self) -> str:
        return str(100000 + secrets.randbelow(900000))

    def issue(self, identifier: str, channel: str = "email") -> str:
        """Create a fresh code for ``identifier``, replacing any pending one."""
        if not identifier:
            raise ValidationError("Email or phone number required")
        if channel not in CHANNELS:
            raise ValidationError("Verification type must be 'email' or 'phone'")
        code = self.generate_code()
        now_ms = self._now_ms()
        with self.store.mutate(strict=False) as otps:
            for key in [k for k, v in otps.items() if self._is_expired(v, now_ms)]:
                del otps[key]
            otps[identifier] = {
                "otp": code,
                "expiresAt": now_ms + self.ttl_seconds * 1000,
                "type": channel,
                "attempts": 0,
            }
        return code

    def verify(self, identifier: str, code: str) -> OTPStatus:
        now_ms = self._now_ms()
        with self.store.mutate(strict=False) as otps:
            entry = otps.get(identifier)
            if not entry:
                return OTPStatus.NOT_FOUND
            if self._is_expired(entry, now_ms):
                del otps[identifier]
                return OTPStatus.EXPIRED
            attempts = entry.get("attempts") if isinstance(entry.get("attempts"), int) else 0
            if attempts >= self.max_attempts:
                return OTPStatus.LOCKED
            if not hmac.compare_digest(str(entry.get("otp", "")).encode(), str(code or "").strip().encode()):
                entry["attempts"] = attempts + 1
                if entry["attempts"] >= self.max_attempts:
                    logger.warning("OTP for %s locked after %d failed attempts", identifier, entry["attempts"])
                    return OTPStatus.LOCKED
                return OTPStatus.MISMATCH
            del otps[identifier]
            return OTPStatus.VERIFIED

    def sweep_expired(self) -> int:
        """Drop every expired challenge; returns how many were removed."""
        now_ms = self._now_ms()
        expired = [k for k, v in self.store.records.items() if self._is_expired(v, now_ms)]
        if not expired:
            return 0
        with self.store.mutate(strict=False) as otps:
            for key in expired:
                otps.pop(key, None)
        logger.info("Swept %d expired OTP(s)", len(expired))
        return len(expired)

    def pending(self, identifier: str) -> Optional[Dict]:
        entry = self.store.records.get(identifier)
        if entry and not self._is_expired(entry, self._now_ms()):
            return dict(entry)
        return None
