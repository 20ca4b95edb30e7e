"""
Transaction Service - append-only ledger of airtime, data, betting and TV payments
"""

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from services.errors import ValidationError
from services.record_store import RecordStore
from utils.validators import format_amount, parse_amount, require_fields, require_phone

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("airtime", "data", "betting", "tv")

BETTING_PLATFORMS = {
    "sportybet": "SportyBet",
    "1xbet": "1xBet",
    "bet9ja": "Bet9ja",
}

_REF_ALPHABET = string.ascii_uppercase + string.digits


def random_suffix(length: int) -> str:
    return "".join(secrets.choice(_REF_ALPHABET) for _ in range(length))


def generate_reference(prefix: str = "PAY4ME", suffix_length: int = 9) -> str:
    """``<prefix>-<epoch millis>-<random upper alnum>``"""
    return f"{prefix}-{int(time.time() * 1000)}-{random_suffix(suffix_length)}"


class TransactionService:
    def __init__(self, store: RecordStore):
        self.store = store

    def record(self, user_id: int, tx_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a transaction for ``user_id``.

        No payment gateway is involved, so every entry is stamped "successful".

        Args:
            user_id: Owning user's id (from the bearer token)
            tx_type: One of airtime, data, betting, tv
            payload: Type specific fields, already validated

        Returns:
            The stored transaction
        """
        if tx_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unsupported transaction type: {tx_type}")
        with self.store.mutate() as transactions:
            existing = {t.get("reference") for t in transactions}
            reference = generate_reference()
            while reference in existing:
                reference = generate_reference()
            transaction = {
                "id": self.store.next_id(),
                "reference": reference,
                "userId": user_id,
                "type": tx_type,
                **payload,
                "status": "successful",
                "createdAt": datetime.now(timezone.utc).isoformat(),
            }
            transactions.append(transaction)
        logger.info("Recorded %s transaction %s for user %s", tx_type, reference, user_id)
        return dict(transaction)

    def list_for(self, user_id: int) -> List[Dict[str, Any]]:
        return [dict(t) for t in self.store.filter(lambda t: t.get("userId") == user_id)]

    def purchase_airtime(self, user_id: int, network: str, phone: str, amount: Any) -> Tuple[Dict[str, Any], str]:
        require_fields({"network": network, "phone": phone, "amount": amount}, ("network", "phone", "amount"))
        phone = require_phone(phone)
        amount = parse_amount(amount)
        network = network.strip().upper()
        tx = self.record(user_id, "airtime", {"network": network, "phone": phone, "amount": amount})
        return tx, f"₦{format_amount(amount)} airtime recharge to {phone} on {network} successful"

    def purchase_data(self, user_id: int, network: str, phone: str, plan: str, plan_text: Optional[str] = None) -> Tuple[Dict[str, Any], str]:
        require_fields({"network": network, "phone": phone, "plan": plan}, ("network", "phone", "plan"))
        phone = require_phone(phone)
        network = network.strip().upper()
        plan_text = plan_text or plan
        tx = self.record(user_id, "data", {"network": network, "phone": phone, "plan": plan, "planText": plan_text})
        return tx, f"{plan_text} purchase for {phone} on {network} successful"

    def fund_betting(self, user_id: int, platform: str, betting_user_id: str, amount: Any) -> Tuple[Dict[str, Any], str]:
        require_fields({"platform": platform, "userId": betting_user_id, "amount": amount}, ("platform", "userId", "amount"))
        platform_name = BETTING_PLATFORMS.get(platform.strip().lower())
        if not platform_name:
            raise ValidationError("Unsupported betting platform")
        amount = parse_amount(amount)
        betting_user_id = str(betting_user_id).strip()
        tx = self.record(user_id, "betting", {"platform": platform_name, "bettingUserId": betting_user_id, "amount": amount})
        return tx, f"₦{format_amount(amount)} funding to {platform_name} account {betting_user_id} successful"

    def subscribe_tv(self, user_id: int, provider: str, smartcard: str, package_value: str, package_text: Optional[str] = None) -> Tuple[Dict[str, Any], str]:
        require_fields({"provider": provider, "smartcard": smartcard, "packageValue": package_value}, ("provider", "smartcard", "packageValue"))
        package_text = package_text or package_value
        tx = self.record(user_id, "tv", {
            "provider": provider.strip().upper(),
            "smartcard": str(smartcard).strip(),
            "package": package_value,
            "packageText": package_text,
        })
        return tx, f"{package_text} subscription for smartcard {tx['smartcard']} successful"
