"""Input validation helpers used by the services."""
import re
from typing import Any, Dict, Iterable

from services.errors import ValidationError

# Nigerian mobile numbers: 0 + 7/8/9 + 0/1 + 8 digits
PHONE_PATTERN = re.compile(r"^0[789][01]\d{8}$")


def is_valid_phone(phone: str) -> bool:
    return isinstance(phone, str) and bool(PHONE_PATTERN.match(phone.strip()))


def is_valid_email(email: str) -> bool:
    if not isinstance(email, str):
        return False
    email = email.strip()
    if "@" not in email:
        return False
    local, _, domain = email.rpartition("@")
    return bool(local) and "." in domain and not domain.startswith(".") and not domain.endswith(".")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def require_fields(data: Dict[str, Any], fields: Iterable[str], message: str = "All fields are required"):
    """Raise ValidationError if any of ``fields`` is missing, None or blank."""
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(message)


def require_phone(phone: str) -> str:
    if not is_valid_phone(phone):
        raise ValidationError("Please enter a valid Nigerian phone number")
    return phone.strip()


def require_email(email: str) -> str:
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    return normalize_email(email)


def parse_amount(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number")
    if amount != amount or amount <= 0 or amount == float("inf"):
        raise ValidationError("Amount must be greater than zero")
    return amount


def format_amount(amount: float) -> str:
    return f"{int(amount)}" if float(amount).is_integer() else f"{amount:.2f}"
