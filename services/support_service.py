"""Support Service - customer support ticket intake"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from services.record_store import RecordStore
from services.transaction_service import generate_reference
from utils.validators import require_email, require_fields, require_phone

logger = logging.getLogger(__name__)

TICKET_FIELDS = ("name", "email", "phone", "category", "subject", "message")


class SupportService:
    def __init__(self, store: RecordStore):
        self.store = store

    def submit(self, name: str, email: str, phone: str, category: str, subject: str, message: str) -> Dict[str, Any]:
        data = {"name": name, "email": email, "phone": phone, "category": category, "subject": subject, "message": message}
        require_fields(data, TICKET_FIELDS)
        data["email"] = require_email(email)
        data["phone"] = require_phone(phone)
        with self.store.mutate() as tickets:
            existing = {t.get("ticketId") for t in tickets}
            ticket_id = generate_reference("SUP", 5)
            while ticket_id in existing:
                ticket_id = generate_reference("SUP", 5)
            ticket = {
                "id": self.store.next_id(),
                "ticketId": ticket_id,
                **data,
                "status": "open",
                "createdAt": datetime.now(timezone.utc).isoformat(),
            }
            tickets.append(ticket)
        logger.info("Support ticket %s opened (%s)", ticket_id, category)
        return dict(ticket)
