"""Profile Service - read and partially update the signed-in user's profile"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from services.auth_service import strip_password
from services.errors import NotFoundError, ValidationError
from services.record_store import RecordStore
from utils.validators import normalize_email, require_phone

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "phone", "aboutMe", "profilePicture")


class ProfileService:
    def __init__(self, store: RecordStore):
        self.store = store

    def _find(self, email: str) -> Dict[str, Any]:
        email_l = normalize_email(email or "")
        user = self.store.find(lambda u: u.get("email") == email_l)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get(self, email: str) -> Dict[str, Any]:
        return strip_password(self._find(email))

    def update(self, email: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply only the fields present in ``changes``; absent fields are left as they are.

        An empty string clears aboutMe/profilePicture. name and phone cannot be
        cleared, so a present but blank or malformed value is rejected.
        """
        updates = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        if "name" in updates:
            name = updates["name"]
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("Name cannot be empty")
            updates["name"] = name.strip()
        if "phone" in updates:
            updates["phone"] = require_phone(updates["phone"] or "")
        for field in ("aboutMe", "profilePicture"):
            if field in updates and updates[field] is None:
                updates[field] = ""

        with self.store.mutate():
            user = self._find(email)
            user.update(updates)
            user["updatedAt"] = datetime.now(timezone.utc).isoformat()
        logger.info("Updated profile for %s (%s)", user["email"], ", ".join(sorted(updates)) or "no fields")
        return strip_password(user)
