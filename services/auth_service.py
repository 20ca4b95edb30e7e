"""Auth Service - user registration, password checks and bearer token handling"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from services.errors import AuthError, ConflictError, TokenExpiredError, TokenInvalidError
from services.record_store import RecordStore
from utils.validators import normalize_email, require_email, require_fields, require_phone

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24

# hex_sha256 covers accounts created by the old unsalted scheme; they are
# rehashed with pbkdf2_sha256 on their next successful login.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "hex_sha256"], deprecated=["hex_sha256"])


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Account summary returned by register/login."""
    return {"id": user["id"], "name": user["name"], "email": user["email"], "phone": user["phone"]}


def strip_password(user: Dict[str, Any]) -> Dict[str, Any]:
    safe = dict(user)
    safe.pop("password", None)
    return safe


class AuthService:
    def __init__(self, store: RecordStore, secret_key: str, token_expire_hours: int = ACCESS_TOKEN_EXPIRE_HOURS):
        self.store = store
        self.secret_key = secret_key
        self.token_expire_hours = token_expire_hours

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain: str, hashed: str) -> Tuple[bool, Optional[str]]:
        """Returns (valid, replacement_hash); the replacement is set when the stored hash is outdated."""
        try:
            return pwd_context.verify_and_update(plain, hashed)
        except (ValueError, TypeError) as e:
            logger.warning("Unrecognised password hash format: %s", e)
            return False, None

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        if not email:
            return None
        email_l = normalize_email(email)
        return self.store.find(lambda u: u.get("email") == email_l)

    def register(self, name: str, email: str, phone: str, password: str) -> Tuple[Dict[str, Any], str]:
        require_fields({"name": name, "email": email, "phone": phone, "password": password}, ("name", "email", "phone", "password"))
        email_l = require_email(email)
        phone = require_phone(phone)
        password_hash = self.hash_password(password)
        with self.store.mutate() as users:
            if any(u.get("email") == email_l for u in users):
                raise ConflictError("Email already registered")
            user = {
                "id": self.store.next_id(),
                "name": name.strip(),
                "email": email_l,
                "phone": phone,
                "password": password_hash,
                "registeredAt": datetime.now(timezone.utc).isoformat(),
            }
            users.append(user)
        logger.info("Registered user %s (id=%s)", email_l, user["id"])
        return public_user(user), self.issue_token(user["id"], user["email"], user["name"])

    def authenticate(self, email: str, password: str) -> Tuple[Dict[str, Any], str]:
        require_fields({"email": email, "password": password}, ("email", "password"), "Email and password are required")
        user = self.get_user_by_email(email)
        if not user:
            raise AuthError("Invalid email or password")
        valid, new_hash = self.verify_password(password, user.get("password", ""))
        if not valid:
            raise AuthError("Invalid email or password")
        if new_hash:
            with self.store.mutate():
                user = self.get_user_by_email(email) or user
                user["password"] = new_hash
            logger.info("Upgraded password hash for %s", user["email"])
        return public_user(user), self.issue_token(user["id"], user["email"], user["name"])

    def issue_token(self, user_id: int, email: str, name: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "id": user_id,
            "email": email,
            "name": name,
            "iat": now,
            "exp": now + timedelta(hours=self.token_expire_hours),
        }
        return jwt.encode(claims, self.secret_key, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise TokenExpiredError("Invalid or expired token")
        except JWTError:
            raise TokenInvalidError("Invalid or expired token")
        if payload.get("id") is None or not payload.get("email"):
            raise TokenInvalidError("Invalid or expired token")
        return {"id": payload["id"], "email": payload["email"], "name": payload.get("name")}
