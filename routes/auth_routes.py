"""Authentication routes: OTP challenge, registration, login and the bearer token gate"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from services.container import Services
from services.errors import AppError, ForbiddenError, OTPError, ValidationError
from services.otp_service import CHANNELS, OTPStatus
from utils.validators import normalize_email, require_email, require_phone

logger = logging.getLogger(__name__)

router = APIRouter()
bearer_scheme = HTTPBearer(auto_error=False)

OTP_FAILURE_MESSAGES = {
    OTPStatus.NOT_FOUND: "No OTP found. Please request a new one.",
    OTPStatus.EXPIRED: "OTP expired. Please request a new one.",
    OTPStatus.MISMATCH: "Invalid OTP. Please try again.",
    OTPStatus.LOCKED: "Too many incorrect attempts. Please request a new OTP.",
}


class SendOTPRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    type: Optional[str] = None  # 'email' or 'phone'


class VerifyOTPRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    otp: Optional[str] = None


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    services: Services = Depends(get_services),
):
    """Resolve the bearer token to ``{id, email, name}`` or reject the request."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token required")
    try:
        return services.auth.verify_token(credentials.credentials)
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=e.message)


def _identifier(email: Optional[str], phone: Optional[str]) -> Optional[str]:
    if email and email.strip():
        return normalize_email(email)
    if phone and phone.strip():
        return phone.strip()
    return None


@router.post("/send-otp")
async def send_otp(body: SendOTPRequest, services: Services = Depends(get_services)):
    channel = (body.type or "email").strip().lower()
    if channel not in CHANNELS:
        raise ValidationError("Verification type must be 'email' or 'phone'")
    identifier = _identifier(body.email, body.phone)
    if not identifier:
        raise ValidationError("Email or phone number required")
    if channel == "email":
        if not body.email:
            raise ValidationError("Email address required for email verification")
        recipient = require_email(body.email)
    else:
        if not body.phone:
            raise ValidationError("Phone number required for SMS verification")
        recipient = require_phone(body.phone)

    try:
        otp = services.otp.issue(identifier, channel)
        echo = services.echo_otp
        if echo:
            logger.info("OTP for %s: %s", identifier, otp)
        else:
            logger.info("OTP issued for %s via %s", identifier, channel)

        result = await run_in_threadpool(services.notifications.send_otp, recipient, channel, otp)
        if result.delivered:
            where = "email inbox" if channel == "email" else "phone messages"
            message = f"OTP sent to your {channel}. Check your {where}!"
        elif result.simulated:
            message = f"OTP generated. Demo Mode - no {channel} delivery configured."
        else:
            message = "OTP generated but delivery failed. Please try again."

        resp = {"success": True, "message": message, "delivered": result.delivered}
        if echo:
            resp["otp"] = otp
        return resp
    except AppError:
        raise
    except Exception:
        logger.exception("OTP sending error")
        raise HTTPException(status_code=500, detail="Failed to send OTP")


@router.post("/verify-otp")
async def verify_otp(body: VerifyOTPRequest, services: Services = Depends(get_services)):
    identifier = _identifier(body.email, body.phone)
    if not identifier or not body.otp:
        raise ValidationError("Identifier and OTP required")
    try:
        status = services.otp.verify(identifier, body.otp.strip())
    except AppError:
        raise
    except Exception:
        logger.exception("OTP verification error")
        raise HTTPException(status_code=500, detail="Failed to verify OTP")
    logger.info("OTP verification for %s: %s", identifier, status.value)
    if status is not OTPStatus.VERIFIED:
        raise OTPError(OTP_FAILURE_MESSAGES[status])
    return {"success": True, "message": "OTP verified successfully"}


@router.post("/register")
async def register(body: RegisterRequest, services: Services = Depends(get_services)):
    try:
        user, token = services.auth.register(body.name, body.email, body.phone, body.password)
    except AppError:
        raise
    except Exception:
        logger.exception("Registration error")
        raise HTTPException(status_code=500, detail="Server error during registration")
    return {"success": True, "message": "Registration successful", "token": token, "user": user}


@router.post("/login")
async def login(body: LoginRequest, services: Services = Depends(get_services)):
    try:
        user, token = services.auth.authenticate(body.email, body.password)
    except AppError:
        raise
    except Exception:
        logger.exception("Login error")
        raise HTTPException(status_code=500, detail="Server error during login")
    return {"success": True, "message": "Login successful", "token": token, "user": user}
