"""Profile routes (bearer token required)"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from routes.auth_routes import get_current_user, get_services
from services.container import Services
from services.errors import AppError

logger = logging.getLogger(__name__)

router = APIRouter()


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    aboutMe: Optional[str] = None
    profilePicture: Optional[str] = None  # inline data URL


@router.get("")
async def get_profile(current=Depends(get_current_user), services: Services = Depends(get_services)):
    try:
        return {"success": True, "user": services.profiles.get(current["email"])}
    except AppError:
        raise
    except Exception:
        logger.exception("Profile lookup failed")
        raise HTTPException(status_code=500, detail="Server error")


@router.put("")
async def update_profile(body: ProfileUpdateRequest, current=Depends(get_current_user), services: Services = Depends(get_services)):
    # only fields actually sent in the body are applied
    changes = body.model_dump(exclude_unset=True)
    try:
        user = services.profiles.update(current["email"], changes)
    except AppError:
        raise
    except Exception:
        logger.exception("Profile update failed")
        raise HTTPException(status_code=500, detail="Server error")
    return {"success": True, "message": "Profile updated successfully", "user": user}
