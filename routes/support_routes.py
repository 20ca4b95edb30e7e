"""Customer support routes (no authentication)"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from routes.auth_routes import get_services
from services.container import Services
from services.errors import AppError

logger = logging.getLogger(__name__)

router = APIRouter()


class SupportRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    category: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


@router.post("/submit")
async def submit_ticket(body: SupportRequest, services: Services = Depends(get_services)):
    try:
        ticket = services.support.submit(body.name, body.email, body.phone, body.category, body.subject, body.message)
    except AppError:
        raise
    except Exception:
        logger.exception("Support ticket submission failed")
        raise HTTPException(status_code=500, detail="Failed to submit support ticket")
    return {
        "success": True,
        "message": "Support ticket submitted successfully",
        "ticket": {"ticketId": ticket["ticketId"], "status": ticket["status"]},
    }
