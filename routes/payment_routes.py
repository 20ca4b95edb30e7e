"""
Payment Routes - airtime, data, betting wallet funding, TV subscriptions and history
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from routes.auth_routes import get_current_user, get_services
from services.container import Services
from services.errors import AppError

logger = logging.getLogger(__name__)

router = APIRouter()


class AirtimeRequest(BaseModel):
    network: Optional[str] = None
    phone: Optional[str] = None
    amount: Optional[Union[float, str]] = None


class DataRequest(BaseModel):
    network: Optional[str] = None
    phone: Optional[str] = None
    plan: Optional[str] = None
    planText: Optional[str] = None


class BettingRequest(BaseModel):
    platform: Optional[str] = None
    userId: Optional[Union[str, int]] = None
    amount: Optional[Union[float, str]] = None


class TVRequest(BaseModel):
    provider: Optional[str] = None
    smartcard: Optional[Union[str, int]] = None
    packageValue: Optional[str] = None
    packageText: Optional[str] = None


def _transaction_response(transaction: dict, message: str) -> dict:
    return {"success": True, "message": message, "transaction": transaction}


@router.post("/airtime/purchase")
async def purchase_airtime(body: AirtimeRequest, current=Depends(get_current_user), services: Services = Depends(get_services)):
    try:
        tx, message = services.ledger.purchase_airtime(current["id"], body.network, body.phone, body.amount)
        return _transaction_response(tx, message)
    except AppError:
        raise
    except Exception:
        logger.exception("Airtime purchase failed")
        raise HTTPException(status_code=500, detail="Transaction failed")


@router.post("/data/purchase")
async def purchase_data(body: DataRequest, current=Depends(get_current_user), services: Services = Depends(get_services)):
    try:
        tx, message = services.ledger.purchase_data(current["id"], body.network, body.phone, body.plan, body.planText)
        return _transaction_response(tx, message)
    except AppError:
        raise
    except Exception:
        logger.exception("Data purchase failed")
        raise HTTPException(status_code=500, detail="Transaction failed")


@router.post("/betting/fund")
async def fund_betting(body: BettingRequest, current=Depends(get_current_user), services: Services = Depends(get_services)):
    try:
        tx, message = services.ledger.fund_betting(current["id"], body.platform, body.userId, body.amount)
        return _transaction_response(tx, message)
    except AppError:
        raise
    except Exception:
        logger.exception("Betting funding failed")
        raise HTTPException(status_code=500, detail="Transaction failed")


@router.post("/tv/subscribe")
async def subscribe_tv(body: TVRequest, current=Depends(get_current_user), services: Services = Depends(get_services)):
    try:
        tx, message = services.ledger.subscribe_tv(current["id"], body.provider, body.smartcard, body.packageValue, body.packageText)
        return _transaction_response(tx, message)
    except AppError:
        raise
    except Exception:
        logger.exception("TV subscription failed")
        raise HTTPException(status_code=500, detail="Transaction failed")


@router.get("/transactions")
async def list_transactions(current=Depends(get_current_user), services: Services = Depends(get_services)):
    """Transactions owned by the signed-in user, oldest first."""
    try:
        return {"success": True, "transactions": services.ledger.list_for(current["id"])}
    except Exception:
        logger.exception("Failed to fetch transactions")
        raise HTTPException(status_code=500, detail="Failed to fetch transactions")
