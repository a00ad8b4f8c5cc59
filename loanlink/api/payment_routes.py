from fastapi import APIRouter, Body, Depends
from typing import Any, Dict
import logging

from loanlink.api.dependencies import get_payment_service
from loanlink.schemas.payment_schema import PaymentIntentResponse
from loanlink.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


# Creates a Stripe payment intent for {"price": <dollars>} and returns its client secret
@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    payload: Dict[str, Any] = Body(...),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentIntentResponse:
    result = await service.create_payment_intent(payload.get("price"))
    return PaymentIntentResponse(**result)
