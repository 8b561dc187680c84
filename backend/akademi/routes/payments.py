"""
Akademi Backend — Payment Route
=================================

POST /create-payment-intent  {price} → {clientSecret}
"""

from fastapi import APIRouter, Depends

from akademi.dependencies import get_payment_service
from akademi.schemas.common import ErrorResponse
from akademi.schemas.payment import PaymentIntentRequest, PaymentIntentResponse
from akademi.services.payment_service import PaymentService

router = APIRouter(tags=["Payments"])


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    responses={
        400: {"description": "Bad price or rejected by Stripe", "model": ErrorResponse},
        500: {"description": "Payments not configured", "model": ErrorResponse},
    },
    summary="Create a Stripe PaymentIntent",
)
async def create_payment_intent(
    body: PaymentIntentRequest,
    payments: PaymentService = Depends(get_payment_service),
) -> PaymentIntentResponse:
    return await payments.create_intent(body.price)
