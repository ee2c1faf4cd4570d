"""
Webhook endpoints for payment gateway callbacks.

Public endpoints (no auth required), authenticated by the gateway signature.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from packages.billing.dependencies import get_payment_service
from packages.billing.models.domain.payment import CallbackResult
from packages.billing.services.payment_service import PaymentService
from packages.billing.webhooks.robokassa_webhook import (
    handle_robokassa_callback,
    handle_robokassa_fail,
)

router = APIRouter()


@router.post("/callback", response_class=PlainTextResponse)
async def robokassa_result(
    request: Request,
    payment_service: PaymentService = Depends(get_payment_service),
) -> PlainTextResponse:
    """
    Receive the gateway result notification.

    Answers OK<InvId>, which the gateway expects to stop retrying. Replays
    of an already applied invoice get the same answer.
    """
    result = await handle_robokassa_callback(request, payment_service)
    return PlainTextResponse(f"OK{result.invoice_id}")


@router.post("/callback/fail", response_model=CallbackResult)
async def robokassa_fail(
    request: Request,
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Receive the gateway notice that a payment was abandoned or declined."""
    return await handle_robokassa_fail(request, payment_service)
