"""
Payment API routes.

Protected endpoints for buying plans and reading payment state.
"""

from fastapi import APIRouter, Depends, status

from packages.auth.dependencies import get_current_active_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.billing.dependencies import get_payment_service
from packages.billing.models.schemas.billing import (
    PaymentHistoryResponse,
    PaymentIntentResponse,
    PaymentResponse,
)
from packages.billing.services.payment_service import PaymentService

router = APIRouter()


@router.get("", response_model=PaymentHistoryResponse)
async def get_payment_history(
    skip: int = 0,
    limit: int = 50,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    payments = await payment_service.get_payment_history(
        current_user.user_id, skip=skip, limit=limit
    )
    return PaymentHistoryResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments]
    )


@router.post(
    "/{plan_id}",
    response_model=PaymentIntentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment_intent(
    plan_id: int,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """
    Start buying a plan.

    Returns the gateway URL to redirect the customer to. The subscription
    is activated when the gateway confirms the payment.
    """
    return await payment_service.create_intent(current_user.user_id, plan_id)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.check_status(
        current_user.user_id, current_user.role, payment_id
    )
