"""Internal billing job endpoints.

Triggered by the cluster scheduler as an alternative to the sweep worker.
Not exposed via ingress.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from packages.billing.dependencies import get_subscription_service
from packages.billing.models.schemas.billing import NotifyExpiringResponse, SweepResponse
from packages.billing.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/internal/billing", tags=["internal"], include_in_schema=False)


@router.post("/sweep-expired", response_model=SweepResponse)
async def sweep_expired(
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Expire subscriptions past their end date."""
    processed = await subscription_service.sweep_expired()
    return SweepResponse(processed=processed)


@router.post("/notify-expiring", response_model=NotifyExpiringResponse)
async def notify_expiring(
    days: Optional[int] = Query(None, ge=0, le=365),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Remind users whose subscription ends within `days` days."""
    notified = await subscription_service.notify_expiring(days)
    return NotifyExpiringResponse(notified=notified)
