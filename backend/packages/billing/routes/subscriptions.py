"""
Subscription API routes.

Protected endpoints for the caller's subscription, plus admin operations.
"""

from typing import Optional
from fastapi import APIRouter, Depends

from common.db.base import utcnow
from packages.auth.dependencies import get_current_active_user, get_current_admin_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.billing.dependencies import get_subscription_service, get_usage_service
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.subscription import Subscription
from packages.billing.models.domain.usage import UsageStats
from packages.billing.models.schemas.billing import (
    CancelSubscriptionResponse,
    ForceExtendRequest,
    SubscriptionListResponse,
    SubscriptionResponse,
)
from packages.billing.services.subscription_service import SubscriptionService
from packages.billing.services.usage_service import UsageService

router = APIRouter()


def _to_response(subscription: Subscription) -> SubscriptionResponse:
    now = utcnow()
    return SubscriptionResponse(
        id=subscription.id,
        user_id=subscription.user_id,
        plan_id=subscription.plan_id,
        status=subscription.status,
        has_access=subscription.has_access(now),
        start_date=subscription.start_date,
        end_date=subscription.end_date,
        days_remaining=subscription.days_remaining(now),
        auto_renew=subscription.auto_renew,
        cancelled_at=subscription.cancelled_at,
        usage=subscription.usage,
    )


# ============================================================================
# Caller's subscription
# ============================================================================


@router.get("/me", response_model=SubscriptionResponse)
async def get_my_subscription(
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Get the caller's subscription.

    If no subscription exists, creates a free tier subscription.
    """
    subscription = await subscription_service.ensure_free_subscription(
        current_user.user_id
    )
    return _to_response(subscription)


@router.get("/me/usage", response_model=UsageStats)
async def get_my_usage(
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
    usage_service: UsageService = Depends(get_usage_service),
):
    """Get used, limit and remaining units per feature for the current period."""
    # Lazy backfill for users created before the free tier existed
    await subscription_service.ensure_free_subscription(current_user.user_id)
    return await usage_service.get_usage_stats(current_user.user_id)


@router.post("/cancel", response_model=CancelSubscriptionResponse)
async def cancel_subscription(
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Turn off auto-renew.

    The user keeps access until the end of the paid period.
    """
    subscription = await subscription_service.cancel_subscription(
        current_user.user_id
    )
    return CancelSubscriptionResponse(
        success=True,
        message="Subscription cancelled. Access continues until the end of the period.",
        cancelled_at=subscription.cancelled_at,
        access_until=subscription.end_date,
    )


# ============================================================================
# Admin
# ============================================================================


@router.get("", response_model=SubscriptionListResponse)
async def list_subscriptions(
    status: Optional[SubscriptionStatus] = None,
    skip: int = 0,
    limit: int = 100,
    current_user: AuthenticatedUser = Depends(get_current_admin_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    subscriptions = await subscription_service.list_subscriptions(status, skip, limit)
    return SubscriptionListResponse(
        subscriptions=[_to_response(s) for s in subscriptions]
    )


@router.post("/{subscription_id}/force-cancel", response_model=SubscriptionResponse)
async def force_cancel_subscription(
    subscription_id: int,
    current_user: AuthenticatedUser = Depends(get_current_admin_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Cancel a subscription and end its access now."""
    subscription = await subscription_service.force_cancel(
        current_user.user_id, subscription_id
    )
    return _to_response(subscription)


@router.post("/{subscription_id}/force-extend", response_model=SubscriptionResponse)
async def force_extend_subscription(
    subscription_id: int,
    request: ForceExtendRequest,
    current_user: AuthenticatedUser = Depends(get_current_admin_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Move the end date, reactivate and reset usage counters."""
    subscription = await subscription_service.force_extend(
        current_user.user_id, subscription_id, request.end_date
    )
    return _to_response(subscription)


# ============================================================================
# Plan switch without payment
# ============================================================================


@router.post("/{plan_id}", response_model=SubscriptionResponse)
async def subscribe_to_plan(
    plan_id: int,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Switch the caller to a plan.

    Free plans only; paid plans are bought through /payments/{plan_id}.
    Admins may grant themselves any plan.
    """
    subscription = await subscription_service.subscribe(
        current_user.user_id, current_user.role, plan_id
    )
    return _to_response(subscription)
