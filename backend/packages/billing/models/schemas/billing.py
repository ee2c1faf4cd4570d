"""
API schemas for billing operations.

Request and response models for billing endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from packages.billing.models.domain.enums import (
    PaymentStatus,
    PlanDuration,
    SubscriptionStatus,
    UserRole,
)


# ============================================================================
# Plan Schemas
# ============================================================================


class PlanResponse(BaseModel):
    """Plan as shown to clients."""

    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    currency: str
    duration: PlanDuration
    limits: Dict[str, int]
    features: Dict[str, Any]
    target_role: Optional[UserRole] = None
    is_active: bool
    version: int
    previous_version_id: Optional[int] = None

    class Config:
        from_attributes = True


class PlansResponse(BaseModel):
    plans: List[PlanResponse]


# ============================================================================
# Subscription Schemas
# ============================================================================


class SubscriptionResponse(BaseModel):
    """Subscription with its access state."""

    id: int
    user_id: int
    plan_id: int
    status: SubscriptionStatus
    has_access: bool = Field(..., description="Whether the subscription grants feature usage now")
    start_date: datetime
    end_date: datetime
    days_remaining: int
    auto_renew: bool
    cancelled_at: Optional[datetime] = None
    usage: Dict[str, int]


class SubscriptionListResponse(BaseModel):
    subscriptions: List[SubscriptionResponse]


class CancelSubscriptionResponse(BaseModel):
    """Response after subscription cancellation."""

    success: bool
    message: str
    cancelled_at: datetime
    access_until: datetime = Field(
        ..., description="Date until which the user retains access"
    )


class ForceExtendRequest(BaseModel):
    end_date: datetime = Field(..., description="New exclusive end of the period")


# ============================================================================
# Payment Schemas
# ============================================================================


class PaymentIntentResponse(BaseModel):
    """Where to send the customer to pay."""

    payment_id: int
    invoice_id: str
    amount: Decimal
    currency: str
    status: PaymentStatus
    payment_url: str = Field(..., description="Gateway payment page URL")
    expires_at: datetime


class PaymentResponse(BaseModel):
    id: int
    plan_id: int
    subscription_id: Optional[int] = None
    amount: Decimal
    currency: str
    status: PaymentStatus
    invoice_id: str
    paid_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentHistoryResponse(BaseModel):
    payments: List[PaymentResponse]


# ============================================================================
# Internal Schemas
# ============================================================================


class SweepResponse(BaseModel):
    processed: int


class NotifyExpiringResponse(BaseModel):
    notified: int
