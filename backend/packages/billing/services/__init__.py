"""Billing services."""

from packages.billing.services.plans_service import PlanService
from packages.billing.services.usage_service import UsageService
from packages.billing.services.subscription_service import SubscriptionService
from packages.billing.services.payment_service import PaymentService
from packages.billing.services.quota_service import QuotaService

__all__ = [
    "PlanService",
    "UsageService",
    "SubscriptionService",
    "PaymentService",
    "QuotaService",
]
