"""FastAPI dependency providers for billing services."""

from packages.billing.services.payment_service import PaymentService
from packages.billing.services.plans_service import PlanService
from packages.billing.services.quota_service import QuotaService
from packages.billing.services.subscription_service import SubscriptionService
from packages.billing.services.usage_service import UsageService


def get_plan_service() -> PlanService:
    return PlanService()


def get_usage_service() -> UsageService:
    return UsageService()


def get_subscription_service() -> SubscriptionService:
    return SubscriptionService()


def get_payment_service() -> PaymentService:
    return PaymentService()


def get_quota_service() -> QuotaService:
    return QuotaService()
