"""Database models for billing."""

from packages.billing.models.database.plan import SubscriptionPlanEntity
from packages.billing.models.database.subscription import UserSubscriptionEntity
from packages.billing.models.database.payment import PaymentTransactionEntity

__all__ = [
    "SubscriptionPlanEntity",
    "UserSubscriptionEntity",
    "PaymentTransactionEntity",
]
