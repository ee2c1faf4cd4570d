"""Domain models for billing."""

from packages.billing.models.domain.enums import (
    SubscriptionStatus,
    PaymentStatus,
    PlanDuration,
    Feature,
    UserRole,
    PaymentProvider,
    NotificationKind,
    UNLIMITED,
)
from packages.billing.models.domain.plans import (
    Plan,
    PlanCreateModel,
    PlanUpdateModel,
)
from packages.billing.models.domain.subscription import (
    Subscription,
    SubscriptionCreateModel,
    SubscriptionUpdateModel,
)
from packages.billing.models.domain.payment import (
    PaymentTransaction,
    PaymentTransactionCreateModel,
    PaymentIntent,
    GatewayCallback,
    CallbackResult,
)
from packages.billing.models.domain.usage import (
    UsageStats,
    FeatureUsage,
    QuotaCheck,
    QuotaReservation,
)

__all__ = [
    # Enums
    "SubscriptionStatus",
    "PaymentStatus",
    "PlanDuration",
    "Feature",
    "UserRole",
    "PaymentProvider",
    "NotificationKind",
    "UNLIMITED",
    # Plans
    "Plan",
    "PlanCreateModel",
    "PlanUpdateModel",
    # Subscription
    "Subscription",
    "SubscriptionCreateModel",
    "SubscriptionUpdateModel",
    # Payments
    "PaymentTransaction",
    "PaymentTransactionCreateModel",
    "PaymentIntent",
    "GatewayCallback",
    "CallbackResult",
    # Usage
    "UsageStats",
    "FeatureUsage",
    "QuotaCheck",
    "QuotaReservation",
]
