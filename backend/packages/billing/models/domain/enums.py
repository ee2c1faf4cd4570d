"""
Billing enums - strongly typed enumerations for plan, subscription and payment states.
"""

import calendar
from datetime import datetime, timedelta
from enum import Enum

# Limit value meaning "no cap" for a feature
UNLIMITED = -1


class SubscriptionStatus(str, Enum):
    """
    Subscription status lifecycle.

    Flow: active -> cancelled (auto-renew off, access until end) -> expired
    The stored status is a cached view; end_date is authoritative.
    """

    ACTIVE = "active"  # Paid or free period running
    CANCELLED = "cancelled"  # Auto-renew off, access until end_date
    EXPIRED = "expired"  # Flipped by the expiry sweep

    def has_access(self) -> bool:
        """Check if this status allows feature usage (end_date permitting)."""
        return self in (SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED)


class PaymentStatus(str, Enum):
    """
    Payment transaction status.

    Flow: pending -> paid | failed (exactly once)
    """

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

    def is_final(self) -> bool:
        return self != PaymentStatus.PENDING


class PlanDuration(str, Enum):
    """Billing period length of a plan."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    def end_from(self, start: datetime) -> datetime:
        """
        Compute the exclusive end of a period starting at `start`.

        Months and years are calendar based; the day is clamped to the last
        day of the target month (Jan 31 + 1 month = Feb 28/29).
        """
        if self == PlanDuration.WEEKLY:
            return start + timedelta(days=7)
        months = 12 if self == PlanDuration.YEARLY else 1
        month_index = start.month - 1 + months
        year = start.year + month_index // 12
        month = month_index % 12 + 1
        day = min(start.day, calendar.monthrange(year, month)[1])
        return start.replace(year=year, month=month, day=day)


class Feature(str, Enum):
    """
    Metered platform features.

    The catalog stores limits as an opaque map, so new features only need an
    entry here to get a zeroed counter on new periods.
    """

    PUBLICATIONS = "publications"  # Casting postings published
    RESPONSES = "responses"  # Responses sent to postings
    MESSAGES = "messages"  # Chat messages started
    PROMOTIONS = "promotions"  # Paid profile/posting promotions

    @classmethod
    def zeroed_counters(cls) -> dict[str, int]:
        return {feature.value: 0 for feature in cls}


class UserRole(str, Enum):
    """Platform roles as stored by the identity store."""

    MODEL = "model"
    EMPLOYER = "employer"
    ADMIN = "admin"


class PaymentProvider(str, Enum):
    """Payment processor backends."""

    ROBOKASSA = "robokassa"


class NotificationKind(str, Enum):
    """Notifications emitted by the subscription engine."""

    SUBSCRIPTION_ACTIVATED = "subscription_activated"
    SUBSCRIPTION_RENEWED = "subscription_renewed"
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    SUBSCRIPTION_EXPIRING = "subscription_expiring"
