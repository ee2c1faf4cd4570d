"""
Domain models for usage counters and quota decisions.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class QuotaCheck(BaseModel):
    """
    Result of a quota check.

    remaining/limit are None when the feature is uncapped (or the caller's
    role is exempt from quotas).
    """

    allowed: bool
    feature: str
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    exempt: bool = False

    @property
    def unlimited(self) -> bool:
        return self.remaining is None

    def get_user_message(self) -> Optional[str]:
        """Get user-friendly message about quota status."""
        if not self.allowed:
            return f"{self.feature.capitalize()} limit reached ({self.limit}). Upgrade your plan to continue."
        return None


class QuotaReservation(BaseModel):
    """A unit of quota consumed ahead of the protected write."""

    user_id: int
    feature: str
    subscription_id: Optional[int] = None
    # Exempt reservations never touched the ledger, releasing them is a no-op
    exempt: bool = False
    released: bool = False


class FeatureUsage(BaseModel):
    feature: str
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None


class UsageStats(BaseModel):
    """
    Usage of the current subscription period, per feature.
    """

    user_id: int
    subscription_id: int
    plan_id: int
    plan_name: str
    status: str
    period_start: datetime
    period_end: datetime
    features: List[FeatureUsage]
