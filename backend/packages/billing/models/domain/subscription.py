"""
Domain models for user subscriptions.
"""

from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from common.db.base import utcnow
from packages.billing.models.domain.enums import SubscriptionStatus


class Subscription(BaseModel):
    """
    User subscription domain model.

    Represents one period of a plan granted to a user:
    - Status (Active/Cancelled/Expired), a cached view of the period
    - Period dates; end_date is exclusive and authoritative
    - Usage counters for the period (feature -> units consumed)
    """

    id: int
    user_id: int
    plan_id: int

    status: SubscriptionStatus
    start_date: datetime
    end_date: datetime

    usage: Dict[str, int] = Field(default_factory=dict)
    auto_renew: bool = True
    cancelled_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("usage", mode="before")
    @classmethod
    def validate_usage(cls, v):
        return v or {}

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Expired once end_date is reached, whatever the stored status says."""
        now = now or utcnow()
        return self.status == SubscriptionStatus.EXPIRED or now >= self.end_date

    def has_access(self, now: Optional[datetime] = None) -> bool:
        """Check if the subscription currently grants feature usage."""
        return self.status.has_access() and not self.is_expired(now)

    def used(self, feature: str) -> int:
        return self.usage.get(feature, 0)

    def days_remaining(self, now: Optional[datetime] = None) -> int:
        """Get number of whole days until the period ends."""
        delta = self.end_date - (now or utcnow())
        return max(0, delta.days)


class SubscriptionCreateModel(BaseModel):
    """Model for creating a new subscription."""

    user_id: int
    plan_id: int
    status: str = SubscriptionStatus.ACTIVE.value
    start_date: datetime
    end_date: datetime
    usage: Dict[str, int] = Field(default_factory=dict)
    auto_renew: bool = True

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        if isinstance(v, SubscriptionStatus):
            return v.value
        return v

    @model_validator(mode="after")
    def validate_period(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SubscriptionUpdateModel(BaseModel):
    """Model for updating a subscription."""

    plan_id: Optional[int] = None
    status: Optional[str] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    usage: Optional[Dict[str, int]] = None
    auto_renew: Optional[bool] = None
    cancelled_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        if isinstance(v, SubscriptionStatus):
            return v.value
        return v
