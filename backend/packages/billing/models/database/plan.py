"""
Database entity for subscription plans.
"""

from sqlalchemy import Boolean, Column, Integer, String, Text, Numeric, ForeignKey, Index, JSON
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, UTCDateTime


class SubscriptionPlanEntity(Base):
    """
    Subscription plan database entity.

    Limits and features are opaque JSON maps so new features need no
    migration. Each row is one version; previous_version_id links a
    version to the row it superseded.
    """

    __tablename__ = "subscription_plans"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), nullable=False, server_default="KZT")
    duration = Column(String(20), nullable=False)  # weekly, monthly, yearly

    limits = Column(JSON, nullable=False, default=dict)
    features = Column(JSON, nullable=False, default=dict)

    # Null means visible to every role
    target_role = Column(String(20), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    version = Column(Integer, nullable=False, default=1)
    previous_version_id = Column(
        BigIntegerType, ForeignKey("subscription_plans.id"), nullable=True
    )

    deleted = Column(
        Boolean, nullable=False, default=False, server_default="false", index=True
    )

    # Standard timestamps
    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_subscription_plans_active_role", "is_active", "target_role"),
    )
