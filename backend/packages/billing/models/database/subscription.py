"""
Database entity for user subscriptions.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, String, ForeignKey, Index, JSON
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, UTCDateTime


class UserSubscriptionEntity(Base):
    """
    User subscription database entity.

    Stores the plan grant for one period together with its usage counters
    (feature -> count, embedded JSON, scoped to this period by construction).
    Rows are never deleted; the most recent row per user is the current one.
    """

    __tablename__ = "user_subscriptions"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType, ForeignKey("users.id"), nullable=False, index=True
    )
    plan_id = Column(
        BigIntegerType, ForeignKey("subscription_plans.id"), nullable=False, index=True
    )

    status = Column(String(20), nullable=False, index=True)  # active, cancelled, expired

    # Billing period, end is exclusive
    start_date = Column(UTCDateTime, nullable=False)
    end_date = Column(UTCDateTime, nullable=False)

    usage = Column(JSON, nullable=False, default=dict)
    auto_renew = Column(Boolean, nullable=False, default=True)
    cancelled_at = Column(UTCDateTime, nullable=True)

    # Standard timestamps
    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_user_subscriptions_period"),
        Index("idx_user_subscriptions_status_end", "status", "end_date"),
        Index("idx_user_subscriptions_user_created", "user_id", "id"),
    )
