"""
Database entity for payment transactions.
"""

from sqlalchemy import Column, String, Numeric, ForeignKey, Index
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, UTCDateTime


class PaymentTransactionEntity(Base):
    """
    Payment transaction database entity.

    invoice_id is unique and doubles as the idempotency key for gateway
    callbacks. subscription_id is filled in when the payment is applied.
    """

    __tablename__ = "payment_transactions"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType, ForeignKey("users.id"), nullable=False, index=True
    )
    plan_id = Column(
        BigIntegerType, ForeignKey("subscription_plans.id"), nullable=False
    )
    subscription_id = Column(
        BigIntegerType, ForeignKey("user_subscriptions.id"), nullable=True, index=True
    )

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, index=True)  # pending, paid, failed
    invoice_id = Column(String(64), nullable=False, unique=True, index=True)
    provider = Column(String(50), nullable=False, server_default="robokassa")

    paid_at = Column(UTCDateTime, nullable=True)
    failed_at = Column(UTCDateTime, nullable=True)

    # Standard timestamps
    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_payment_transactions_user_created", "user_id", "created_at"),
    )
