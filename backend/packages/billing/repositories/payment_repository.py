"""
Repository for payment transactions.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from packages.billing.models.database.payment import PaymentTransactionEntity
from packages.billing.models.domain.payment import PaymentTransaction
from packages.billing.models.domain.enums import PaymentStatus
from common.core.otel_axiom_exporter import trace_span


class PaymentRepository(BaseRepository[PaymentTransactionEntity, PaymentTransaction]):
    """Repository for payment transactions keyed by invoice id."""

    def __init__(self):
        super().__init__(PaymentTransactionEntity, PaymentTransaction)

    @trace_span
    async def get_by_invoice_id(self, invoice_id: str) -> Optional[PaymentTransaction]:
        async with self._get_session() as session:
            result = await session.execute(
                select(PaymentTransactionEntity)
                .where(PaymentTransactionEntity.invoice_id == invoice_id)
                .execution_options(populate_existing=True)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def mark_paid(self, payment_id: int, paid_at: datetime) -> bool:
        """
        Flip Pending -> Paid.

        Conditional on the stored status, so of two concurrent callbacks for
        the same invoice exactly one gets True.
        """
        async with self._get_session() as session:
            result = await session.execute(
                update(PaymentTransactionEntity)
                .where(
                    PaymentTransactionEntity.id == payment_id,
                    PaymentTransactionEntity.status == PaymentStatus.PENDING.value,
                )
                .values(status=PaymentStatus.PAID.value, paid_at=paid_at)
            )
            return result.rowcount == 1

    @trace_span
    async def mark_failed(self, payment_id: int, failed_at: datetime) -> bool:
        """Flip Pending -> Failed. False if the transaction was already final."""
        async with self._get_session() as session:
            result = await session.execute(
                update(PaymentTransactionEntity)
                .where(
                    PaymentTransactionEntity.id == payment_id,
                    PaymentTransactionEntity.status == PaymentStatus.PENDING.value,
                )
                .values(status=PaymentStatus.FAILED.value, failed_at=failed_at)
            )
            return result.rowcount == 1

    @trace_span
    async def link_subscription(self, payment_id: int, subscription_id: int) -> None:
        async with self._get_session() as session:
            await session.execute(
                update(PaymentTransactionEntity)
                .where(PaymentTransactionEntity.id == payment_id)
                .values(subscription_id=subscription_id)
            )

    @trace_span
    async def list_by_user(
        self, user_id: int, skip: int = 0, limit: int = 50
    ) -> List[PaymentTransaction]:
        """Get a user's payment history, newest first."""
        async with self._get_session() as session:
            result = await session.execute(
                select(PaymentTransactionEntity)
                .where(PaymentTransactionEntity.user_id == user_id)
                .order_by(PaymentTransactionEntity.id.desc())
                .offset(skip)
                .limit(limit)
            )
            return self._entities_to_domain(result.scalars().all())
