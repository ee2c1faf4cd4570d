"""
Repository for user subscriptions and their embedded usage counters.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional
from sqlalchemy import select, update, func, text

from common.repositories.base import BaseRepository
from packages.billing.models.database.subscription import UserSubscriptionEntity
from packages.billing.models.domain.subscription import Subscription
from packages.billing.models.domain.enums import SubscriptionStatus
from common.core.otel_axiom_exporter import trace_span

LIVE_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.CANCELLED.value)


class SubscriptionRepository(BaseRepository[UserSubscriptionEntity, Subscription]):
    """Repository for managing user subscriptions."""

    def __init__(self):
        super().__init__(UserSubscriptionEntity, Subscription)

    @trace_span
    async def get_current(
        self, user_id: int, for_update: bool = False
    ) -> Optional[Subscription]:
        """Get the user's most recent subscription row.

        With for_update the row stays locked until the surrounding
        transaction ends.
        """
        query = (
            select(UserSubscriptionEntity)
            .where(UserSubscriptionEntity.user_id == user_id)
            .order_by(UserSubscriptionEntity.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def acquire_user_lock(self, user_id: int) -> None:
        """
        Serialize subscription mutations for one user.

        Guards the create-if-absent path, where there is no row to lock yet.
        Uses pg_advisory_xact_lock, released on commit or rollback. Other
        dialects (SQLite in tests) serialize writers themselves.
        """
        async with self._get_session() as session:
            if session.get_bind().dialect.name != "postgresql":
                return
            await session.execute(
                text("SELECT pg_advisory_xact_lock(:user_id)"),
                {"user_id": user_id},
            )

    @trace_span
    async def set_usage(self, subscription_id: int, usage: Dict[str, int]) -> None:
        """Overwrite the usage counters of one subscription."""
        async with self._get_session() as session:
            await session.execute(
                update(UserSubscriptionEntity)
                .where(UserSubscriptionEntity.id == subscription_id)
                .values(usage=usage)
            )

    @trace_span
    async def get_active_ended_before(self, now: datetime) -> List[Subscription]:
        """Active subscriptions whose end_date has passed."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UserSubscriptionEntity)
                .where(
                    UserSubscriptionEntity.status == SubscriptionStatus.ACTIVE.value,
                    UserSubscriptionEntity.end_date <= now,
                )
                .order_by(UserSubscriptionEntity.id)
            )
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def mark_expired(self, subscription_id: int, now: datetime) -> bool:
        """Flip Active -> Expired.

        False if the row is no longer Active or was renewed past `now` since
        it was selected.
        """
        async with self._get_session() as session:
            result = await session.execute(
                update(UserSubscriptionEntity)
                .where(
                    UserSubscriptionEntity.id == subscription_id,
                    UserSubscriptionEntity.status == SubscriptionStatus.ACTIVE.value,
                    UserSubscriptionEntity.end_date <= now,
                )
                .values(status=SubscriptionStatus.EXPIRED.value)
            )
            return result.rowcount == 1

    @trace_span
    async def get_expiring_soon(self, now: datetime, days: int = 3) -> List[Subscription]:
        """Get live subscriptions ending within the next N days."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UserSubscriptionEntity)
                .where(
                    UserSubscriptionEntity.status.in_(LIVE_STATUSES),
                    UserSubscriptionEntity.end_date > now,
                    UserSubscriptionEntity.end_date <= now + timedelta(days=days),
                )
                .order_by(UserSubscriptionEntity.end_date)
            )
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def list_by_status(
        self,
        status: Optional[SubscriptionStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Subscription]:
        """List subscriptions, newest first, optionally filtered by status."""
        query = select(UserSubscriptionEntity)
        if status is not None:
            query = query.where(UserSubscriptionEntity.status == status.value)
        query = query.order_by(UserSubscriptionEntity.id.desc()).offset(skip).limit(limit)

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def count_live_for_plan(self, plan_id: int, now: datetime) -> int:
        """Count subscriptions still granting access on a plan."""
        async with self._get_session() as session:
            result = await session.execute(
                select(func.count(UserSubscriptionEntity.id)).where(
                    UserSubscriptionEntity.plan_id == plan_id,
                    UserSubscriptionEntity.status.in_(LIVE_STATUSES),
                    UserSubscriptionEntity.end_date > now,
                )
            )
            return result.scalar_one() or 0
