"""
Repository for the plan catalog.
"""

from typing import List, Optional
from sqlalchemy import select, or_

from common.repositories.base import BaseRepository
from packages.billing.models.database.plan import SubscriptionPlanEntity
from packages.billing.models.domain.plans import Plan
from packages.billing.models.domain.enums import UserRole
from common.core.otel_axiom_exporter import trace_span


class PlanRepository(BaseRepository[SubscriptionPlanEntity, Plan]):
    """Repository for subscription plans and their versions."""

    def __init__(self):
        super().__init__(SubscriptionPlanEntity, Plan)

    @trace_span
    async def list_visible(
        self, role: Optional[UserRole] = None, include_inactive: bool = False
    ) -> List[Plan]:
        """List non-deleted plans visible to a role (role=None lists every role's plans)."""
        query = select(SubscriptionPlanEntity).where(
            SubscriptionPlanEntity.deleted == False  # noqa
        )
        if not include_inactive:
            query = query.where(SubscriptionPlanEntity.is_active == True)  # noqa
        if role is not None:
            query = query.where(
                or_(
                    SubscriptionPlanEntity.target_role.is_(None),
                    SubscriptionPlanEntity.target_role == role.value,
                )
            )
        query = query.order_by(SubscriptionPlanEntity.price, SubscriptionPlanEntity.id)

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def get_any(self, plan_id: int) -> Optional[Plan]:
        """Get a plan row regardless of deleted/active state (history lookups)."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionPlanEntity).where(
                    SubscriptionPlanEntity.id == plan_id
                )
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_active_by_name(self, name: str) -> Optional[Plan]:
        """Get the active, non-deleted plan with the given name (latest version)."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionPlanEntity)
                .where(
                    SubscriptionPlanEntity.name == name,
                    SubscriptionPlanEntity.is_active == True,  # noqa
                    SubscriptionPlanEntity.deleted == False,  # noqa
                )
                .order_by(SubscriptionPlanEntity.version.desc())
                .limit(1)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None
