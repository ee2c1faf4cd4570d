"""Service for the plan catalog."""

from typing import List, Optional

from common.core.config import settings
from common.core.exceptions import NotFoundError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.base import utcnow
from common.db.scoped import transaction
from packages.billing.models.domain.enums import UserRole
from packages.billing.models.domain.plans import (
    Plan,
    PlanCreateModel,
    PlanUpdateModel,
)
from packages.billing.repositories.plan_repository import PlanRepository
from packages.billing.repositories.subscription_repository import SubscriptionRepository
from packages.users.services.user_service import UserService

logger = get_logger(__name__)


class PlanService:
    """Service for listing and administering subscription plans."""

    def __init__(self):
        self.plan_repo = PlanRepository()
        self.subscription_repo = SubscriptionRepository()
        self.user_service = UserService()

    @trace_span
    async def list_plans(self, role: Optional[UserRole] = None) -> List[Plan]:
        """
        List plans offered to a role, cheapest first.

        Admins see every non-deleted plan, including inactive and superseded
        versions.
        """
        if role == UserRole.ADMIN:
            return await self.plan_repo.list_visible(role=None, include_inactive=True)
        return await self.plan_repo.list_visible(role=role)

    @trace_span
    async def get_plan(self, plan_id: int) -> Plan:
        plan = await self.plan_repo.get(plan_id)
        if not plan:
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    @trace_span
    async def get_plan_any_version(self, plan_id: int) -> Plan:
        """Get a plan row even if it was superseded or deleted."""
        plan = await self.plan_repo.get_any(plan_id)
        if not plan:
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    @trace_span
    async def get_free_plan(self) -> Plan:
        """Get the plan new users are put on."""
        plan = await self.plan_repo.get_active_by_name(settings.free_plan_name)
        if not plan or not plan.is_free():
            raise NotFoundError(f"Free plan '{settings.free_plan_name}' is not configured")
        return plan

    @trace_span
    async def create_plan(self, actor_id: int, data: PlanCreateModel) -> Plan:
        await self.user_service.require_admin(actor_id)

        plan = await self.plan_repo.create(data)
        logger.info(
            f"Created plan {plan.id} ({plan.name})",
            extra={"plan_id": plan.id, "actor_id": actor_id, "price": str(plan.price)},
        )
        return plan

    @trace_span
    async def update_plan(
        self, actor_id: int, plan_id: int, data: PlanUpdateModel
    ) -> Plan:
        """
        Update a plan.

        If the change touches the terms (price, duration, limits, ...) and
        the plan is referenced by a live subscription, a new version is
        created and the current one deactivated. Otherwise the row is edited
        in place.
        """
        await self.user_service.require_admin(actor_id)

        async with transaction():
            current = await self.plan_repo.get_for_update(plan_id)
            if not current or current.deleted:
                raise NotFoundError(f"Plan {plan_id} not found")

            live = 0
            if data.changes_terms():
                live = await self.subscription_repo.count_live_for_plan(
                    plan_id, utcnow()
                )

            if not live:
                updated = await self.plan_repo.update(plan_id, data)
                logger.info(
                    f"Updated plan {plan_id} in place",
                    extra={"plan_id": plan_id, "actor_id": actor_id},
                )
                return updated

            merged = current.model_dump(
                include={
                    "name",
                    "description",
                    "price",
                    "currency",
                    "duration",
                    "limits",
                    "features",
                    "target_role",
                    "is_active",
                }
            )
            merged.update(data.model_dump(exclude_unset=True))
            merged["version"] = current.version + 1
            merged["previous_version_id"] = current.id
            new_version = await self.plan_repo.create(PlanCreateModel(**merged))

            await self.plan_repo.update(plan_id, PlanUpdateModel(is_active=False))

        logger.info(
            f"Plan {plan_id} has {live} live subscriptions, created version {new_version.version} as plan {new_version.id}",
            extra={
                "plan_id": plan_id,
                "new_plan_id": new_version.id,
                "live_subscriptions": live,
                "actor_id": actor_id,
            },
        )
        return new_version

    @trace_span
    async def delete_plan(self, actor_id: int, plan_id: int) -> None:
        """Soft delete a plan. Existing subscriptions keep their limits."""
        await self.user_service.require_admin(actor_id)

        async with transaction():
            plan = await self.plan_repo.get(plan_id)
            if not plan:
                raise NotFoundError(f"Plan {plan_id} not found")
            await self.plan_repo.update(plan_id, PlanUpdateModel(is_active=False))
            await self.plan_repo.soft_delete(plan_id)

        logger.info(
            f"Deleted plan {plan_id}",
            extra={"plan_id": plan_id, "actor_id": actor_id},
        )
