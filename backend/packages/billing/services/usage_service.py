"""
Service for the usage ledger.

Counters live on the current subscription row, so a new period starts from
zero by construction and there is nothing to roll over.
"""

from typing import Optional, Tuple

from common.core.exceptions import NotFoundError, QuotaExceededError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.base import utcnow
from common.db.context import readonly
from common.db.scoped import transaction
from packages.billing.models.domain.enums import Feature
from packages.billing.models.domain.plans import Plan
from packages.billing.models.domain.subscription import Subscription
from packages.billing.models.domain.usage import FeatureUsage, UsageStats
from packages.billing.repositories.plan_repository import PlanRepository
from packages.billing.repositories.subscription_repository import SubscriptionRepository

logger = get_logger(__name__)


class UsageService:
    """Service for per-period feature counters."""

    def __init__(self):
        self.subscription_repo = SubscriptionRepository()
        self.plan_repo = PlanRepository()

    async def _current_with_plan(
        self, user_id: int
    ) -> Tuple[Optional[Subscription], Optional[Plan]]:
        """Current access-granting subscription and the plan version it was sold on."""
        subscription = await self.subscription_repo.get_current(user_id)
        if not subscription or not subscription.has_access(utcnow()):
            return None, None
        plan = await self.plan_repo.get_any(subscription.plan_id)
        return subscription, plan

    @trace_span
    async def feature_usage(self, user_id: int, feature: str) -> FeatureUsage:
        """
        Used, limit and remaining units of one feature this period.

        Without a current subscription nothing remains (limit 0).
        """
        subscription, plan = await self._current_with_plan(user_id)
        if not subscription or not plan:
            return FeatureUsage(feature=feature, used=0, limit=0, remaining=0)

        used = subscription.used(feature)
        limit = plan.limit_for(feature)
        if limit is None:
            return FeatureUsage(feature=feature, used=used)
        return FeatureUsage(
            feature=feature, used=used, limit=limit, remaining=max(0, limit - used)
        )

    @trace_span
    async def remaining(self, user_id: int, feature: str) -> Optional[int]:
        """
        Units of a feature the user may still consume this period.

        Returns None for an uncapped feature and 0 when the user has no
        current subscription.
        """
        usage = await self.feature_usage(user_id, feature)
        return usage.remaining

    @trace_span
    async def increment(self, user_id: int, feature: str) -> int:
        """Add one unit to the current period's counter and return the new value."""
        async with transaction():
            subscription = await self.subscription_repo.get_current(
                user_id, for_update=True
            )
            if not subscription or not subscription.has_access(utcnow()):
                raise QuotaExceededError(
                    "No active subscription. Please subscribe to continue.",
                    feature=feature,
                    limit=0,
                )

            usage = dict(subscription.usage)
            usage[feature] = usage.get(feature, 0) + 1
            await self.subscription_repo.set_usage(subscription.id, usage)

        logger.debug(
            f"Incremented {feature} for user {user_id} to {usage[feature]}",
            extra={"user_id": user_id, "subscription_id": subscription.id},
        )
        return usage[feature]

    @trace_span
    async def decrement(self, user_id: int, feature: str) -> int:
        """Take back one unit, never going below zero."""
        async with transaction():
            subscription = await self.subscription_repo.get_current(
                user_id, for_update=True
            )
            if not subscription:
                return 0

            usage = dict(subscription.usage)
            usage[feature] = max(0, usage.get(feature, 0) - 1)
            await self.subscription_repo.set_usage(subscription.id, usage)

        return usage[feature]

    @trace_span
    async def reset(self, user_id: int) -> None:
        """Zero every counter of the current subscription."""
        async with transaction():
            subscription = await self.subscription_repo.get_current(
                user_id, for_update=True
            )
            if not subscription:
                return
            await self.subscription_repo.set_usage(
                subscription.id, Feature.zeroed_counters()
            )

        logger.info(
            f"Reset usage counters for user {user_id}",
            extra={"user_id": user_id, "subscription_id": subscription.id},
        )

    @trace_span
    @readonly
    async def get_usage_stats(self, user_id: int) -> UsageStats:
        subscription = await self.subscription_repo.get_current(user_id)
        if not subscription:
            raise NotFoundError("No subscription found")
        plan = await self.plan_repo.get_any(subscription.plan_id)
        if not plan:
            raise NotFoundError(f"Plan {subscription.plan_id} not found")

        has_access = subscription.has_access(utcnow())
        names = list(Feature.zeroed_counters())
        names += [name for name in {**plan.limits, **subscription.usage} if name not in names]

        features = []
        for name in names:
            used = subscription.used(name)
            limit = plan.limit_for(name)
            if not has_access:
                remaining = 0
            elif limit is None:
                remaining = None
            else:
                remaining = max(0, limit - used)
            features.append(
                FeatureUsage(feature=name, used=used, limit=limit, remaining=remaining)
            )

        return UsageStats(
            user_id=user_id,
            subscription_id=subscription.id,
            plan_id=plan.id,
            plan_name=plan.name,
            status=subscription.status.value,
            period_start=subscription.start_date,
            period_end=subscription.end_date,
            features=features,
        )
