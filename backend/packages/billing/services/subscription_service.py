"""
Service for managing subscriptions.

Every mutation of a user's subscription runs in one transaction() holding
the per-user lock, so a payment activation, a cancel and the expiry sweep
racing on the same user serialize in the store. Notifications go out after
the commit.
"""

import calendar
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from common.core.config import settings
from common.core.exceptions import (
    AlreadySatisfiedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.base import utcnow
from common.db.scoped import transaction
from packages.billing.models.domain.enums import (
    Feature,
    NotificationKind,
    SubscriptionStatus,
    UserRole,
)
from packages.billing.models.domain.plans import Plan
from packages.billing.models.domain.subscription import (
    Subscription,
    SubscriptionCreateModel,
    SubscriptionUpdateModel,
)
from packages.billing.providers.notification.dispatcher import (
    get_notification_dispatcher,
)
from packages.billing.repositories.plan_repository import PlanRepository
from packages.billing.repositories.subscription_repository import SubscriptionRepository
from packages.users.services.user_service import UserService

logger = get_logger(__name__)


def _add_years(start: datetime, years: int) -> datetime:
    year = start.year + years
    day = min(start.day, calendar.monthrange(year, start.month)[1])
    return start.replace(year=year, day=day)


class SubscriptionService:
    """Service for the subscription lifecycle."""

    def __init__(self):
        self.subscription_repo = SubscriptionRepository()
        self.plan_repo = PlanRepository()
        self.user_service = UserService()
        self.notifications = get_notification_dispatcher()

    def _notify(self, subscription: Subscription, kind: NotificationKind) -> None:
        self.notifications.dispatch(
            subscription.user_id,
            kind,
            {
                "subscription_id": subscription.id,
                "plan_id": subscription.plan_id,
                "status": subscription.status.value,
                "end_date": subscription.end_date.isoformat(),
            },
        )

    async def _get_plan(self, plan_id: int) -> Plan:
        # Superseded versions stay valid for people who already paid for them
        plan = await self.plan_repo.get_any(plan_id)
        if not plan:
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    async def _create(self, user_id: int, plan: Plan, end_date: Optional[datetime] = None) -> Subscription:
        now = utcnow()
        subscription = await self.subscription_repo.create(
            SubscriptionCreateModel(
                user_id=user_id,
                plan_id=plan.id,
                status=SubscriptionStatus.ACTIVE,
                start_date=now,
                end_date=end_date or plan.duration.end_from(now),
                usage=Feature.zeroed_counters(),
            )
        )
        logger.info(
            f"Created subscription {subscription.id} for user {user_id} on plan {plan.id}",
            extra={
                "subscription_id": subscription.id,
                "user_id": user_id,
                "plan_id": plan.id,
                "end_date": subscription.end_date.isoformat(),
            },
        )
        return subscription

    async def _renew(self, current: Subscription, plan: Plan) -> Subscription:
        """Start a fresh period on `plan`. The new period replaces what was left."""
        now = utcnow()
        renewed = await self.subscription_repo.update(
            current.id,
            SubscriptionUpdateModel(
                plan_id=plan.id,
                status=SubscriptionStatus.ACTIVE,
                start_date=now,
                end_date=plan.duration.end_from(now),
                usage=Feature.zeroed_counters(),
                auto_renew=True,
                cancelled_at=None,
            ),
        )
        logger.info(
            f"Renewed subscription {current.id} for user {current.user_id} on plan {plan.id}",
            extra={
                "subscription_id": current.id,
                "user_id": current.user_id,
                "old_plan_id": current.plan_id,
                "plan_id": plan.id,
                "old_status": current.status.value,
            },
        )
        return renewed

    @trace_span
    async def get_current(self, user_id: int) -> Optional[Subscription]:
        """Get the user's most recent subscription, whatever its status."""
        return await self.subscription_repo.get_current(user_id)

    @trace_span
    async def get_by_id(self, subscription_id: int) -> Subscription:
        subscription = await self.subscription_repo.get(subscription_id)
        if not subscription:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        return subscription

    @trace_span
    async def create_subscription(self, user_id: int, plan_id: int) -> Subscription:
        """Create a subscription for a user without a current one."""
        async with transaction():
            await self.subscription_repo.acquire_user_lock(user_id)
            current = await self.subscription_repo.get_current(user_id, for_update=True)
            if current and current.has_access(utcnow()):
                raise AlreadySatisfiedError(
                    f"User {user_id} already has an active subscription"
                )
            plan = await self._get_plan(plan_id)
            subscription = await self._create(user_id, plan)

        self._notify(subscription, NotificationKind.SUBSCRIPTION_ACTIVATED)
        return subscription

    @trace_span
    async def activate(self, user_id: int, plan_id: int) -> Tuple[Subscription, bool]:
        """
        Put the user on a plan: create a subscription if there is none,
        otherwise renew the current one.

        Joins the caller's transaction when one is open. Sends no
        notification, callers do that once their transaction has committed.

        Returns:
            (subscription, created)
        """
        async with transaction():
            await self.subscription_repo.acquire_user_lock(user_id)
            current = await self.subscription_repo.get_current(user_id, for_update=True)
            plan = await self._get_plan(plan_id)
            if current is None:
                return await self._create(user_id, plan), True
            return await self._renew(current, plan), False

    @trace_span
    async def subscribe(self, user_id: int, role: UserRole, plan_id: int) -> Subscription:
        """
        Switch to a plan without going through payment.

        Free plans are open to everyone the plan is offered to, but only
        once the current period has ended; paid plans can only be granted
        this way by administrators.
        """
        plan = await self.plan_repo.get(plan_id)
        if not plan or not plan.is_active:
            raise NotFoundError(f"Plan {plan_id} not found")
        if role != UserRole.ADMIN:
            if not plan.visible_to(role):
                raise PermissionDeniedError("This plan is not offered to your role")
            if not plan.is_free():
                raise PermissionDeniedError(
                    "Paid plans must be purchased through a payment"
                )

        async with transaction():
            if role != UserRole.ADMIN:
                await self.subscription_repo.acquire_user_lock(user_id)
                current = await self.subscription_repo.get_current(
                    user_id, for_update=True
                )
                # Re-subscribing would hand out a fresh set of counters
                if current and current.has_access(utcnow()):
                    raise AlreadySatisfiedError(
                        f"User {user_id} already has a subscription until {current.end_date.isoformat()}"
                    )
            subscription, created = await self.activate(user_id, plan_id)

        self._notify(
            subscription,
            NotificationKind.SUBSCRIPTION_ACTIVATED
            if created
            else NotificationKind.SUBSCRIPTION_RENEWED,
        )
        return subscription

    @trace_span
    async def renew_subscription(self, user_id: int, plan_id: int) -> Subscription:
        async with transaction():
            await self.subscription_repo.acquire_user_lock(user_id)
            current = await self.subscription_repo.get_current(user_id, for_update=True)
            if not current:
                raise NotFoundError("No subscription to renew")
            plan = await self._get_plan(plan_id)
            renewed = await self._renew(current, plan)

        self._notify(renewed, NotificationKind.SUBSCRIPTION_RENEWED)
        return renewed

    @trace_span
    async def cancel_subscription(self, user_id: int) -> Subscription:
        """
        Turn off auto-renew. Access continues until the end of the period.
        """
        async with transaction():
            await self.subscription_repo.acquire_user_lock(user_id)
            current = await self.subscription_repo.get_current(user_id, for_update=True)
            if not current or current.is_expired(utcnow()):
                raise NotFoundError("No active subscription found")
            if current.status == SubscriptionStatus.CANCELLED:
                raise AlreadySatisfiedError("Subscription is already cancelled")

            cancelled = await self.subscription_repo.update(
                current.id,
                SubscriptionUpdateModel(
                    status=SubscriptionStatus.CANCELLED,
                    auto_renew=False,
                    cancelled_at=utcnow(),
                ),
            )

        logger.info(
            f"Cancelled subscription {current.id} for user {user_id}",
            extra={"subscription_id": current.id, "user_id": user_id},
        )
        self._notify(cancelled, NotificationKind.SUBSCRIPTION_CANCELLED)
        return cancelled

    @trace_span
    async def ensure_free_subscription(self, user_id: int) -> Subscription:
        """Return the user's subscription, signing them up for the free tier if they have none."""
        current = await self.subscription_repo.get_current(user_id)
        if current:
            return current

        async with transaction():
            await self.subscription_repo.acquire_user_lock(user_id)
            current = await self.subscription_repo.get_current(user_id, for_update=True)
            if current:
                return current

            plan = await self.plan_repo.get_active_by_name(settings.free_plan_name)
            if not plan or not plan.is_free():
                raise NotFoundError(
                    f"Free plan '{settings.free_plan_name}' is not configured"
                )
            return await self._create(
                user_id, plan, end_date=_add_years(utcnow(), settings.free_tier_years)
            )

    @trace_span
    async def sweep_expired(self) -> int:
        """
        Flip Active subscriptions past their end date to Expired.

        Each row is flipped conditionally in its own transaction, so a
        concurrent renewal wins and a second sweep finds nothing to do.
        """
        now = utcnow()
        candidates = await self.subscription_repo.get_active_ended_before(now)

        expired: List[Subscription] = []
        for subscription in candidates:
            try:
                async with transaction():
                    flipped = await self.subscription_repo.mark_expired(
                        subscription.id, now
                    )
            except Exception as e:
                logger.error(
                    f"Failed to expire subscription {subscription.id}: {e}",
                    exc_info=True,
                    extra={"subscription_id": subscription.id},
                )
                continue
            if flipped:
                expired.append(subscription.model_copy(update={"status": SubscriptionStatus.EXPIRED}))

        for subscription in expired:
            self._notify(subscription, NotificationKind.SUBSCRIPTION_EXPIRED)

        logger.info(
            f"Expiry sweep flipped {len(expired)} of {len(candidates)} subscriptions",
            extra={"expired": len(expired), "candidates": len(candidates)},
        )
        return len(expired)

    @trace_span
    async def notify_expiring(self, days: Optional[int] = None) -> int:
        """Remind users whose subscription ends within `days` days."""
        days = settings.expiring_reminder_days if days is None else days
        now = utcnow()
        expiring = await self.subscription_repo.get_expiring_soon(now, days)
        for subscription in expiring:
            self.notifications.dispatch(
                subscription.user_id,
                NotificationKind.SUBSCRIPTION_EXPIRING,
                {
                    "subscription_id": subscription.id,
                    "plan_id": subscription.plan_id,
                    "end_date": subscription.end_date.isoformat(),
                    "days_remaining": subscription.days_remaining(now),
                    "auto_renew": subscription.auto_renew,
                },
            )
        return len(expiring)

    @trace_span
    async def list_subscriptions(
        self,
        status: Optional[SubscriptionStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Subscription]:
        return await self.subscription_repo.list_by_status(status, skip, limit)

    @trace_span
    async def force_cancel(self, actor_id: int, subscription_id: int) -> Subscription:
        """Cancel a subscription and end its access immediately."""
        await self.user_service.require_admin(actor_id)

        async with transaction():
            subscription = await self.subscription_repo.get_for_update(subscription_id)
            if not subscription:
                raise NotFoundError(f"Subscription {subscription_id} not found")
            if subscription.status != SubscriptionStatus.ACTIVE and subscription.is_expired():
                raise AlreadySatisfiedError("Subscription has already ended")

            now = utcnow()
            cancelled = await self.subscription_repo.update(
                subscription_id,
                SubscriptionUpdateModel(
                    status=SubscriptionStatus.CANCELLED,
                    auto_renew=False,
                    cancelled_at=now,
                    end_date=max(now, subscription.start_date),
                ),
            )

        logger.warning(
            f"Admin {actor_id} force-cancelled subscription {subscription_id}",
            extra={"subscription_id": subscription_id, "actor_id": actor_id},
        )
        self._notify(cancelled, NotificationKind.SUBSCRIPTION_CANCELLED)
        return cancelled

    @trace_span
    async def force_extend(
        self, actor_id: int, subscription_id: int, new_end_date: datetime
    ) -> Subscription:
        """Move the end of a subscription, reactivate it and zero its counters."""
        await self.user_service.require_admin(actor_id)

        if new_end_date.tzinfo is None:
            new_end_date = new_end_date.replace(tzinfo=timezone.utc)

        async with transaction():
            subscription = await self.subscription_repo.get_for_update(subscription_id)
            if not subscription:
                raise NotFoundError(f"Subscription {subscription_id} not found")
            if new_end_date <= subscription.start_date:
                raise ValidationError("New end date must be after the start date")

            await self.subscription_repo.set_usage(
                subscription_id, Feature.zeroed_counters()
            )
            extended = await self.subscription_repo.update(
                subscription_id,
                SubscriptionUpdateModel(
                    status=SubscriptionStatus.ACTIVE,
                    end_date=new_end_date,
                    cancelled_at=None,
                ),
            )

        logger.warning(
            f"Admin {actor_id} extended subscription {subscription_id} to {new_end_date.isoformat()}",
            extra={"subscription_id": subscription_id, "actor_id": actor_id},
        )
        self._notify(extended, NotificationKind.SUBSCRIPTION_RENEWED)
        return extended
