"""
Service for quota enforcement.

This is the critical service that prevents usage beyond subscription limits.
Feature code reserves a unit before the protected write and releases it if
the write fails:

    async with quota_service.guard(user_id, Feature.PUBLICATIONS):
        await posting_service.publish(...)
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from common.core.config import settings
from common.core.exceptions import QuotaExceededError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.enums import UserRole
from packages.billing.models.domain.usage import QuotaCheck, QuotaReservation
from packages.billing.services.usage_service import UsageService
from packages.users.services.user_service import UserService

logger = get_logger(__name__)


class QuotaService:
    """Service for quota enforcement."""

    def __init__(self):
        self.usage_service = UsageService()
        self.user_service = UserService()

    async def _is_exempt(self, user_id: int, role: Optional[UserRole]) -> bool:
        if role is None:
            user = await self.user_service.find_user(user_id)
            role = user.role if user else None
        return role is not None and role.value in settings.quota_exempt_roles

    def _exceeded(self, check: QuotaCheck) -> QuotaExceededError:
        return QuotaExceededError(
            check.get_user_message(), feature=check.feature, limit=check.limit
        )

    async def _check(self, user_id: int, feature: str, role: Optional[UserRole]) -> QuotaCheck:
        if await self._is_exempt(user_id, role):
            return QuotaCheck(allowed=True, feature=feature, used=0, exempt=True)

        usage = await self.usage_service.feature_usage(user_id, feature)
        return QuotaCheck(
            allowed=usage.remaining is None or usage.remaining > 0,
            feature=feature,
            used=usage.used,
            limit=usage.limit,
            remaining=usage.remaining,
        )

    @trace_span
    async def check_quota(
        self, user_id: int, feature: str, role: Optional[UserRole] = None
    ) -> QuotaCheck:
        """
        Check that the user can consume one more unit of a feature.

        Raises:
            QuotaExceededError: Nothing left, or no current subscription
        """
        check = await self._check(user_id, feature, role)
        if not check.allowed:
            logger.info(
                f"Quota exceeded for user {user_id} on {feature}",
                extra={"user_id": user_id, "feature": feature, "used": check.used},
            )
            raise self._exceeded(check)
        return check

    @trace_span
    async def reserve(
        self, user_id: int, feature: str, role: Optional[UserRole] = None
    ) -> QuotaReservation:
        """
        Consume one unit ahead of the protected write.

        Two reservations racing for the last unit can both pass the check;
        the one whose increment lands past the limit gives its unit back and
        fails.
        """
        check = await self.check_quota(user_id, feature, role)
        if check.exempt:
            return QuotaReservation(user_id=user_id, feature=feature, exempt=True)

        new_value = await self.usage_service.increment(user_id, feature)

        if check.limit is not None:
            limit = check.limit
            if new_value > limit:
                await self.usage_service.decrement(user_id, feature)
                logger.info(
                    f"Reservation of {feature} for user {user_id} lost a race, rolled back",
                    extra={"user_id": user_id, "feature": feature, "limit": limit},
                )
                raise QuotaExceededError(
                    f"{feature.capitalize()} limit reached ({limit}). Upgrade your plan to continue.",
                    feature=feature,
                    limit=limit,
                )

        return QuotaReservation(user_id=user_id, feature=feature)

    @trace_span
    async def release(self, reservation: QuotaReservation) -> None:
        """Give a reserved unit back after the protected write failed."""
        if reservation.exempt or reservation.released:
            return
        try:
            await self.usage_service.decrement(reservation.user_id, reservation.feature)
            reservation.released = True
        except Exception as e:
            # Counter stays one high until the next period; never retried inline
            logger.error(
                f"Failed to release {reservation.feature} for user {reservation.user_id}: {e}",
                exc_info=True,
                extra={"user_id": reservation.user_id, "feature": reservation.feature},
            )

    @asynccontextmanager
    async def guard(
        self, user_id: int, feature: str, role: Optional[UserRole] = None
    ) -> AsyncIterator[QuotaReservation]:
        """Reserve on enter, release if the body raises."""
        reservation = await self.reserve(user_id, feature, role)
        try:
            yield reservation
        except Exception:
            await self.release(reservation)
            raise
