"""
Periodic subscription maintenance.

Expires subscriptions past their end date and sends expiring-soon
reminders. Safe to run on several pods at once: expiry flips are
conditional, so each subscription is expired and announced once.
"""

from typing import Optional

from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger, trace_span
from common.workers.base_worker import PeriodicWorker
from packages.billing.services.subscription_service import SubscriptionService

logger = get_logger(__name__)


class SubscriptionSweepWorker(PeriodicWorker):
    def __init__(
        self,
        interval_seconds: Optional[float] = None,
        reminder_days: Optional[int] = None,
    ):
        super().__init__(
            interval_seconds=interval_seconds
            or settings.subscription_sweep_interval_seconds
        )
        self.reminder_days = (
            settings.expiring_reminder_days if reminder_days is None else reminder_days
        )
        self.subscription_service = SubscriptionService()

    @trace_span
    async def run_once(self):
        expired = await self.subscription_service.sweep_expired()
        reminded = await self.subscription_service.notify_expiring(self.reminder_days)
        logger.info(
            f"Subscription sweep done: {expired} expired, {reminded} reminded",
            extra={"expired": expired, "reminded": reminded},
        )
        return expired, reminded

    async def cleanup(self):
        # Notifications are detached tasks; finish them before the loop closes
        await self.subscription_service.notifications.drain()
