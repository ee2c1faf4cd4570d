from typing import Any, Dict

from common.core.otel_axiom_exporter import get_logger
from packages.billing.models.domain.enums import NotificationKind
from .interface import NotificationProviderInterface

logger = get_logger(__name__)


class LogNotificationProvider(NotificationProviderInterface):
    """Writes notifications to the log. Used locally and in tests."""

    async def notify(
        self, user_id: int, kind: NotificationKind, payload: Dict[str, Any]
    ) -> bool:
        logger.info(
            f"Notification {kind.value} for user {user_id}",
            extra={"user_id": user_id, "kind": kind.value, "payload": payload},
        )
        return True
