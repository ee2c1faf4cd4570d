from typing import Any, Dict, Optional

from common.core.otel_axiom_exporter import get_logger, trace_span
from common.providers.messaging.constants import QueueName
from common.providers.messaging.factory import get_message_queue
from common.providers.messaging.interface import MessageQueueInterface
from common.providers.messaging.messages import SubscriptionNotificationMessage
from packages.billing.models.domain.enums import NotificationKind
from .interface import NotificationProviderInterface

logger = get_logger(__name__)


class QueueNotificationProvider(NotificationProviderInterface):
    """Publishes notifications to RabbitMQ for the delivery service."""

    def __init__(
        self,
        message_queue: Optional[MessageQueueInterface] = None,
        queue_name: str = QueueName.SUBSCRIPTION_NOTIFICATIONS,
    ):
        self.message_queue = message_queue
        self.queue_name = queue_name

    @trace_span
    async def notify(
        self, user_id: int, kind: NotificationKind, payload: Dict[str, Any]
    ) -> bool:
        message = SubscriptionNotificationMessage(
            user_id=user_id, kind=kind.value, payload=payload
        )

        # The shared publisher stays open; it is closed on shutdown
        message_queue = self.message_queue or get_message_queue()
        published = await message_queue.publish(
            self.queue_name, message.model_dump(mode="json")
        )

        if not published:
            logger.error(
                f"Failed to publish {kind.value} notification for user {user_id}",
                extra={"user_id": user_id, "kind": kind.value},
            )
        return published
