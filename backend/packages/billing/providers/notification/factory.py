from common.core.config import settings
from common.core.constants import NotificationProviderType
from .interface import NotificationProviderInterface
from .log_notification import LogNotificationProvider
from .queue_notification import QueueNotificationProvider


def get_notification_provider() -> NotificationProviderInterface:
    """Get notification provider selected by settings."""
    if settings.notification_provider == NotificationProviderType.LOG:
        return LogNotificationProvider()
    return QueueNotificationProvider(queue_name=settings.notification_queue_name)
