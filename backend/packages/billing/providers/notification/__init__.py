from .interface import NotificationProviderInterface
from .log_notification import LogNotificationProvider
from .queue_notification import QueueNotificationProvider
from .factory import get_notification_provider
from .dispatcher import NotificationDispatcher, get_notification_dispatcher

__all__ = [
    "NotificationProviderInterface",
    "LogNotificationProvider",
    "QueueNotificationProvider",
    "get_notification_provider",
    "NotificationDispatcher",
    "get_notification_dispatcher",
]
