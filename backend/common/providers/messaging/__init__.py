from .constants import QueueName
from .interface import MessageQueueInterface
from .messages import SubscriptionNotificationMessage
from .rabbitmq_async import RabbitMQClient
from .factory import close_message_queue, get_message_queue

__all__ = [
    "QueueName",
    "MessageQueueInterface",
    "SubscriptionNotificationMessage",
    "RabbitMQClient",
    "close_message_queue",
    "get_message_queue",
]
