from typing import Optional

from .interface import MessageQueueInterface
from .rabbitmq_async import RabbitMQClient

_message_queue: Optional[MessageQueueInterface] = None


def get_message_queue() -> MessageQueueInterface:
    """Process-wide RabbitMQ publisher, connected on first publish."""
    global _message_queue
    if _message_queue is None:
        _message_queue = RabbitMQClient()
    return _message_queue


async def close_message_queue() -> None:
    """Close the shared publisher (application and worker shutdown)."""
    global _message_queue
    if _message_queue is not None:
        await _message_queue.disconnect()
        _message_queue = None
