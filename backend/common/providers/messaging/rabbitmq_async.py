import asyncio
import json
from typing import Any, Dict, Optional, Set
from urllib.parse import quote

import aio_pika
from aio_pika import connect_robust, Message
from aio_pika.abc import AbstractChannel, AbstractRobustConnection
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger
from .interface import MessageQueueInterface

logger = get_logger(__name__)

propagator = TraceContextTextMapPropagator()


# Constants
class QueueConfig:
    DLQ_MESSAGE_TTL_MS = 86400000  # 24 hours
    DLQ_MAX_LENGTH = 10000
    DLX_SUFFIX = ".dlx"
    DLQ_SUFFIX = ".dlq"


class RabbitMQClient(MessageQueueInterface):
    """
    Publisher-side RabbitMQ client.

    One instance is shared by every notification task in the process, so
    connecting and queue declaration are serialized behind a lock. Queues
    are declared with a dead letter queue the first time they are used.
    """

    def __init__(self):
        self.connection: Optional[AbstractRobustConnection] = None
        self.channel: Optional[AbstractChannel] = None
        self.host = settings.rabbitmq_host
        self.port = settings.rabbitmq_port
        self.username = settings.rabbitmq_username
        self.password = settings.rabbitmq_password
        self.vhost = settings.rabbitmq_vhost
        self._declared_queues: Set[str] = set()
        self._lock = asyncio.Lock()

    @property
    def url(self) -> str:
        return f"amqp://{quote(self.username)}:{quote(self.password)}@{self.host}:{self.port}/{self.vhost}"

    def _channel_open(self) -> bool:
        return self.channel is not None and not self.channel.is_closed

    async def _setup_dead_letter_queue(self, queue_name: str) -> Dict[str, str]:
        """Set up dead letter exchange and queue for a given queue."""
        dlx_name = f"{queue_name}{QueueConfig.DLX_SUFFIX}"
        dlq_name = f"{queue_name}{QueueConfig.DLQ_SUFFIX}"

        await self.channel.declare_exchange(
            name=dlx_name, type=aio_pika.ExchangeType.DIRECT, durable=True
        )

        # Undeliverable notifications are kept for a day, then dropped
        dlq = await self.channel.declare_queue(
            dlq_name,
            durable=True,
            arguments={
                "x-message-ttl": QueueConfig.DLQ_MESSAGE_TTL_MS,
                "x-max-length": QueueConfig.DLQ_MAX_LENGTH,
            },
        )
        await dlq.bind(dlx_name, routing_key=queue_name)
        logger.info(f"Declared dead letter exchange/queue: {dlx_name}/{dlq_name}")

        return {
            "x-dead-letter-exchange": dlx_name,
            "x-dead-letter-routing-key": queue_name,
        }

    async def connect(self) -> bool:
        try:
            self.connection = await connect_robust(self.url)
            self.channel = await self.connection.channel()
            # A new channel has not seen our declarations yet
            self._declared_queues.clear()

            logger.info(
                "Connected to RabbitMQ",
                extra={"host": self.host, "port": self.port},
            )
            return True
        except Exception as e:
            logger.error(f"Failed to connect to RabbitMQ: {e}")
            return False

    async def disconnect(self) -> None:
        try:
            if self._channel_open():
                await self.channel.close()
            if self.connection and not self.connection.is_closed:
                await self.connection.close()
            logger.info("Disconnected from RabbitMQ")
        except Exception as e:
            logger.error(f"Error disconnecting from RabbitMQ: {e}")
        finally:
            self.channel = None
            self.connection = None

    async def _ensure_queue(self, queue: str) -> bool:
        async with self._lock:
            if not self._channel_open() and not await self.connect():
                return False
            if queue in self._declared_queues:
                return True
            return await self._declare(queue, durable=True, dlq_enabled=True)

    async def _declare(self, queue: str, durable: bool, dlq_enabled: bool) -> bool:
        try:
            queue_arguments = {}
            if dlq_enabled:
                queue_arguments.update(await self._setup_dead_letter_queue(queue))

            await self.channel.declare_queue(
                queue,
                durable=durable,
                arguments=queue_arguments or None,
            )
            self._declared_queues.add(queue)

            logger.info(f"Declared queue: {queue} (DLQ enabled: {dlq_enabled})")
            return True
        except Exception as e:
            logger.error(f"Failed to declare queue {queue}: {e}")
            return False

    async def publish(
        self, queue: str, message: Dict[str, Any], exchange: str = ""
    ) -> bool:
        if not await self._ensure_queue(queue):
            return False

        try:
            # Delivery service continues the trace of the request that caused it
            headers: Dict[str, Any] = {}
            propagator.inject(headers)

            msg = Message(
                body=json.dumps(message, default=str).encode(),
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                content_type="application/json",
                headers=headers,
            )

            target = (
                await self.channel.get_exchange(exchange)
                if exchange
                else self.channel.default_exchange
            )
            await target.publish(msg, routing_key=queue, mandatory=True)

            logger.debug(f"Published message to queue {queue}")
            return True
        except Exception as e:
            logger.error(
                f"Failed to publish message to {queue}: {e}",
                extra={"queue": queue},
            )
            return False

    async def declare_queue(
        self, queue: str, durable: bool = True, dlq_enabled: bool = True
    ) -> bool:
        async with self._lock:
            if not self._channel_open() and not await self.connect():
                return False
            return await self._declare(queue, durable, dlq_enabled)
