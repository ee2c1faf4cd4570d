"""Unit tests for the RabbitMQ publisher with aio-pika mocked out."""

import asyncio
import json
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import aio_pika

from common.providers.messaging.factory import close_message_queue, get_message_queue
from common.providers.messaging.rabbitmq_async import QueueConfig, RabbitMQClient


@pytest.fixture
def mock_channel():
    channel = MagicMock()
    channel.is_closed = False
    channel.declare_exchange = AsyncMock()
    dlq = MagicMock()
    dlq.bind = AsyncMock()
    channel.declare_queue = AsyncMock(return_value=dlq)
    channel.default_exchange = MagicMock()
    channel.default_exchange.publish = AsyncMock()
    channel.close = AsyncMock()
    return channel


@pytest.fixture
def mock_connection(mock_channel):
    connection = MagicMock()
    connection.is_closed = False
    connection.channel = AsyncMock(return_value=mock_channel)
    connection.close = AsyncMock()
    return connection


@pytest.mark.asyncio
class TestRabbitMQClient:
    async def test_publish_declares_queue_with_dead_lettering_once(
        self, mock_connection, mock_channel
    ):
        with patch(
            "common.providers.messaging.rabbitmq_async.connect_robust",
            AsyncMock(return_value=mock_connection),
        ):
            client = RabbitMQClient()
            assert await client.publish("notifications", {"user_id": 1}) is True
            assert await client.publish("notifications", {"user_id": 2}) is True

        mock_channel.declare_exchange.assert_awaited_once()
        queue_call = mock_channel.declare_queue.await_args_list[-1]
        assert queue_call.args == ("notifications",)
        assert queue_call.kwargs["arguments"] == {
            "x-dead-letter-exchange": f"notifications{QueueConfig.DLX_SUFFIX}",
            "x-dead-letter-routing-key": "notifications",
        }
        # One DLQ plus the queue itself, declared only on first publish
        assert mock_channel.declare_queue.await_count == 2

    async def test_message_is_persistent_json(self, mock_connection, mock_channel):
        with patch(
            "common.providers.messaging.rabbitmq_async.connect_robust",
            AsyncMock(return_value=mock_connection),
        ):
            client = RabbitMQClient()
            await client.publish("notifications", {"user_id": 1, "kind": "x"})

        publish = mock_channel.default_exchange.publish.await_args
        message = publish.args[0]
        assert publish.kwargs["routing_key"] == "notifications"
        assert json.loads(message.body) == {"user_id": 1, "kind": "x"}
        assert message.delivery_mode == aio_pika.DeliveryMode.PERSISTENT
        assert message.content_type == "application/json"

    async def test_publish_fails_when_broker_unreachable(self):
        with patch(
            "common.providers.messaging.rabbitmq_async.connect_robust",
            AsyncMock(side_effect=ConnectionError("refused")),
        ):
            client = RabbitMQClient()
            assert await client.publish("notifications", {"user_id": 1}) is False

    async def test_publish_error_returns_false(self, mock_connection, mock_channel):
        mock_channel.default_exchange.publish = AsyncMock(side_effect=RuntimeError("nack"))
        with patch(
            "common.providers.messaging.rabbitmq_async.connect_robust",
            AsyncMock(return_value=mock_connection),
        ):
            client = RabbitMQClient()
            assert await client.publish("notifications", {"user_id": 1}) is False

    async def test_disconnect(self, mock_connection, mock_channel):
        with patch(
            "common.providers.messaging.rabbitmq_async.connect_robust",
            AsyncMock(return_value=mock_connection),
        ):
            client = RabbitMQClient()
            await client.connect()
            await client.disconnect()

        mock_channel.close.assert_awaited_once()
        mock_connection.close.assert_awaited_once()

    async def test_concurrent_publishes_share_one_connection(
        self, mock_connection, mock_channel
    ):
        connect = AsyncMock(return_value=mock_connection)
        with patch("common.providers.messaging.rabbitmq_async.connect_robust", connect):
            client = RabbitMQClient()
            results = await asyncio.gather(
                *(client.publish("notifications", {"user_id": i}) for i in range(5))
            )

        assert all(results)
        connect.assert_awaited_once()
        assert mock_channel.default_exchange.publish.await_count == 5

    async def test_reconnects_after_channel_closed(self, mock_connection, mock_channel):
        connect = AsyncMock(return_value=mock_connection)
        with patch("common.providers.messaging.rabbitmq_async.connect_robust", connect):
            client = RabbitMQClient()
            await client.publish("notifications", {"user_id": 1})
            mock_channel.is_closed = True
            await client.publish("notifications", {"user_id": 2})

        assert connect.await_count == 2


@pytest.mark.asyncio
class TestMessageQueueFactory:
    async def test_shared_instance_until_closed(self):
        first = get_message_queue()
        assert get_message_queue() is first

        with patch.object(first, "disconnect", AsyncMock()) as disconnect:
            await close_message_queue()

        disconnect.assert_awaited_once()
        assert get_message_queue() is not first
        await close_message_queue()
