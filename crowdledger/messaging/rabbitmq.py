"""RabbitMQ connection and publish helpers."""

import time
from typing import Dict, Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel
from pika.exceptions import AMQPChannelError, AMQPConnectionError

from crowdledger.log import get_logger
from crowdledger.messaging.routing import (
    ALL_EVENT_QUEUES,
    DLX_EXCHANGE_NAME,
    DLX_QUEUE_NAME,
    EXCHANGE_TYPE,
    QUEUE_BINDINGS,
    get_queue_arguments,
)
from crowdledger.messaging.schema import BaseMessage, LedgerEventMessage

logger = get_logger(__name__)


class RabbitMQConnection:
    """RabbitMQ connection manager with reconnection on demand."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5672,
        user: str = "guest",
        password: str = "guest",
        vhost: str = "/",
        heartbeat: int = 60,
        max_retries: int = 5,
        retry_delay: float = 1.0,
        max_retry_delay: float = 30.0,
    ):
        """Initialize RabbitMQ connection.

        Args:
            host: RabbitMQ host
            port: RabbitMQ port
            user: RabbitMQ username
            password: RabbitMQ password
            vhost: Virtual host
            heartbeat: Heartbeat interval in seconds
            max_retries: Maximum connection retries (-1 for infinite)
            retry_delay: Initial retry delay in seconds
            max_retry_delay: Maximum retry delay in seconds
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.vhost = vhost
        self.heartbeat = heartbeat
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay

        self._connection: Optional[pika.BlockingConnection] = None
        self._channel: Optional[BlockingChannel] = None

    def _get_connection_params(self) -> pika.ConnectionParameters:
        """Get connection parameters."""
        credentials = pika.PlainCredentials(self.user, self.password)
        return pika.ConnectionParameters(
            host=self.host,
            port=self.port,
            virtual_host=self.vhost,
            credentials=credentials,
            heartbeat=self.heartbeat,
            blocked_connection_timeout=300,
        )

    def connect(self) -> None:
        """Establish connection to RabbitMQ with retry logic."""
        retries = 0
        delay = self.retry_delay

        while True:
            try:
                params = self._get_connection_params()
                self._connection = pika.BlockingConnection(params)
                self._channel = self._connection.channel()
                logger.info(f"Connected to RabbitMQ at {self.host}:{self.port}")
                return
            except AMQPConnectionError as e:
                retries += 1
                if self.max_retries != -1 and retries > self.max_retries:
                    logger.error(f"Failed to connect to RabbitMQ after {retries} retries")
                    raise

                logger.warning(f"RabbitMQ connection failed (attempt {retries}): {e}")
                logger.info(f"Retrying in {delay:.1f} seconds...")
                time.sleep(delay)
                delay = min(delay * 2, self.max_retry_delay)

    def ensure_connected(self) -> None:
        """Ensure connection is established, reconnect if needed."""
        if self._connection is None or self._connection.is_closed:
            self.connect()
        elif self._channel is None or self._channel.is_closed:
            self._channel = self._connection.channel()

    @property
    def channel(self) -> BlockingChannel:
        """Get the channel, ensuring connection is established."""
        self.ensure_connected()
        return self._channel

    def close(self) -> None:
        """Close the connection."""
        try:
            if self._channel and self._channel.is_open:
                self._channel.close()
            if self._connection and self._connection.is_open:
                self._connection.close()
            logger.info("RabbitMQ connection closed")
        except (AMQPConnectionError, AMQPChannelError) as e:
            logger.warning(f"Error closing RabbitMQ connection: {e}")

    def setup_exchange_and_queues(self, exchange: str) -> None:
        """Declare the event exchange, the dead letter exchange and all queues.

        Args:
            exchange: Name of the topic exchange ledger events are published to
        """
        channel = self.channel

        channel.exchange_declare(exchange=exchange, exchange_type=EXCHANGE_TYPE, durable=True)
        logger.info(f"Declared exchange: {exchange}")

        channel.exchange_declare(exchange=DLX_EXCHANGE_NAME, exchange_type="direct", durable=True)
        logger.info(f"Declared DLX exchange: {DLX_EXCHANGE_NAME}")

        channel.queue_declare(queue=DLX_QUEUE_NAME, durable=True)
        channel.queue_bind(queue=DLX_QUEUE_NAME, exchange=DLX_EXCHANGE_NAME, routing_key="dlq")
        logger.info(f"Declared DLQ: {DLX_QUEUE_NAME}")

        queue_args = get_queue_arguments()
        for queue_name, routing_keys in QUEUE_BINDINGS.items():
            channel.queue_declare(queue=queue_name, durable=True, arguments=queue_args)
            logger.info(f"Declared queue: {queue_name}")

            for routing_key in routing_keys:
                channel.queue_bind(queue=queue_name, exchange=exchange, routing_key=routing_key)
                logger.info(f"Bound {queue_name} to {routing_key}")

    def get_queue_status(self) -> Dict[str, Dict[str, int]]:
        """Get message and consumer counts of all queues."""
        channel = self.channel
        status = {}

        for queue_name in ALL_EVENT_QUEUES + [DLX_QUEUE_NAME]:
            try:
                result = channel.queue_declare(queue=queue_name, passive=True)
                status[queue_name] = {
                    "message_count": result.method.message_count,
                    "consumer_count": result.method.consumer_count,
                }
            except AMQPChannelError as e:
                logger.warning(f"Failed to get status for queue {queue_name}: {e}")
                status[queue_name] = {"error": str(e)}
                # A failed passive declare closes the channel
                self._channel = None

        return status


class RabbitMQPublisher:
    """Publisher for sending messages to RabbitMQ."""

    def __init__(self, connection: RabbitMQConnection, exchange: str):
        """Initialize publisher.

        Args:
            connection: RabbitMQ connection instance
            exchange: Exchange to publish to
        """
        self.connection = connection
        self.exchange = exchange
        self._confirm_delivery_enabled = False

    def enable_confirm_delivery(self) -> None:
        """Enable publisher confirms for reliable delivery."""
        if not self._confirm_delivery_enabled:
            self.connection.channel.confirm_delivery()
            self._confirm_delivery_enabled = True
            logger.info("Publisher confirms enabled")

    def publish(self, message: BaseMessage, routing_key: str, retry_on_failure: bool = True) -> bool:
        """Publish a message to RabbitMQ.

        Args:
            message: Message to publish (Pydantic model)
            routing_key: Routing key for the message
            retry_on_failure: Whether to reconnect and retry on publish failure

        Returns:
            True if message was published successfully
        """
        body = message.model_dump_json()
        properties = pika.BasicProperties(
            content_type="application/json",
            delivery_mode=2,  # Persistent
        )

        max_attempts = 3 if retry_on_failure else 1

        for attempt in range(max_attempts):
            try:
                self.connection.ensure_connected()
                self.connection.channel.basic_publish(
                    exchange=self.exchange,
                    routing_key=routing_key,
                    body=body,
                    properties=properties,
                )
                logger.debug(f"Published message to {routing_key}")
                return True
            except (AMQPConnectionError, AMQPChannelError) as e:
                logger.warning(f"Publish failed (attempt {attempt + 1}): {e}")
                if attempt < max_attempts - 1:
                    self.connection.connect()

        logger.error(f"Failed to publish message after {max_attempts} attempts")
        return False

    def publish_event(self, message: LedgerEventMessage) -> bool:
        """Publish an event message with automatic routing."""
        return self.publish(message, message.to_routing_key())
