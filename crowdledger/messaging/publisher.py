"""Publisher for sending committed ledger events to RabbitMQ."""

from typing import Any, Dict, Optional

from crowdledger.config import Config
from crowdledger.log import get_logger
from crowdledger.messaging.rabbitmq import RabbitMQConnection, RabbitMQPublisher
from crowdledger.messaging.schema import LedgerEventMessage

logger = get_logger(__name__)


def build_event_message(contract: str, event: Dict[str, Any]) -> LedgerEventMessage:
    """Build an event message from an event recorded by a transaction.

    Args:
        contract: Contract principal that recorded the event
        event: Event dict as recorded by the transaction context

    Returns:
        Validated event message
    """
    return LedgerEventMessage(contract=contract, **event)


class EventPublisher:
    """Publisher for ledger events to RabbitMQ."""

    def __init__(self, config: Config):
        """Initialize event publisher.

        Args:
            config: Configuration object
        """
        self.config = config
        self._connection: Optional[RabbitMQConnection] = None
        self._publisher: Optional[RabbitMQPublisher] = None
        self._events_published = 0

    def connect(self) -> None:
        """Establish connection to RabbitMQ."""
        self._connection = RabbitMQConnection(
            **self.config.get_rabbitmq_connection_params(),
            max_retries=self.config.rabbitmq_connect_retries,
        )
        self._connection.connect()
        self._publisher = RabbitMQPublisher(self._connection, self.config.rabbitmq_exchange)
        self._publisher.enable_confirm_delivery()
        logger.info("Event publisher connected to RabbitMQ")

    def close(self) -> None:
        """Close the connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            self._publisher = None
        logger.info(f"Event publisher closed. Total events published: {self._events_published}")

    def ensure_connected(self) -> None:
        """Ensure publisher is connected."""
        if self._connection is None or self._publisher is None:
            self.connect()

    def publish_event(self, message: LedgerEventMessage) -> bool:
        """Publish a ledger event.

        Args:
            message: Event message

        Returns:
            True if published successfully
        """
        self.ensure_connected()

        success = self._publisher.publish_event(message)

        if success:
            self._events_published += 1
            logger.debug(f"Published {message.event_type.value} event: tx={message.tx_id}")
        else:
            logger.error(f"Failed to publish {message.event_type.value} event: tx={message.tx_id}")

        return success

    @property
    def events_published_count(self) -> int:
        """Get the number of events published."""
        return self._events_published
