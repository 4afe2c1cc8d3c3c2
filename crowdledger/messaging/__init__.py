"""Messaging module for RabbitMQ event notification."""

from crowdledger.messaging.publisher import EventPublisher, build_event_message
from crowdledger.messaging.rabbitmq import RabbitMQConnection, RabbitMQPublisher
from crowdledger.messaging.routing import RoutingKey, get_routing_key_for_event
from crowdledger.messaging.schema import EventType, LedgerEventMessage

__all__ = [
    "EventPublisher",
    "build_event_message",
    "RabbitMQConnection",
    "RabbitMQPublisher",
    "RoutingKey",
    "get_routing_key_for_event",
    "EventType",
    "LedgerEventMessage",
]
