"""Routing key constants and helpers for RabbitMQ."""

from enum import Enum
from typing import Dict, List


EXCHANGE_TYPE = "topic"

# Dead letter exchange
DLX_EXCHANGE_NAME = "ledger_events.dlx"
DLX_QUEUE_NAME = "dlq.ledger_events"


class RoutingKey(str, Enum):
    """Routing key enumeration."""
    CAMPAIGN_CREATED = "event.campaign_created"
    CONTRIBUTION_RECEIVED = "event.contribution_received"
    CAMPAIGN_CLOSED = "event.campaign_closed"
    FUNDS_WITHDRAWN = "event.funds_withdrawn"
    CAMPAIGN_FINALIZED = "event.campaign_finalized"
    REFUND_ISSUED = "event.refund_issued"


class QueueName(str, Enum):
    """Queue name enumeration."""
    CAMPAIGNS = "queue.campaigns"
    CONTRIBUTIONS = "queue.contributions"
    SETTLEMENTS = "queue.settlements"


# Queue bindings: queue_name -> list of routing keys to bind
QUEUE_BINDINGS: Dict[str, List[str]] = {
    QueueName.CAMPAIGNS.value: [
        RoutingKey.CAMPAIGN_CREATED.value,
        RoutingKey.CAMPAIGN_CLOSED.value,
    ],
    QueueName.CONTRIBUTIONS.value: [RoutingKey.CONTRIBUTION_RECEIVED.value],
    QueueName.SETTLEMENTS.value: [
        RoutingKey.FUNDS_WITHDRAWN.value,
        RoutingKey.CAMPAIGN_FINALIZED.value,
        RoutingKey.REFUND_ISSUED.value,
    ],
}

ALL_EVENT_QUEUES = [queue.value for queue in QueueName]

# Queue properties
QUEUE_MESSAGE_TTL = 604800000  # 7 days in milliseconds
QUEUE_MAX_LENGTH = 100000

_ROUTING_MAP = {
    "CampaignCreated": RoutingKey.CAMPAIGN_CREATED.value,
    "ContributionReceived": RoutingKey.CONTRIBUTION_RECEIVED.value,
    "CampaignClosed": RoutingKey.CAMPAIGN_CLOSED.value,
    "FundsWithdrawn": RoutingKey.FUNDS_WITHDRAWN.value,
    "CampaignFinalized": RoutingKey.CAMPAIGN_FINALIZED.value,
    "RefundIssued": RoutingKey.REFUND_ISSUED.value,
}


def get_routing_key_for_event(event_type: str) -> str:
    """Get the routing key for a given event type.

    Args:
        event_type: Event type string (e.g., "CampaignCreated")

    Returns:
        Routing key string
    """
    return _ROUTING_MAP.get(event_type, "event.unknown")


def get_queue_arguments() -> Dict:
    """Get queue arguments for dead letter handling."""
    return {
        "x-message-ttl": QUEUE_MESSAGE_TTL,
        "x-max-length": QUEUE_MAX_LENGTH,
        "x-dead-letter-exchange": DLX_EXCHANGE_NAME,
        "x-dead-letter-routing-key": "dlq",
    }
