"""Pydantic models for ledger event messages."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from crowdledger.messaging.routing import get_routing_key_for_event


class EventType(str, Enum):
    """Event type enumeration."""
    CAMPAIGN_CREATED = "CampaignCreated"
    CONTRIBUTION_RECEIVED = "ContributionReceived"
    CAMPAIGN_CLOSED = "CampaignClosed"
    FUNDS_WITHDRAWN = "FundsWithdrawn"
    CAMPAIGN_FINALIZED = "CampaignFinalized"
    REFUND_ISSUED = "RefundIssued"


class BaseMessage(BaseModel):
    """Base message model with common fields."""
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LedgerEventMessage(BaseMessage):
    """Event message for a committed ledger transaction.

    Attributes:
        message_type: Always "event" for event messages
        event_type: Type of ledger event
        contract: Contract principal that recorded the event
        tx_id: Transaction id
        log_index: Position of the event within the transaction
        block_height: Block height the transaction executed at
        campaign_id: Campaign the event belongs to
        sender: Caller of the transaction
        event_data: Event payload
    """
    message_type: Literal["event"] = "event"
    event_type: EventType
    contract: str
    tx_id: str
    log_index: int
    block_height: int
    campaign_id: Optional[int] = None
    sender: str
    event_data: Dict[str, Any]

    def to_routing_key(self) -> str:
        """Get the routing key for this event."""
        return get_routing_key_for_event(self.event_type.value)

