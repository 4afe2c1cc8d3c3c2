"""Per-transaction execution context."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from crowdledger.config import Config
from crowdledger.db.models import Event, LedgerCounters, Transfer


@dataclass
class TxContext:
    """Everything one transaction may touch.

    Attributes:
        session: Database session of the enclosing transaction
        config: Ledger configuration
        sender: Identity of the caller
        block_height: Block height the transaction executes at
        tx_id: Transaction id shared by all events and transfers it records
        events: Events recorded so far, in emission order
    """

    session: Session
    config: Config
    sender: str
    block_height: int
    tx_id: str
    events: List[Dict[str, Any]] = field(default_factory=list)

    def counters(self) -> LedgerCounters:
        """Load the aggregate counters row."""
        counters = self.session.get(LedgerCounters, 1)
        if counters is None:
            raise RuntimeError("Ledger counters missing. Was the ledger initialized?")
        return counters

    def emit(self, event_name: str, campaign_id: Optional[int], data: Dict[str, Any]) -> None:
        """Record a ledger event for this transaction."""
        log_index = len(self.events)
        self.session.add(
            Event(
                tx_id=self.tx_id,
                log_index=log_index,
                block_height=self.block_height,
                campaign_id=campaign_id,
                sender=self.sender,
                event_name=event_name,
                event_data=json.dumps(data),
            )
        )
        self.events.append(
            {
                "event_type": event_name,
                "tx_id": self.tx_id,
                "log_index": log_index,
                "block_height": self.block_height,
                "campaign_id": campaign_id,
                "sender": self.sender,
                "event_data": data,
            }
        )

    def transfer(self, campaign_id: int, kind: str, sender: str, recipient: str, amount: int) -> None:
        """Record an STX movement into or out of escrow and update the escrow balance."""
        counters = self.counters()
        if recipient == self.config.escrow_principal:
            counters.escrow_balance += amount
        elif sender == self.config.escrow_principal:
            if amount > counters.escrow_balance:
                raise RuntimeError(
                    f"Escrow underflow: paying {amount} with balance {counters.escrow_balance}"
                )
            counters.escrow_balance -= amount
        self.session.add(
            Transfer(
                tx_id=self.tx_id,
                campaign_id=campaign_id,
                kind=kind,
                sender=sender,
                recipient=recipient,
                amount=amount,
                block_height=self.block_height,
            )
        )
