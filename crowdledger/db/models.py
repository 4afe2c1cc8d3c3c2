"""SQLAlchemy ORM models for the ledger schema.

The ledger owns its schema: ``init_schema`` creates every table below.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Campaign(Base):
    """Campaign record (maps to 'campaigns' table)."""

    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, autoincrement=False)  # Assigned from campaign_count
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    goal = Column(BigInteger, nullable=False)  # micro-STX
    total = Column(BigInteger, nullable=False, default=0)  # micro-STX
    deadline = Column(BigInteger, nullable=False)  # Block height
    owner = Column(String(128), nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE, CLOSED, WITHDRAWN, FINALIZED
    successful = Column(Boolean, nullable=False, default=False)
    created_at_height = Column(BigInteger, nullable=False)
    closed_at_height = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    contributions = relationship("Contribution", back_populates="campaign")
    events = relationship("Event", back_populates="campaign")

    @property
    def active(self) -> bool:
        return self.status == "ACTIVE"

    @property
    def withdrawn(self) -> bool:
        return self.status == "WITHDRAWN"

    @property
    def finalized(self) -> bool:
        return self.status == "FINALIZED"


class Contribution(Base):
    """Contribution record (maps to 'contributions' table).

    ``amount`` is the lifetime contributed total; refunds are tracked in
    ``refunded`` so the record is never deleted.
    """

    __tablename__ = "contributions"
    __table_args__ = (
        UniqueConstraint("campaign_id", "contributor", name="uq_contributions_campaign_contributor"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=False)
    contributor = Column(String(128), nullable=False)
    amount = Column(BigInteger, nullable=False, default=0)
    refunded = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    campaign = relationship("Campaign", back_populates="contributions")

    @property
    def refundable(self) -> int:
        return self.amount - self.refunded


class Contributor(Base):
    """Distinct contributor identities across all campaigns."""

    __tablename__ = "contributors"

    address = Column(String(128), primary_key=True)
    first_campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=False)
    first_seen_height = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class LedgerCounters(Base):
    """Aggregate counters (single row, id=1)."""

    __tablename__ = "ledger_counters"

    id = Column(Integer, primary_key=True)
    campaign_count = Column(Integer, nullable=False, default=0)
    active_campaigns = Column(Integer, nullable=False, default=0)
    total_stx = Column(BigInteger, nullable=False, default=0)
    total_contributors = Column(Integer, nullable=False, default=0)
    escrow_balance = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class ChainState(Base):
    """Current block height as seen by the ledger (single row, id=1)."""

    __tablename__ = "chain_state"

    id = Column(Integer, primary_key=True)
    block_height = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class Event(Base):
    """Ledger event emitted by a committed transaction (maps to 'events' table)."""

    __tablename__ = "events"
    __table_args__ = (
        UniqueConstraint("tx_id", "log_index", name="uq_events_tx_log"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_id = Column(String(32), nullable=False)
    log_index = Column(Integer, nullable=False, default=0)
    block_height = Column(BigInteger, nullable=False)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=True)
    sender = Column(String(128), nullable=False)
    event_name = Column(String(100), nullable=False)  # CampaignCreated, ContributionReceived, etc.
    event_data = Column(Text, nullable=True)  # JSON string
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    campaign = relationship("Campaign", back_populates="events")


class Transfer(Base):
    """STX movement into or out of escrow (maps to 'transfers' table)."""

    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_id = Column(String(32), nullable=False)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=False)
    kind = Column(String(20), nullable=False)  # contribution, withdrawal, refund
    sender = Column(String(128), nullable=False)
    recipient = Column(String(128), nullable=False)
    amount = Column(BigInteger, nullable=False)
    block_height = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
