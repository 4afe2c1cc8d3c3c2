"""Query surface - read-only projections of ledger state."""

from typing import List, Optional

from sqlalchemy.orm import Session

from crowdledger.db.models import Campaign, ChainState, Event, LedgerCounters
from crowdledger.ledger.contributions import find_contribution
from crowdledger.ledger.lifecycle import CampaignStatus
from crowdledger.ledger.views import (
    CampaignRecord,
    CampaignStatusView,
    CampaignsSummary,
    ContributionRecord,
    LedgerEventRecord,
)


def get_block_height(session: Session) -> int:
    state = session.get(ChainState, 1)
    return state.block_height if state else 0


def _counters(session: Session) -> LedgerCounters:
    counters = session.get(LedgerCounters, 1)
    if counters is None:
        raise RuntimeError("Ledger counters missing. Was the ledger initialized?")
    return counters


def get_campaign(session: Session, campaign_id: int) -> Optional[CampaignRecord]:
    """Get the full campaign record, or None if the id is unknown."""
    campaign = session.get(Campaign, campaign_id)
    if campaign is None:
        return None
    return CampaignRecord.model_validate(campaign)


def get_campaign_status(session: Session, campaign_id: int) -> Optional[CampaignStatusView]:
    """Get derived status fields for a campaign.

    ``blocks_remaining`` is ``max(0, deadline - current height)``.

    Args:
        session: Database session
        campaign_id: Campaign id

    Returns:
        Status view, or None if the id is unknown
    """
    campaign = session.get(Campaign, campaign_id)
    if campaign is None:
        return None

    height = get_block_height(session)
    return CampaignStatusView(
        id=campaign.id,
        status=campaign.status,
        active=campaign.active,
        successful=campaign.successful,
        withdrawn=campaign.withdrawn,
        finalized=campaign.finalized,
        total=campaign.total,
        goal=campaign.goal,
        deadline=campaign.deadline,
        current_height=height,
        blocks_remaining=max(0, campaign.deadline - height),
        deadline_passed=height >= campaign.deadline,
    )


def get_campaign_count(session: Session) -> int:
    return _counters(session).campaign_count


def get_active_campaigns(session: Session) -> int:
    return _counters(session).active_campaigns


def get_total_stx(session: Session) -> int:
    return _counters(session).total_stx


def get_total_contributors(session: Session) -> int:
    return _counters(session).total_contributors


def get_escrow_balance(session: Session) -> int:
    return _counters(session).escrow_balance


def get_campaigns_summary(session: Session) -> CampaignsSummary:
    """Read all four aggregate counters from the same row."""
    counters = _counters(session)
    return CampaignsSummary(
        total_camps=counters.campaign_count,
        active_camps=counters.active_campaigns,
        total_stx=counters.total_stx,
        total_contributors=counters.total_contributors,
    )


def get_contribution(session: Session, campaign_id: int, contributor: str) -> int:
    """Get the cumulative amount ``contributor`` gave to a campaign (0 if none)."""
    contribution = find_contribution(session, campaign_id, contributor)
    return contribution.amount if contribution else 0


def get_contribution_record(
    session: Session, campaign_id: int, contributor: str
) -> Optional[ContributionRecord]:
    contribution = find_contribution(session, campaign_id, contributor)
    if contribution is None:
        return None
    return ContributionRecord.model_validate(contribution)


def list_campaigns(session: Session) -> List[CampaignRecord]:
    campaigns = session.query(Campaign).order_by(Campaign.id).all()
    return [CampaignRecord.model_validate(c) for c in campaigns]


def get_expired_campaigns(session: Session) -> List[CampaignRecord]:
    """Find active campaigns whose deadline passed without reaching the goal.

    These are the campaigns an owner should finalize so contributors can
    claim refunds.
    """
    height = get_block_height(session)
    campaigns = (
        session.query(Campaign)
        .filter(
            Campaign.status == CampaignStatus.ACTIVE.value,
            Campaign.deadline <= height,
            Campaign.total < Campaign.goal,
        )
        .order_by(Campaign.id)
        .all()
    )
    return [CampaignRecord.model_validate(c) for c in campaigns]


def get_campaign_events(session: Session, campaign_id: int) -> List[LedgerEventRecord]:
    """Get events recorded for a campaign in commit order."""
    events = (
        session.query(Event)
        .filter(Event.campaign_id == campaign_id)
        .order_by(Event.id)
        .all()
    )
    return [LedgerEventRecord.model_validate(e) for e in events]
