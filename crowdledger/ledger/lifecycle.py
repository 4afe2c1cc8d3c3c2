"""Campaign lifecycle state machine.

A campaign leaves ACTIVE exactly once. Every terminal state has no outgoing
edges, so a second close/withdraw/finalize is rejected before any counter is
touched.
"""

from enum import Enum
from typing import Dict, FrozenSet

from crowdledger.db.models import Campaign
from crowdledger.errors import CampaignInactiveError
from crowdledger.ledger.context import TxContext


class CampaignStatus(str, Enum):
    """Campaign lifecycle states."""

    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    WITHDRAWN = "WITHDRAWN"
    FINALIZED = "FINALIZED"


TRANSITIONS: Dict[CampaignStatus, FrozenSet[CampaignStatus]] = {
    CampaignStatus.ACTIVE: frozenset(
        {CampaignStatus.CLOSED, CampaignStatus.WITHDRAWN, CampaignStatus.FINALIZED}
    ),
    CampaignStatus.CLOSED: frozenset(),
    CampaignStatus.WITHDRAWN: frozenset(),
    CampaignStatus.FINALIZED: frozenset(),
}


def can_transition(current: CampaignStatus, target: CampaignStatus) -> bool:
    return target in TRANSITIONS[current]


def check_transition(campaign: Campaign, target: CampaignStatus) -> None:
    """Reject an edge the transition table does not allow.

    Raises:
        CampaignInactiveError: If the campaign cannot move to ``target``
    """
    current = CampaignStatus(campaign.status)
    if not can_transition(current, target):
        raise CampaignInactiveError(
            f"Campaign {campaign.id} is {current.value}, cannot move to {target.value}"
        )


def apply_transition(ctx: TxContext, campaign: Campaign, target: CampaignStatus) -> None:
    """Move a campaign to ``target`` and keep the active-campaign counter in step."""
    check_transition(campaign, target)

    was_active = campaign.status == CampaignStatus.ACTIVE.value
    campaign.status = target.value
    campaign.closed_at_height = ctx.block_height

    if was_active:
        counters = ctx.counters()
        counters.active_campaigns -= 1
