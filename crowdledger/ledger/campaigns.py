"""Campaign store - creation and owner-gated lifecycle operations."""

from crowdledger.db.models import Campaign
from crowdledger.errors import (
    CampaignNotFoundError,
    DeadlineNotReachedError,
    GoalNotReachedError,
    GoalReachedError,
    InvalidDeadlineError,
    InvalidGoalError,
    NotOwnerError,
)
from crowdledger.ledger.context import TxContext
from crowdledger.ledger.lifecycle import CampaignStatus, apply_transition, check_transition
from crowdledger.ledger.validation import require_ascii, require_uint
from crowdledger.log import get_logger

logger = get_logger(__name__)


def load_campaign(ctx: TxContext, campaign_id: int) -> Campaign:
    """Load a campaign or fail with ErrNotFound.

    Args:
        ctx: Transaction context
        campaign_id: Campaign id

    Returns:
        Campaign record
    """
    require_uint(campaign_id, "campaign_id")
    campaign = ctx.session.get(Campaign, campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
    return campaign


def _load_owned(ctx: TxContext, campaign_id: int, target: CampaignStatus) -> Campaign:
    """Load a campaign the caller owns and that may move to ``target``.

    Checks run in the order: exists, owner, active.
    """
    campaign = load_campaign(ctx, campaign_id)
    if campaign.owner != ctx.sender:
        raise NotOwnerError(f"{ctx.sender} is not the owner of campaign {campaign_id}")
    check_transition(campaign, target)
    return campaign


def create_campaign(
    ctx: TxContext,
    goal: int,
    deadline: int,
    title: str,
    description: str = "",
) -> int:
    """Create a campaign owned by the caller.

    Args:
        ctx: Transaction context
        goal: Funding target in micro-STX (> 0)
        deadline: Block height after which contributions stop (> current height)
        title: ASCII title
        description: ASCII description

    Returns:
        The new campaign id
    """
    require_uint(goal, "goal")
    require_uint(deadline, "deadline")
    if goal == 0:
        raise InvalidGoalError()
    if deadline <= ctx.block_height:
        raise InvalidDeadlineError(
            f"Deadline {deadline} is not after current height {ctx.block_height}"
        )
    title = require_ascii(title, "title", ctx.config.title_max_length)
    description = require_ascii(description, "description", ctx.config.description_max_length)

    counters = ctx.counters()
    campaign_id = counters.campaign_count

    campaign = Campaign(
        id=campaign_id,
        title=title,
        description=description,
        goal=goal,
        total=0,
        deadline=deadline,
        owner=ctx.sender,
        status=CampaignStatus.ACTIVE.value,
        successful=False,
        created_at_height=ctx.block_height,
    )
    ctx.session.add(campaign)

    counters.campaign_count += 1
    counters.active_campaigns += 1

    ctx.emit(
        "CampaignCreated",
        campaign_id,
        {"owner": ctx.sender, "goal": goal, "deadline": deadline, "title": title},
    )
    logger.info(f"Created campaign {campaign_id}: goal={goal} deadline={deadline} owner={ctx.sender}")
    return campaign_id


def close_campaign(ctx: TxContext, campaign_id: int) -> bool:
    """Close an active campaign unconditionally (owner only)."""
    campaign = _load_owned(ctx, campaign_id, CampaignStatus.CLOSED)
    apply_transition(ctx, campaign, CampaignStatus.CLOSED)

    ctx.emit("CampaignClosed", campaign_id, {"total": campaign.total, "goal": campaign.goal})
    logger.info(f"Campaign {campaign_id} closed by owner")
    return True


def withdraw_funds(ctx: TxContext, campaign_id: int) -> int:
    """Pay the raised total of a successful campaign out to its owner.

    Args:
        ctx: Transaction context
        campaign_id: Campaign id

    Returns:
        Amount withdrawn in micro-STX
    """
    campaign = _load_owned(ctx, campaign_id, CampaignStatus.WITHDRAWN)
    if campaign.total < campaign.goal:
        raise GoalNotReachedError(
            f"Campaign {campaign_id} raised {campaign.total} of {campaign.goal}"
        )

    amount = campaign.total
    ctx.transfer(campaign_id, "withdrawal", ctx.config.escrow_principal, campaign.owner, amount)
    apply_transition(ctx, campaign, CampaignStatus.WITHDRAWN)

    ctx.emit("FundsWithdrawn", campaign_id, {"owner": campaign.owner, "amount": amount})
    logger.info(f"Campaign {campaign_id} withdrawn: {amount} micro-STX to {campaign.owner}")
    return amount


def finalize_failure(ctx: TxContext, campaign_id: int) -> bool:
    """Close out a campaign that missed its goal and open it to refunds.

    The owner may abandon before the deadline unless ``allow_early_finalize``
    is disabled.
    """
    campaign = _load_owned(ctx, campaign_id, CampaignStatus.FINALIZED)
    if campaign.total >= campaign.goal:
        raise GoalReachedError(f"Campaign {campaign_id} reached its goal; withdraw instead")
    if ctx.block_height < campaign.deadline and not ctx.config.allow_early_finalize:
        raise DeadlineNotReachedError(
            f"Campaign {campaign_id} deadline {campaign.deadline} not reached "
            f"(height {ctx.block_height})"
        )

    apply_transition(ctx, campaign, CampaignStatus.FINALIZED)

    ctx.emit(
        "CampaignFinalized",
        campaign_id,
        {"total": campaign.total, "goal": campaign.goal, "early": ctx.block_height < campaign.deadline},
    )
    logger.info(f"Campaign {campaign_id} finalized as failed: {campaign.total} < {campaign.goal}")
    return True
