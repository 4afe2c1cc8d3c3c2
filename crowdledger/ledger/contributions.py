"""Contribution ledger - contributions and refund claims."""

from typing import Optional

from sqlalchemy.orm import Session

from crowdledger.db.models import Contribution, Contributor
from crowdledger.errors import (
    AmountOverflowError,
    CampaignInactiveError,
    DeadlinePassedError,
    NothingToRefundError,
    NotFinalizedError,
    ZeroAmountError,
)
from crowdledger.ledger.campaigns import load_campaign
from crowdledger.ledger.context import TxContext
from crowdledger.ledger.validation import MAX_UINT, require_uint
from crowdledger.log import get_logger

logger = get_logger(__name__)


def find_contribution(session: Session, campaign_id: int, contributor: str) -> Optional[Contribution]:
    return (
        session.query(Contribution)
        .filter(
            Contribution.campaign_id == campaign_id,
            Contribution.contributor == contributor,
        )
        .first()
    )


def contribute(ctx: TxContext, campaign_id: int, amount: int) -> bool:
    """Move ``amount`` from the caller into escrow for a campaign.

    Args:
        ctx: Transaction context
        campaign_id: Campaign id
        amount: Amount in micro-STX (> 0)

    Returns:
        True on success
    """
    campaign = load_campaign(ctx, campaign_id)
    require_uint(amount, "amount")
    if not campaign.active:
        raise CampaignInactiveError(f"Campaign {campaign_id} is {campaign.status}")
    if amount == 0:
        raise ZeroAmountError()
    if ctx.block_height >= campaign.deadline and not ctx.config.allow_late_contributions:
        raise DeadlinePassedError(
            f"Campaign {campaign_id} deadline {campaign.deadline} reached (height {ctx.block_height})"
        )

    counters = ctx.counters()
    if campaign.total + amount > MAX_UINT or counters.total_stx + amount > MAX_UINT:
        raise AmountOverflowError(f"Contribution of {amount} to campaign {campaign_id} overflows the totals")

    ctx.transfer(campaign_id, "contribution", ctx.sender, ctx.config.escrow_principal, amount)

    campaign.total += amount
    campaign.successful = campaign.total >= campaign.goal

    counters.total_stx += amount

    # Upsert contribution
    contribution = find_contribution(ctx.session, campaign_id, ctx.sender)
    if contribution is None:
        contribution = Contribution(
            campaign_id=campaign_id,
            contributor=ctx.sender,
            amount=amount,
            refunded=0,
        )
        ctx.session.add(contribution)
    else:
        contribution.amount += amount

    # Global de-duplication: only the first-ever contribution counts
    if ctx.session.get(Contributor, ctx.sender) is None:
        ctx.session.add(
            Contributor(
                address=ctx.sender,
                first_campaign_id=campaign_id,
                first_seen_height=ctx.block_height,
            )
        )
        counters.total_contributors += 1
        logger.debug(f"New contributor: {ctx.sender}")

    ctx.emit(
        "ContributionReceived",
        campaign_id,
        {"contributor": ctx.sender, "amount": amount, "new_total": campaign.total},
    )
    logger.info(f"Contribution to campaign {campaign_id}: {amount} from {ctx.sender}")

    if campaign.successful and campaign.total - amount < campaign.goal:
        logger.info(f"Campaign {campaign_id} reached goal: {campaign.total} >= {campaign.goal}")

    return True


def refund(ctx: TxContext, campaign_id: int) -> int:
    """Return the caller's unrefunded contribution from a finalized campaign.

    The contribution keeps its lifetime amount; the refund is tracked in
    ``refunded`` so a second claim finds nothing left.

    Returns:
        Amount refunded in micro-STX
    """
    campaign = load_campaign(ctx, campaign_id)
    if not campaign.finalized:
        raise NotFinalizedError(f"Campaign {campaign_id} is {campaign.status}")

    contribution = find_contribution(ctx.session, campaign_id, ctx.sender)
    if contribution is None or contribution.refundable <= 0:
        raise NothingToRefundError(f"{ctx.sender} has nothing to refund on campaign {campaign_id}")

    amount = contribution.refundable
    contribution.refunded += amount
    ctx.transfer(campaign_id, "refund", ctx.config.escrow_principal, ctx.sender, amount)

    ctx.emit("RefundIssued", campaign_id, {"contributor": ctx.sender, "amount": amount})
    logger.info(f"Refunded {amount} micro-STX to {ctx.sender} for campaign {campaign_id}")
    return amount
