"""Tests for campaign creation and owner-gated lifecycle operations."""

import pytest

from crowdledger.errors import (
    CampaignInactiveError,
    CampaignNotFoundError,
    DeadlineNotReachedError,
    ErrorCode,
    GoalNotReachedError,
    GoalReachedError,
    InvalidArgumentsError,
    InvalidDeadlineError,
    InvalidGoalError,
    InvalidTextError,
    NotOwnerError,
)
from crowdledger.config import Config
from crowdledger.ledger.core import Ledger

from conftest import DEPLOYER, START_HEIGHT, WALLET_1, WALLET_2


def test_create_assigns_dense_ids_from_zero(ledger):
    """Test campaign ids are assigned sequentially starting at 0."""
    assert ledger.get_campaign_count() == 0

    ids = [
        ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 10, f"Campaign {i}")
        for i in range(5)
    ]

    assert ids == [0, 1, 2, 3, 4]
    assert ledger.get_campaign_count() == 5
    assert ledger.get_active_campaigns() == 5


def test_create_stores_initial_state(ledger):
    """Test a new campaign starts active with zero total and no flags set."""
    campaign_id = ledger.create_campaign(
        WALLET_1, 500_000_000, START_HEIGHT + 200, "Second Campaign", "Some description"
    )

    campaign = ledger.get_campaign(campaign_id)
    assert campaign is not None
    assert campaign.owner == WALLET_1
    assert campaign.goal == 500_000_000
    assert campaign.deadline == START_HEIGHT + 200
    assert campaign.title == "Second Campaign"
    assert campaign.description == "Some description"
    assert campaign.total == 0
    assert campaign.active is True
    assert campaign.successful is False
    assert campaign.withdrawn is False
    assert campaign.finalized is False


def test_create_with_zero_goal_fails(ledger):
    """Test creation with goal == 0 fails with ErrInvalidGoal."""
    with pytest.raises(InvalidGoalError) as exc_info:
        ledger.create_campaign(DEPLOYER, 0, START_HEIGHT + 100, "Invalid")

    assert exc_info.value.code == ErrorCode.INVALID_GOAL
    assert ledger.get_campaign_count() == 0


@pytest.mark.parametrize("deadline", [START_HEIGHT - 1, START_HEIGHT])
def test_create_with_deadline_not_in_future_fails(ledger, deadline):
    """Test creation with deadline <= current height fails with ErrInvalidDeadline."""
    with pytest.raises(InvalidDeadlineError):
        ledger.create_campaign(DEPLOYER, 1_000, deadline, "Invalid")

    assert ledger.get_campaign_count() == 0
    assert ledger.get_active_campaigns() == 0


def test_create_rejects_non_ascii_and_oversized_text(ledger):
    """Test titles and descriptions must be ASCII and within the length limits."""
    with pytest.raises(InvalidTextError):
        ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 5, "Café fund")

    with pytest.raises(InvalidTextError):
        ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 5, "x" * 101)

    with pytest.raises(InvalidTextError):
        ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 5, "ok", "d" * 501)

    assert ledger.get_campaign_count() == 0


def test_create_rejects_negative_goal(ledger):
    """Test a negative goal is not a valid unsigned integer."""
    with pytest.raises(InvalidArgumentsError):
        ledger.create_campaign(DEPLOYER, -5, START_HEIGHT + 5, "Negative")


def test_close_by_owner(ledger, campaign_id):
    """Test the owner can close an active campaign and the active count drops."""
    assert ledger.close_campaign(DEPLOYER, campaign_id) is True

    campaign = ledger.get_campaign(campaign_id)
    assert campaign.active is False
    assert campaign.status == "CLOSED"
    assert ledger.get_active_campaigns() == 0
    assert ledger.get_campaign_count() == 1


def test_close_by_non_owner_fails_and_leaves_state(ledger, campaign_id):
    """Test a non-owner close fails with ErrNotOwner and changes nothing."""
    with pytest.raises(NotOwnerError) as exc_info:
        ledger.close_campaign(WALLET_1, campaign_id)

    assert int(exc_info.value.code) == 103
    assert ledger.get_campaign(campaign_id).active is True
    assert ledger.get_active_campaigns() == 1


def test_repeated_close_does_not_double_decrement(ledger):
    """Test closing an already-inactive campaign fails with ErrInactive."""
    first = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 100, "Campaign 1")
    ledger.create_campaign(WALLET_1, 1_000, START_HEIGHT + 200, "Campaign 2")
    assert ledger.get_active_campaigns() == 2

    ledger.close_campaign(DEPLOYER, first)
    assert ledger.get_active_campaigns() == 1

    with pytest.raises(CampaignInactiveError):
        ledger.close_campaign(DEPLOYER, first)
    with pytest.raises(CampaignInactiveError):
        ledger.finalize_failure(DEPLOYER, first)
    with pytest.raises(CampaignInactiveError):
        ledger.withdraw_funds(DEPLOYER, first)

    assert ledger.get_active_campaigns() == 1


def test_owner_operations_on_unknown_campaign(ledger):
    """Test owner-gated operations on an unknown id fail with ErrNotFound."""
    for operation in (ledger.close_campaign, ledger.withdraw_funds, ledger.finalize_failure):
        with pytest.raises(CampaignNotFoundError):
            operation(DEPLOYER, 42)


def test_not_owner_is_checked_before_inactive(ledger, campaign_id):
    """Test a non-owner gets ErrNotOwner even on a closed campaign."""
    ledger.close_campaign(DEPLOYER, campaign_id)

    with pytest.raises(NotOwnerError):
        ledger.close_campaign(WALLET_2, campaign_id)


def test_withdraw_successful_campaign(ledger):
    """Test the owner withdraws the full total once the goal is met."""
    campaign_id = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 50, "Small goal")
    ledger.contribute(WALLET_1, campaign_id, 600)
    ledger.contribute(WALLET_2, campaign_id, 500)

    amount = ledger.withdraw_funds(DEPLOYER, campaign_id)

    assert amount == 1_100
    campaign = ledger.get_campaign(campaign_id)
    assert campaign.withdrawn is True
    assert campaign.active is False
    assert campaign.finalized is False
    assert ledger.get_active_campaigns() == 0
    assert ledger.get_escrow_balance() == 0
    # Aggregate raised total is not reduced by the payout
    assert ledger.get_total_stx() == 1_100


def test_withdraw_before_goal_fails(ledger, campaign_id):
    """Test withdrawing an unsuccessful campaign fails with ErrGoalNotReached."""
    ledger.contribute(WALLET_1, campaign_id, 100)

    with pytest.raises(GoalNotReachedError):
        ledger.withdraw_funds(DEPLOYER, campaign_id)

    campaign = ledger.get_campaign(campaign_id)
    assert campaign.active is True
    assert campaign.withdrawn is False
    assert ledger.get_active_campaigns() == 1
    assert ledger.get_escrow_balance() == 100


def test_withdraw_by_non_owner_fails(ledger):
    """Test only the owner can withdraw."""
    campaign_id = ledger.create_campaign(DEPLOYER, 100, START_HEIGHT + 50, "Funded")
    ledger.contribute(WALLET_1, campaign_id, 100)

    with pytest.raises(NotOwnerError):
        ledger.withdraw_funds(WALLET_1, campaign_id)

    assert ledger.get_escrow_balance() == 100


def test_finalize_failure_opens_refunds(ledger, campaign_id):
    """Test finalizing an unsuccessful campaign marks it finalized and inactive."""
    ledger.contribute(WALLET_1, campaign_id, 100)

    assert ledger.finalize_failure(DEPLOYER, campaign_id) is True

    campaign = ledger.get_campaign(campaign_id)
    assert campaign.finalized is True
    assert campaign.withdrawn is False
    assert campaign.active is False
    assert ledger.get_active_campaigns() == 0


def test_finalize_successful_campaign_fails(ledger):
    """Test a campaign that met its goal cannot be finalized for refunds."""
    campaign_id = ledger.create_campaign(DEPLOYER, 100, START_HEIGHT + 50, "Funded")
    ledger.contribute(WALLET_1, campaign_id, 100)

    with pytest.raises(GoalReachedError):
        ledger.finalize_failure(DEPLOYER, campaign_id)

    assert ledger.get_campaign(campaign_id).active is True


def test_early_finalize_can_be_disabled():
    """Test finalize before the deadline fails when early abandonment is disabled."""
    ledger = Ledger.in_memory(Config(db_url="sqlite://", allow_early_finalize=False))
    ledger.clock.advance(START_HEIGHT)
    campaign_id = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 5, "Strict")

    with pytest.raises(DeadlineNotReachedError):
        ledger.finalize_failure(DEPLOYER, campaign_id)
    assert ledger.get_active_campaigns() == 1

    ledger.clock.advance(5)
    assert ledger.finalize_failure(DEPLOYER, campaign_id) is True
    assert ledger.get_active_campaigns() == 0


def test_ledgers_are_isolated(ledger, test_config):
    """Test two ledgers in one process do not share counters."""
    other = Ledger.in_memory(test_config)
    other.clock.advance(START_HEIGHT)

    ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 10, "Only here")

    assert ledger.get_campaign_count() == 1
    assert other.get_campaign_count() == 0
