"""Tests for the read-only query surface."""

import pytest

from crowdledger.errors import CampaignInactiveError
from crowdledger.ledger.views import CampaignsSummary

from conftest import DEPLOYER, START_HEIGHT, WALLET_1, WALLET_2, WALLET_3


def test_get_campaign_unknown_id(ledger):
    """Test an unknown id returns None rather than failing."""
    assert ledger.get_campaign(0) is None
    assert ledger.get_campaign_status(0) is None


def test_empty_ledger_summary(ledger):
    """Test all aggregate counters start at zero."""
    assert ledger.get_campaigns_summary() == CampaignsSummary(
        total_camps=0, active_camps=0, total_stx=0, total_contributors=0
    )


def test_campaign_status_counts_down(ledger):
    """Test blocks_remaining tracks the deadline and clamps at zero."""
    campaign_id = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 5, "Countdown")

    status = ledger.get_campaign_status(campaign_id)
    assert status.current_height == START_HEIGHT
    assert status.blocks_remaining == 5
    assert status.deadline_passed is False

    ledger.clock.advance(5)
    status = ledger.get_campaign_status(campaign_id)
    assert status.blocks_remaining == 0
    assert status.deadline_passed is True

    ledger.clock.advance(20)
    assert ledger.get_campaign_status(campaign_id).blocks_remaining == 0


def test_summary_matches_individual_counters(ledger):
    """Test the summary reads the same values as the individual counter queries."""
    first = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 100, "Campaign 1")
    second = ledger.create_campaign(WALLET_1, 500, START_HEIGHT + 100, "Campaign 2")
    ledger.contribute(WALLET_2, first, 300)
    ledger.contribute(WALLET_3, second, 500)
    ledger.withdraw_funds(WALLET_1, second)

    summary = ledger.get_campaigns_summary()

    assert summary.total_camps == ledger.get_campaign_count() == 2
    assert summary.active_camps == ledger.get_active_campaigns() == 1
    assert summary.total_stx == ledger.get_total_stx() == 800
    assert summary.total_contributors == ledger.get_total_contributors() == 2


def test_contribution_defaults_to_zero(ledger, campaign_id):
    """Test a missing contribution reads as 0 and has no record."""
    assert ledger.get_contribution(campaign_id, WALLET_1) == 0
    assert ledger.get_contribution(99, WALLET_1) == 0
    assert ledger.get_contribution_record(campaign_id, WALLET_1) is None


def test_list_campaigns_in_id_order(ledger):
    """Test all campaigns are listed by id regardless of status."""
    ids = [ledger.create_campaign(DEPLOYER, 100, START_HEIGHT + 10, f"C{i}") for i in range(3)]
    ledger.close_campaign(DEPLOYER, ids[1])

    campaigns = ledger.list_campaigns()

    assert [c.id for c in campaigns] == ids
    assert [c.status for c in campaigns] == ["ACTIVE", "CLOSED", "ACTIVE"]


def test_expired_campaigns(ledger):
    """Test only active, past-deadline campaigns short of their goal are expired."""
    unfunded = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 5, "Unfunded")
    funded = ledger.create_campaign(DEPLOYER, 100, START_HEIGHT + 5, "Funded")
    closed = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 5, "Closed")
    running = ledger.create_campaign(DEPLOYER, 1_000, START_HEIGHT + 50, "Running")
    ledger.contribute(WALLET_1, funded, 100)
    ledger.close_campaign(DEPLOYER, closed)

    assert ledger.get_expired_campaigns() == []

    ledger.clock.advance(5)
    expired = ledger.get_expired_campaigns()

    assert [c.id for c in expired] == [unfunded]
    assert running not in [c.id for c in expired]


def test_events_are_recorded_in_order(ledger, campaign_id):
    """Test each committed operation records its event for the campaign."""
    ledger.contribute(WALLET_1, campaign_id, 100)
    ledger.finalize_failure(DEPLOYER, campaign_id)
    ledger.refund(WALLET_1, campaign_id)

    events = ledger.get_campaign_events(campaign_id)

    assert [e.event_name for e in events] == [
        "CampaignCreated",
        "ContributionReceived",
        "CampaignFinalized",
        "RefundIssued",
    ]
    assert events[1].sender == WALLET_1
    assert events[1].event_data == {"contributor": WALLET_1, "amount": 100, "new_total": 100}
    assert events[3].event_data["amount"] == 100
    assert all(e.block_height == START_HEIGHT for e in events)
    assert len({e.tx_id for e in events}) == 4


def test_rejected_transaction_records_no_event(ledger, campaign_id):
    """Test a failed transaction leaves no event behind."""
    ledger.close_campaign(DEPLOYER, campaign_id)
    before = ledger.get_campaign_events(campaign_id)

    with pytest.raises(CampaignInactiveError):
        ledger.contribute(WALLET_1, campaign_id, 100)

    assert ledger.get_campaign_events(campaign_id) == before
