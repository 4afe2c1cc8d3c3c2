"""Shared fixtures for ledger tests."""

import pytest

from crowdledger.config import Config
from crowdledger.ledger.core import Ledger

# Clarinet devnet principals
DEPLOYER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
WALLET_1 = "ST1SJ3DTE5DN7X54YDH5D64R3BCB6A2AG2ZQ8YPD5"
WALLET_2 = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
WALLET_3 = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"

START_HEIGHT = 10


@pytest.fixture
def test_config():
    """Test configuration."""
    return Config(db_url="sqlite://")


@pytest.fixture
def ledger(test_config):
    """Isolated in-memory ledger at block height START_HEIGHT."""
    ledger = Ledger.in_memory(test_config)
    ledger.clock.advance(START_HEIGHT)
    return ledger


@pytest.fixture
def campaign_id(ledger):
    """A campaign owned by DEPLOYER: goal 1000 STX, deadline 100 blocks out."""
    return ledger.create_campaign(
        DEPLOYER,
        goal=1_000_000_000,
        deadline=START_HEIGHT + 100,
        title="Test Campaign",
        description="A campaign for tests",
    )
