"""Tests for the block clock and the Stacks node client."""

import httpx
import pytest

from crowdledger.chain.client import StacksClient
from crowdledger.config import Config
from crowdledger.ledger.core import Ledger


def test_clock_starts_at_initial_height(test_config):
    ledger = Ledger.in_memory(test_config)
    assert ledger.clock.current_height() == 0


def test_clock_advance(ledger):
    """Test mining blocks moves the height forward."""
    start = ledger.clock.current_height()

    assert ledger.clock.advance() == start + 1
    assert ledger.clock.advance(4) == start + 5
    assert ledger.clock.advance(0) == start + 5

    with pytest.raises(ValueError):
        ledger.clock.advance(-1)


def test_clock_only_moves_forward(ledger):
    """Test an older tip is ignored."""
    assert ledger.clock.set_height(100) == 100
    assert ledger.clock.set_height(50) == 100
    assert ledger.clock.current_height() == 100

    with pytest.raises(ValueError):
        ledger.clock.set_height(-3)


def _client(handler):
    config = Config(stacks_api_url="http://stacks.test")
    return StacksClient(config, transport=httpx.MockTransport(handler))


def test_get_tip_height():
    """Test the tip height is read from /v2/info."""
    def handler(request):
        assert request.url.path == "/v2/info"
        return httpx.Response(200, json={"stacks_tip_height": 158234, "burn_block_height": 870000})

    with _client(handler) as client:
        assert client.get_tip_height() == 158234


def test_get_tip_height_http_error():
    """Test a node error surfaces as ValueError."""
    def handler(request):
        return httpx.Response(503, text="unavailable")

    with _client(handler) as client:
        with pytest.raises(ValueError, match="Failed to get chain info"):
            client.get_tip_height()


@pytest.mark.parametrize("payload", [{}, {"stacks_tip_height": "12"}, {"stacks_tip_height": -1}])
def test_get_tip_height_invalid_payload(payload):
    """Test a missing or malformed height is rejected."""
    with _client(lambda request: httpx.Response(200, json=payload)) as client:
        with pytest.raises(ValueError, match="Invalid stacks_tip_height"):
            client.get_tip_height()


def test_sync_ledger_height_from_node(ledger):
    """Test the node tip can drive the ledger clock."""
    with _client(lambda request: httpx.Response(200, json={"stacks_tip_height": 500})) as client:
        ledger.clock.set_height(client.get_tip_height())

    assert ledger.clock.current_height() == 500
