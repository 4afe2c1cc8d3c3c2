"""Block height oracle."""

from crowdledger.chain.client import StacksClient
from crowdledger.chain.clock import BlockClock

__all__ = [
    "BlockClock",
    "StacksClient",
]
