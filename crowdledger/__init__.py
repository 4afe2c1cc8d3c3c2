"""Crowdfunding campaign ledger.

A deterministic state machine maintaining campaigns, per-campaign
contributions, refund accounting and aggregate statistics.
"""

__version__ = "1.0.0"

from crowdledger.config import Config
from crowdledger.errors import ErrorCode, LedgerError
from crowdledger.ledger.core import Ledger
from crowdledger.ledger.response import Response

__all__ = [
    "Config",
    "ErrorCode",
    "Ledger",
    "LedgerError",
    "Response",
]
