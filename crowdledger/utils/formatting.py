"""Utility functions for formatting ledger amounts."""

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Optional


# micro-STX to STX conversion factor (10^6)
MICRO_PER_STX = Decimal("1000000")


def micro_to_stx(micro: Optional[int]) -> Decimal:
    """Convert micro-STX to STX.

    Args:
        micro: Amount in micro-STX (smallest unit of STX)

    Returns:
        Decimal: Amount in STX
    """
    if micro is None:
        return Decimal("0")
    return Decimal(micro) / MICRO_PER_STX


def stx_to_micro(stx: str) -> int:
    """Convert an STX amount given as text to micro-STX, truncating extra decimals.

    Raises:
        ValueError: If the text is not a non-negative number
    """
    try:
        value = Decimal(stx)
    except InvalidOperation as e:
        raise ValueError(f"Invalid STX amount: {stx!r}") from e
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid STX amount: {stx!r}")
    return int((value * MICRO_PER_STX).to_integral_value(rounding=ROUND_DOWN))


def format_stx(micro: Optional[int]) -> str:
    """Format micro-STX for display, e.g. ``1500000`` -> ``"1.5 STX"``."""
    stx = micro_to_stx(micro).normalize()
    # normalize() turns 100 into 1E+2
    return f"{stx:f} STX"
