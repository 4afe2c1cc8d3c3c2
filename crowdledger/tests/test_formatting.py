"""Tests for STX amount formatting."""

from decimal import Decimal

import pytest

from crowdledger.utils.formatting import format_stx, micro_to_stx, stx_to_micro


def test_micro_to_stx():
    assert micro_to_stx(1_500_000) == Decimal("1.5")
    assert micro_to_stx(None) == Decimal("0")


@pytest.mark.parametrize(
    "micro,expected",
    [(0, "0 STX"), (1, "0.000001 STX"), (1_500_000, "1.5 STX"), (100_000_000, "100 STX")],
)
def test_format_stx(micro, expected):
    assert format_stx(micro) == expected


def test_stx_to_micro_truncates_extra_decimals():
    assert stx_to_micro("2") == 2_000_000
    assert stx_to_micro("0.0000019") == 1


@pytest.mark.parametrize("text", ["", "abc", "-1", "NaN", "Infinity"])
def test_stx_to_micro_rejects_invalid_text(text):
    with pytest.raises(ValueError):
        stx_to_micro(text)
