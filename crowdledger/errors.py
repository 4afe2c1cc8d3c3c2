"""Ledger error taxonomy.

Each failure carries a stable numeric code, so callers of the call interface
can branch on ``err(code)`` without parsing messages.
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    """Failure codes returned as ``err(code)``."""

    NOT_FOUND = 100
    INACTIVE = 101
    GOAL_NOT_REACHED = 102
    NOT_OWNER = 103
    INVALID_GOAL = 104
    INVALID_DEADLINE = 105
    ZERO_AMOUNT = 106
    DEADLINE_PASSED = 107
    NOT_FINALIZED = 108
    NOTHING_TO_REFUND = 109
    GOAL_REACHED = 110
    DEADLINE_NOT_REACHED = 111
    INVALID_TEXT = 112
    UNKNOWN_FUNCTION = 113
    INVALID_ARGUMENTS = 114
    AMOUNT_OVERFLOW = 115


class LedgerError(Exception):
    """Base class for rejected ledger transactions."""

    code: ErrorCode

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)


class CampaignNotFoundError(LedgerError):
    """Campaign id is unknown."""

    code = ErrorCode.NOT_FOUND


class CampaignInactiveError(LedgerError):
    """Campaign is no longer active."""

    code = ErrorCode.INACTIVE


class GoalNotReachedError(LedgerError):
    """Campaign has not reached its goal."""

    code = ErrorCode.GOAL_NOT_REACHED


class NotOwnerError(LedgerError):
    """Caller is not the campaign owner."""

    code = ErrorCode.NOT_OWNER


class InvalidGoalError(LedgerError):
    """Goal must be greater than zero."""

    code = ErrorCode.INVALID_GOAL


class InvalidDeadlineError(LedgerError):
    """Deadline must be after the current block height."""

    code = ErrorCode.INVALID_DEADLINE


class ZeroAmountError(LedgerError):
    """Contribution amount must be greater than zero."""

    code = ErrorCode.ZERO_AMOUNT


class DeadlinePassedError(LedgerError):
    """Campaign deadline has passed."""

    code = ErrorCode.DEADLINE_PASSED


class NotFinalizedError(LedgerError):
    """Campaign has not been finalized for refunds."""

    code = ErrorCode.NOT_FINALIZED


class NothingToRefundError(LedgerError):
    """Caller has no refundable contribution."""

    code = ErrorCode.NOTHING_TO_REFUND


class GoalReachedError(LedgerError):
    """Campaign reached its goal and cannot be finalized as a failure."""

    code = ErrorCode.GOAL_REACHED


class DeadlineNotReachedError(LedgerError):
    """Campaign deadline has not been reached yet."""

    code = ErrorCode.DEADLINE_NOT_REACHED


class InvalidTextError(LedgerError):
    """Text must be ASCII and within the configured length."""

    code = ErrorCode.INVALID_TEXT


class UnknownFunctionError(LedgerError):
    """Call names an unknown function."""

    code = ErrorCode.UNKNOWN_FUNCTION


class InvalidArgumentsError(LedgerError):
    """Call arguments are missing or of the wrong type."""

    code = ErrorCode.INVALID_ARGUMENTS


class AmountOverflowError(LedgerError):
    """Amount would exceed the largest storable balance."""

    code = ErrorCode.AMOUNT_OVERFLOW
