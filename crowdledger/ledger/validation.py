"""Argument validation shared by ledger operations."""

from typing import Any

from crowdledger.errors import InvalidArgumentsError, InvalidTextError

# Largest value a BigInteger column stores
MAX_UINT = 2**63 - 1


def require_uint(value: Any, name: str) -> int:
    """Return ``value`` if it is an integer in ``[0, MAX_UINT]``.

    Raises:
        InvalidArgumentsError: If the value is not an unsigned integer
    """
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentsError(f"{name} must be an unsigned integer, got {value!r}")
    if value > MAX_UINT:
        raise InvalidArgumentsError(f"{name} exceeds {MAX_UINT}")
    return value


def require_principal(value: Any, name: str = "sender") -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentsError(f"{name} must be a non-empty principal")
    return value.strip()


def require_ascii(value: Any, name: str, max_length: int) -> str:
    """Return ``value`` if it is ASCII text of at most ``max_length`` characters.

    Raises:
        InvalidTextError: If the text is not ASCII or too long
    """
    if not isinstance(value, str):
        raise InvalidTextError(f"{name} must be text")
    if not value.isascii():
        raise InvalidTextError(f"{name} must be ASCII")
    if len(value) > max_length:
        raise InvalidTextError(f"{name} exceeds {max_length} characters")
    return value
