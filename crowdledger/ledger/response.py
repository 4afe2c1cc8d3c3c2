"""Call results: ``ok(value)`` or ``err(code)``."""

from typing import Any, Optional

from pydantic import BaseModel

from crowdledger.errors import ErrorCode


class Response(BaseModel):
    """Result of a ledger call.

    Read-only calls that look up a record return ``ok`` with ``value=None``
    when the record does not exist.
    """

    ok: bool
    value: Any = None
    error: Optional[ErrorCode] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: Any = True) -> "Response":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str = "") -> "Response":
        return cls(ok=False, error=code, message=message or None)

    def expect_ok(self) -> Any:
        """Return the value, or raise if the call failed."""
        if not self.ok:
            raise AssertionError(f"Expected ok, got err({int(self.error)}): {self.message}")
        return self.value

    def expect_err(self) -> ErrorCode:
        """Return the error code, or raise if the call succeeded."""
        if self.ok:
            raise AssertionError(f"Expected err, got ok({self.value!r})")
        return self.error
