"""Ledger exceptions."""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidFeeRateError(LedgerError):
    """Fee rate input is negative or not a number."""

    def __init__(self, raw_value: object, reason: str):
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(f"Invalid fee rate {raw_value!r}: {reason}")


class TransactionRejectedError(LedgerError):
    """A transaction could not be created from the given input."""

    def __init__(self, message: str, issues: Optional[list[dict]] = None):
        self.issues = issues or []
        super().__init__(message)
