"""Form validation package."""

from kesi_ledger.validation.validator import FIELD_MESSAGES, TransactionValidator

__all__ = ["FIELD_MESSAGES", "TransactionValidator"]
