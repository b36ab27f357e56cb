"""Ledger model: transactions, fees and derived balances."""

from kesi_ledger.ledger.aggregator import (
    effective_amount,
    get_aggregates,
    signed_effective_amount,
)
from kesi_ledger.ledger.errors import (
    InvalidFeeRateError,
    LedgerError,
    TransactionRejectedError,
)
from kesi_ledger.ledger.fees import (
    compute_fee,
    parse_fee_rate,
    preview_fee,
    round2,
)
from kesi_ledger.ledger.ledger import (
    Ledger,
    add_transaction,
    create_transaction,
    sort_transactions,
)

__all__ = [
    # Aggregation
    "effective_amount",
    "get_aggregates",
    "signed_effective_amount",
    # Errors
    "InvalidFeeRateError",
    "LedgerError",
    "TransactionRejectedError",
    # Fees
    "compute_fee",
    "parse_fee_rate",
    "preview_fee",
    "round2",
    # Ledger
    "Ledger",
    "add_transaction",
    "create_transaction",
    "sort_transactions",
]
