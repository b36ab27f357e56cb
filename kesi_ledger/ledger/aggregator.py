"""
Ledger Aggregation

DESIGN DECISION: Aggregation is a pure function of the transaction list.
Totals are never cached or stored; every render recomputes them from
the full list, so they cannot drift from the transactions.

Fee treatment is asymmetric, mirroring mobile wallet semantics:
- income:  a received transfer arrives minus the fee (net receivable)
- expense: a sent transfer costs its face value plus the fee (total payable)
"""

from decimal import Decimal
from typing import Iterable

from kesi_ledger.models.transaction import (
    LedgerAggregates,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")


def effective_amount(transaction: Transaction) -> Decimal:
    """
    Amount after the service fee.

    income:  amount - fee
    expense: amount + fee
    """
    if transaction.type == TransactionType.INCOME:
        return transaction.amount - transaction.fee
    return transaction.amount + transaction.fee


def signed_effective_amount(transaction: Transaction) -> Decimal:
    """Effective amount with expenses negative; these sum to the balance."""
    amount = effective_amount(transaction)
    return amount if transaction.type == TransactionType.INCOME else -amount


def get_aggregates(transactions: Iterable[Transaction]) -> LedgerAggregates:
    """
    Compute all ledger totals in a single pass.

    An empty list gives all zeros. Order does not matter.
    """
    gross_income = ZERO
    gross_expenses = ZERO
    fees_on_income = ZERO
    fees_on_expenses = ZERO
    count = 0

    for tx in transactions:
        count += 1
        if tx.type == TransactionType.INCOME:
            gross_income += tx.amount
            fees_on_income += tx.fee
        else:
            gross_expenses += tx.amount
            fees_on_expenses += tx.fee

    net_income = gross_income - fees_on_income
    effective_expenses = gross_expenses + fees_on_expenses

    return LedgerAggregates(
        gross_income=gross_income,
        gross_expenses=gross_expenses,
        fees_on_income=fees_on_income,
        fees_on_expenses=fees_on_expenses,
        net_income=net_income,
        effective_expenses=effective_expenses,
        balance=net_income - effective_expenses,
        transaction_count=count,
    )
