"""
Ledger Model

The in-memory, ordered collection of all transactions.

INVARIANTS:
- Always sorted by date, most recent first
- Transactions are never edited or removed
- A transaction's service fee is fixed when it is created; later rate
  changes never touch existing transactions
"""

from decimal import Decimal
from typing import Iterable, Iterator, Union

from kesi_ledger.ledger.aggregator import get_aggregates
from kesi_ledger.ledger.errors import TransactionRejectedError
from kesi_ledger.ledger.fees import compute_fee
from kesi_ledger.models.transaction import (
    LedgerAggregates,
    Transaction,
    TransactionDraft,
)


def sort_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Sort by date descending.

    The sort is stable, so transactions on the same date keep the
    order they were given in.
    """
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def create_transaction(
    draft: TransactionDraft,
    current_rate: Union[Decimal, int, float, str],
) -> Transaction:
    """
    Turn a validated draft into a transaction.

    Assigns a fresh id and snapshots the service fee from current_rate.
    """
    return Transaction(
        date=draft.date,
        description=draft.description,
        amount=draft.amount,
        type=draft.type,
        category=draft.category,
        name=draft.name,
        phone_number=draft.phone_number,
        payment_method=draft.payment_method,
        service_fee=compute_fee(draft.amount, current_rate),
    )


class Ledger:
    """
    Ordered collection of transactions.

    The ledger does not persist itself; the orchestrator saves
    ledger.transactions after each change.
    """

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._transactions: list[Transaction] = sort_transactions(transactions)
        self._ids = {t.id for t in self._transactions}

    @property
    def transactions(self) -> list[Transaction]:
        """Copy of the transactions in canonical (date descending) order."""
        return list(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._transactions))

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._ids

    def add(self, transaction: Transaction) -> None:
        """
        Insert a transaction and re-sort.

        The new transaction goes ahead of existing ones on the same date.

        Raises:
            TransactionRejectedError: If a transaction with the same id exists
        """
        if transaction.id in self._ids:
            raise TransactionRejectedError(
                f"Transaction {transaction.id} is already in the ledger"
            )
        self._transactions = sort_transactions([transaction, *self._transactions])
        self._ids.add(transaction.id)

    def aggregates(self) -> LedgerAggregates:
        return get_aggregates(self._transactions)


def add_transaction(
    ledger: Ledger,
    draft: TransactionDraft,
    current_rate: Union[Decimal, int, float, str],
) -> Transaction:
    """
    Create a transaction from a draft at the current rate and add it.

    Returns:
        The stored transaction (with id and service fee)
    """
    transaction = create_transaction(draft, current_rate)
    ledger.add(transaction)
    return transaction
