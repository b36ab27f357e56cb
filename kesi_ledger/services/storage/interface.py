"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Keep the browser-style key-value layout (two string records)
2. Use in-memory storage for testing
3. Swap the JSON file for another local backend later
4. Keep ledger logic decoupled from storage implementation

There are two layers:
- KeyValueStore: raw string get/set, like browser localStorage
- LedgerStorageInterface: typed load/save of transactions and fee rate

The typed layer NEVER raises on read/write problems. It logs them and
falls back to an empty list or the default rate.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID

from kesi_ledger.models.audit import AuditEvent
from kesi_ledger.models.transaction import Transaction


class KeyValueStore(ABC):
    """
    String-keyed, string-valued store.

    Implementations raise StorageError subclasses on failure;
    callers decide how to degrade.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a value under key, replacing any previous value.

        Raises:
            QuotaExceededError: If the store would grow past its limit
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently stored."""
        pass


class LedgerStorageInterface(ABC):
    """
    Typed persistence for the ledger.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load_transactions(self) -> list[Transaction]:
        """
        Load all stored transactions.

        Returns:
            Transactions sorted by date descending. Empty list if nothing
            is stored or the stored record cannot be read.
        """
        pass

    @abstractmethod
    def save_transactions(self, transactions: list[Transaction]) -> bool:
        """
        Replace the stored transaction list.

        Returns:
            True if saved, False if the write failed (already logged)
        """
        pass

    @abstractmethod
    def load_fee_rate(self) -> Decimal:
        """
        Load the service fee rate (percent).

        Returns:
            The stored rate, or the default when absent or unreadable
        """
        pass

    @abstractmethod
    def save_fee_rate(self, rate: Decimal) -> bool:
        """
        Store the service fee rate (percent).

        Returns:
            True if saved, False if the write failed (already logged)
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one form submission).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptedDataError(StorageError):
    """Stored data could not be parsed."""
    pass


class QuotaExceededError(StorageError):
    """The store is full."""
    pass
