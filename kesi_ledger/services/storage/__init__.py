"""
Storage Services Package

Provides abstract interfaces and concrete implementations for local storage.
The ledger is kept in a browser-style key-value store; the backend is swappable.
"""

from kesi_ledger.services.storage.interface import (
    AuditStorageInterface,
    CorruptedDataError,
    KeyValueStore,
    LedgerStorageInterface,
    QuotaExceededError,
    StorageError,
)
from kesi_ledger.services.storage.local_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)
from kesi_ledger.services.storage.persistence import (
    LocalAuditStorage,
    LocalLedgerStorage,
    deserialize_transactions,
    serialize_transactions,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    "LedgerStorageInterface",
    # Exceptions
    "CorruptedDataError",
    "QuotaExceededError",
    "StorageError",
    # Key-value backends
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Ledger persistence
    "LocalAuditStorage",
    "LocalLedgerStorage",
    "deserialize_transactions",
    "serialize_transactions",
]
