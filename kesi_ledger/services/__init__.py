"""Services package."""

from kesi_ledger.services.storage import (
    AuditStorageInterface,
    CorruptedDataError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    LedgerStorageInterface,
    LocalAuditStorage,
    LocalLedgerStorage,
    QuotaExceededError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "CorruptedDataError",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LedgerStorageInterface",
    "LocalAuditStorage",
    "LocalLedgerStorage",
    "QuotaExceededError",
    "StorageError",
]
