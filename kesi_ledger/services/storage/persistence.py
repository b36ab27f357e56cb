"""
Ledger Persistence Adapter

Maps the typed ledger onto two string records in a KeyValueStore:

    kesiLedgerTransactions    JSON array of transactions (camelCase keys)
    kesiLedgerServiceFeeRate  string-encoded decimal, e.g. "1" or "2.5"

The layout matches the browser version of the app, so a ledger exported
from localStorage can be dropped into the JSON file as-is.

CRITICAL: Nothing here raises on storage problems. Read failures fall
back to an empty list / the default rate, write failures return False.
Every failure is logged.
"""

import json
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from kesi_ledger.config import StorageSettings, get_settings
from kesi_ledger.ledger.errors import InvalidFeeRateError
from kesi_ledger.ledger.fees import parse_fee_rate
from kesi_ledger.ledger.ledger import sort_transactions
from kesi_ledger.models.audit import AuditEvent
from kesi_ledger.models.transaction import Transaction
from kesi_ledger.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    LedgerStorageInterface,
    StorageError,
)


def _json_default(value: Any) -> Any:
    """Encode Decimals as JSON numbers and dates as ISO strings."""
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_transactions(transactions: list[Transaction]) -> str:
    """Transactions to the JSON text stored under the transactions key."""
    records = [tx.to_storage_dict() for tx in transactions]
    return json.dumps(records, default=_json_default, ensure_ascii=False)


def deserialize_transactions(raw: str) -> tuple[list[Transaction], int]:
    """
    Parse the stored JSON text.

    JSON numbers are read as Decimal so amounts survive the round trip
    exactly. Records that fail validation are skipped.

    Returns:
        (transactions, number_of_skipped_records)

    Raises:
        ValueError: If the text is not a JSON array
    """
    data = json.loads(raw, parse_float=Decimal)
    if not isinstance(data, list):
        raise ValueError("Stored transactions are not a JSON array")

    transactions = []
    skipped = 0
    for record in data:
        try:
            transactions.append(Transaction.model_validate(record))
        except ValidationError:
            skipped += 1
    return transactions, skipped


class LocalLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage on top of any KeyValueStore.

    Both records are independent: a broken transactions record does not
    affect the fee rate, and vice versa.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[StorageSettings] = None,
        default_fee_rate: Optional[Decimal] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().storage
        self._default_fee_rate = (
            default_fee_rate
            if default_fee_rate is not None
            else get_settings().app.default_fee_rate
        )
        self._logger = structlog.get_logger(__name__)

    @property
    def default_fee_rate(self) -> Decimal:
        return self._default_fee_rate

    def load_transactions(self) -> list[Transaction]:
        key = self._settings.transactions_key
        try:
            raw = self._store.get_item(key)
        except StorageError as e:
            self._logger.error("transactions_load_failed", key=key, error=str(e))
            return []

        if raw is None:
            return []

        try:
            transactions, skipped = deserialize_transactions(raw)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            self._logger.error("transactions_corrupted", key=key, error=str(e))
            return []

        if skipped:
            self._logger.warning(
                "transactions_records_skipped",
                key=key,
                skipped=skipped,
                loaded=len(transactions),
            )

        return sort_transactions(transactions)

    def save_transactions(self, transactions: list[Transaction]) -> bool:
        key = self._settings.transactions_key
        try:
            self._store.set_item(key, serialize_transactions(transactions))
        except StorageError as e:
            self._logger.error(
                "transactions_save_failed",
                key=key,
                count=len(transactions),
                error=str(e),
            )
            return False
        return True

    def load_fee_rate(self) -> Decimal:
        key = self._settings.fee_rate_key
        try:
            raw = self._store.get_item(key)
        except StorageError as e:
            self._logger.error("fee_rate_load_failed", key=key, error=str(e))
            return self._default_fee_rate

        if raw is None:
            return self._default_fee_rate

        try:
            return parse_fee_rate(raw)
        except InvalidFeeRateError as e:
            self._logger.error("fee_rate_corrupted", key=key, error=str(e))
            return self._default_fee_rate

    def save_fee_rate(self, rate: Decimal) -> bool:
        key = self._settings.fee_rate_key
        try:
            self._store.set_item(key, str(rate))
        except StorageError as e:
            self._logger.error("fee_rate_save_failed", key=key, error=str(e))
            return False
        return True


class LocalAuditStorage(AuditStorageInterface):
    """
    Audit log kept as a JSON array under one key.

    Only the newest audit_log_limit events are kept.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[StorageSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().storage
        self._logger = structlog.get_logger(__name__)

    def _load_records(self) -> list[dict]:
        raw = self._store.get_item(self._settings.audit_log_key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            self._logger.error("audit_log_corrupted", error=str(e))
            return []
        return data if isinstance(data, list) else []

    def _load_events(self) -> list[AuditEvent]:
        events = []
        for record in self._load_records():
            try:
                events.append(AuditEvent.model_validate(record))
            except ValidationError:
                continue
        return events

    def append_event(self, event: AuditEvent) -> bool:
        limit = self._settings.audit_log_limit
        if limit == 0:
            return True

        try:
            records = self._load_records()
            records.append(event.to_storage_dict())
            records = records[-limit:]
            self._store.set_item(
                self._settings.audit_log_key,
                json.dumps(records, ensure_ascii=False),
            )
        except StorageError as e:
            self._logger.error(
                "audit_append_failed",
                event_id=str(event.event_id),
                error=str(e),
            )
            return False
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = self._load_events()
        except StorageError as e:
            self._logger.error("audit_load_failed", error=str(e))
            return []
        return [e for e in events if e.correlation_id == correlation_id]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._load_events()
        except StorageError as e:
            self._logger.error("audit_load_failed", error=str(e))
            return []
        return list(reversed(events))[:limit]
