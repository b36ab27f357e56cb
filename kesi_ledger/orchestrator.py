"""
Main Orchestrator for Kesi Ledger

This module ties together all the components and defines the
end-to-end flows the presentation layer calls:
1. Add transaction (form → validate → snapshot fee → add → persist)
2. Fee rate (load → validate input → persist → notify subscribers)
3. Report (date range → filter → report data, or "no data")
4. Category suggestion (description → AI → suggested category)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No transaction is created from invalid input
- The fee rate is read once per submission and passed explicitly
- Storage failures are reported, never raised
- Every step is audited
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Mapping, NamedTuple, Optional
from uuid import UUID

from kesi_ledger.agents import CategorySuggestionAgent, CategorySuggestionError
from kesi_ledger.audit import AuditLogger, create_correlation_id
from kesi_ledger.config import get_settings
from kesi_ledger.ledger import (
    InvalidFeeRateError,
    Ledger,
    add_transaction,
    parse_fee_rate,
    preview_fee,
)
from kesi_ledger.models.report import Report
from kesi_ledger.models.transaction import (
    LedgerAggregates,
    Transaction,
    ValidationResult,
)
from kesi_ledger.reports import InvalidDateRangeError, build_report
from kesi_ledger.services.storage import (
    JsonFileKeyValueStore,
    KeyValueStore,
    LedgerStorageInterface,
    LocalAuditStorage,
    LocalLedgerStorage,
)
from kesi_ledger.validation import TransactionValidator


FeeRateListener = Callable[[Decimal], None]


class FeeRateService:
    """
    Owns the current service fee rate.

    The rate is loaded once and cached. Changes made here are persisted
    and pushed to subscribers; changes made by another process are picked
    up by refresh().
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._rate = storage.load_fee_rate()
        self._listeners: list[FeeRateListener] = []

    @property
    def current_rate(self) -> Decimal:
        return self._rate

    def subscribe(self, listener: FeeRateListener) -> Callable[[], None]:
        """
        Call listener(new_rate) whenever the rate changes.

        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._rate)

    def refresh(self) -> Decimal:
        """Reload the rate from storage, notifying subscribers if it changed."""
        stored = self._storage.load_fee_rate()
        if stored != self._rate:
            self._rate = stored
            self._notify()
        return self._rate

    def update(
        self,
        raw_value: Any,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[bool, Decimal, str]:
        """
        Validate and store a new rate.

        Returns:
            (success, current_rate, message). On failure the previous
            rate stays in effect.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            new_rate = parse_fee_rate(raw_value)
        except InvalidFeeRateError as e:
            if self._audit_logger:
                self._audit_logger.log_fee_rate_rejected(
                    raw_value=str(raw_value),
                    reason=e.reason,
                    correlation_id=correlation_id,
                )
            return (
                False,
                self._rate,
                "Please enter a valid fee rate between 0 and 100.",
            )

        if not self._storage.save_fee_rate(new_rate):
            if self._audit_logger:
                self._audit_logger.log_storage_failure(
                    operation="save_fee_rate",
                    key=get_settings().storage.fee_rate_key,
                    error_message="Fee rate could not be written",
                    correlation_id=correlation_id,
                )
            return False, self._rate, "Could not save the fee rate. Please try again."

        previous = self._rate
        self._rate = new_rate

        if self._audit_logger:
            self._audit_logger.log_fee_rate_updated(
                previous_rate=str(previous),
                new_rate=str(new_rate),
                correlation_id=correlation_id,
            )

        if new_rate != previous:
            self._notify()

        return True, new_rate, f"Service fee rate updated to {new_rate}%."


class TransactionFlow:
    """
    Orchestrates adding transactions.

    Flow:
    1. Validate → two-stage form validation
    2. Create  → id + fee snapshot at the current rate
    3. Add     → ledger re-sorts (date descending)
    4. Save    → persist the full list
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        fee_rates: FeeRateService,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._fee_rates = fee_rates
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger
        self._ledger: Optional[Ledger] = None

    @property
    def ledger(self) -> Ledger:
        """The ledger, loaded from storage on first access."""
        if self._ledger is None:
            self._ledger = Ledger(self._storage.load_transactions())
        return self._ledger

    @property
    def transactions(self) -> list[Transaction]:
        return self.ledger.transactions

    def reload(self) -> Ledger:
        """Drop the in-memory ledger and read it again from storage."""
        self._ledger = None
        return self.ledger

    def aggregates(self) -> LedgerAggregates:
        return self.ledger.aggregates()

    def preview_fee(self, amount: Any) -> Decimal:
        """Fee the form shows for an amount at the current rate."""
        return preview_fee(amount, self._fee_rates.current_rate)

    def validate(self, form: Mapping[str, Any]) -> ValidationResult:
        """Validate without adding (for inline form feedback)."""
        _, result = self._validator.validate(form)
        return result

    def submit(
        self,
        form: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Transaction], ValidationResult, str]:
        """
        Validate form input and add it to the ledger.

        Returns:
            (transaction, validation, message). transaction is None when
            the form was rejected; nothing is added in that case.
        """
        correlation_id = correlation_id or create_correlation_id()

        draft, validation = self._validator.validate(form)
        if draft is None:
            if self._audit_logger:
                self._audit_logger.log_transaction_rejected(
                    issues=[issue.model_dump() for issue in validation.issues],
                    correlation_id=correlation_id,
                )
            return None, validation, self._validator.get_user_friendly_summary(validation)

        transaction = add_transaction(
            self.ledger,
            draft,
            self._fee_rates.current_rate,
        )

        if self._audit_logger:
            self._audit_logger.log_transaction_added(
                transaction_id=transaction.id,
                transaction_type=transaction.type.value,
                amount=f"{transaction.amount:.2f}",
                service_fee=(
                    f"{transaction.service_fee:.2f}" if transaction.has_fee else None
                ),
                correlation_id=correlation_id,
            )

        label = "Income" if transaction.is_income else "Expense"
        message = f"{label} added successfully."

        if not self._storage.save_transactions(self.ledger.transactions):
            if self._audit_logger:
                self._audit_logger.log_storage_failure(
                    operation="save_transactions",
                    key=get_settings().storage.transactions_key,
                    error_message="Transactions could not be written",
                    correlation_id=correlation_id,
                )
            message += " Warning: it could not be saved to local storage."

        return transaction, validation, message


class ReportFlow:
    """
    Orchestrates report exports.

    An empty result is NOT an error: the caller gets a report with
    has_data == False and a "no data" message.
    """

    def __init__(
        self,
        transaction_flow: TransactionFlow,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transaction_flow = transaction_flow
        self._audit_logger = audit_logger

    def export(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Report], str]:
        """
        Build report data for a date range.

        Returns:
            (report, message). report is None when the range is invalid.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            report = build_report(
                self._transaction_flow.transactions,
                date_from,
                date_to,
            )
        except InvalidDateRangeError as e:
            return None, str(e)

        if self._audit_logger:
            self._audit_logger.log_report(
                date_from=date_from.isoformat(),
                date_to=date_to.isoformat(),
                row_count=len(report.rows),
                correlation_id=correlation_id,
            )

        if not report.has_data:
            return report, "No transactions found in the selected date range."

        return report, f"Report ready with {len(report.rows)} transactions."


class CategoryFlow:
    """Wraps the suggestion agent so failures become notices."""

    def __init__(
        self,
        agent: Optional[CategorySuggestionAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._agent = agent or CategorySuggestionAgent()
        self._audit_logger = audit_logger

    async def suggest(
        self,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[str], str]:
        """
        Returns:
            (category, message). category is None on failure; the user
            can still type a category manually.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            suggestion = await self._agent.suggest(description)
        except CategorySuggestionError as e:
            if self._audit_logger:
                self._audit_logger.log_category_suggestion_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None, f"Could not suggest a category. {e}"

        if self._audit_logger:
            self._audit_logger.log_category_suggested(
                category=suggestion.suggested_category,
                correlation_id=correlation_id,
            )
        return (
            suggestion.suggested_category,
            f"Suggested category: {suggestion.suggested_category}",
        )


class LedgerComponents(NamedTuple):
    transactions: TransactionFlow
    fee_rates: FeeRateService
    reports: ReportFlow
    categories: CategoryFlow
    audit_logger: AuditLogger


def create_app_components(
    store: Optional[KeyValueStore] = None,
    data_dir: Optional[Path] = None,
    category_agent: Optional[CategorySuggestionAgent] = None,
) -> LedgerComponents:
    """
    Create all application components.

    Args:
        store: Key-value store to use. Defaults to the JSON file
            configured in StorageSettings (or under data_dir).
        data_dir: Overrides StorageSettings.data_dir for the default store
        category_agent: Overrides the Gemini-backed agent (tests)
    """
    storage_settings = get_settings().storage

    if store is None:
        directory = Path(data_dir) if data_dir is not None else storage_settings.data_dir
        store = JsonFileKeyValueStore(
            directory / storage_settings.file_name,
            max_bytes=storage_settings.max_bytes,
        )

    ledger_storage = LocalLedgerStorage(store, storage_settings)
    audit_logger = AuditLogger(LocalAuditStorage(store, storage_settings))

    fee_rates = FeeRateService(ledger_storage, audit_logger=audit_logger)
    transaction_flow = TransactionFlow(
        ledger_storage,
        fee_rates,
        audit_logger=audit_logger,
    )
    report_flow = ReportFlow(transaction_flow, audit_logger=audit_logger)
    category_flow = CategoryFlow(category_agent, audit_logger=audit_logger)

    return LedgerComponents(
        transactions=transaction_flow,
        fee_rates=fee_rates,
        reports=report_flow,
        categories=category_flow,
        audit_logger=audit_logger,
    )
