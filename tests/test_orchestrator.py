"""
Integration tests for the end-to-end flows.

Everything runs against an in-memory store and a stub model.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from kesi_ledger.agents import CategorySuggestionAgent
from kesi_ledger.audit import AuditLogger, create_correlation_id
from kesi_ledger.models.audit import AuditEventType
from kesi_ledger.orchestrator import FeeRateService, create_app_components
from kesi_ledger.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    LocalAuditStorage,
    LocalLedgerStorage,
)


@pytest.fixture
def components(store, stub_model):
    return create_app_components(
        store=store,
        category_agent=CategorySuggestionAgent(model=stub_model),
    )


def audit_types(components, correlation_id):
    events = components.audit_logger.storage.get_events_by_correlation_id(correlation_id)
    return [e.event_type for e in events]


class TestFeeRateService:
    """Tests for the persisted fee rate."""

    def test_initial_rate_is_default(self, components):
        """Test a fresh store starts at the default 1%."""
        assert components.fee_rates.current_rate == Decimal("1")

    def test_update_persists_and_notifies(self, components, store):
        """Test a valid update is stored and pushed to subscribers."""
        seen = []
        components.fee_rates.subscribe(seen.append)
        ok, rate, message = components.fee_rates.update("2.5")
        assert ok is True
        assert rate == Decimal("2.5")
        assert message == "Service fee rate updated to 2.5%."
        assert seen == [Decimal("2.5")]
        assert store.get_item("kesiLedgerServiceFeeRate") == "2.5"

    def test_same_rate_does_not_notify(self, components):
        """Test listeners only hear about actual changes."""
        seen = []
        components.fee_rates.subscribe(seen.append)
        ok, _, _ = components.fee_rates.update("1")
        assert ok is True
        assert seen == []

    def test_unsubscribe(self, components):
        """Test a removed listener is not called."""
        seen = []
        unsubscribe = components.fee_rates.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        components.fee_rates.update("3")
        assert seen == []

    @pytest.mark.parametrize("raw", ["", "abc", "-1", "101", None])
    def test_invalid_input_keeps_previous_rate(self, components, raw):
        """Test rejected input leaves the rate unchanged."""
        correlation_id = create_correlation_id()
        ok, rate, message = components.fee_rates.update(raw, correlation_id)
        assert ok is False
        assert rate == Decimal("1")
        assert message == "Please enter a valid fee rate between 0 and 100."
        assert audit_types(components, correlation_id) == [AuditEventType.FEE_RATE_REJECTED]

    def test_zero_rate_allowed(self, components):
        """Test 0% is a valid rate."""
        ok, rate, _ = components.fee_rates.update("0")
        assert ok is True
        assert rate == Decimal("0")

    def test_failed_save_keeps_previous_rate(self, storage_settings):
        """Test a write failure is reported and the old rate stays."""
        storage = LocalLedgerStorage(
            InMemoryKeyValueStore(max_bytes=1),
            storage_settings,
            default_fee_rate=Decimal("1"),
        )
        service = FeeRateService(storage, AuditLogger())
        ok, rate, message = service.update("2")
        assert ok is False
        assert rate == Decimal("1")
        assert message == "Could not save the fee rate. Please try again."

    def test_refresh_picks_up_external_change(self, components, store):
        """Test a rate written by another window is noticed."""
        seen = []
        components.fee_rates.subscribe(seen.append)
        store.set_item("kesiLedgerServiceFeeRate", "4")
        assert components.fee_rates.refresh() == Decimal("4")
        assert components.fee_rates.current_rate == Decimal("4")
        assert seen == [Decimal("4")]


class TestTransactionFlow:
    """Tests for adding transactions."""

    def test_submit_valid_form(self, components, valid_form):
        """Test a valid form is added with a fee snapshot and saved."""
        correlation_id = create_correlation_id()
        tx, validation, message = components.transactions.submit(valid_form, correlation_id)

        assert tx is not None
        assert validation.is_valid is True
        assert message == "Expense added successfully."
        assert tx.service_fee == Decimal("5.00")
        assert components.transactions.transactions == [tx]
        assert audit_types(components, correlation_id) == [AuditEventType.TRANSACTION_ADDED]

    def test_submitted_transaction_is_persisted(self, components, store, valid_form):
        """Test a fresh flow over the same store sees the transaction."""
        tx, _, _ = components.transactions.submit(valid_form)
        reloaded = create_app_components(store=store).transactions
        assert [t.id for t in reloaded.transactions] == [tx.id]

    def test_income_message(self, components, valid_form):
        """Test the success message names the type."""
        valid_form["type"] = "income"
        _, _, message = components.transactions.submit(valid_form)
        assert message == "Income added successfully."

    def test_invalid_form_adds_nothing(self, components, valid_form, store):
        """Test a rejected form leaves the ledger and store untouched."""
        valid_form["amount"] = "0"
        correlation_id = create_correlation_id()
        tx, validation, message = components.transactions.submit(valid_form, correlation_id)

        assert tx is None
        assert validation.is_valid is False
        assert "Amount must be positive." in message
        assert components.transactions.transactions == []
        assert store.get_item("kesiLedgerTransactions") is None
        assert audit_types(components, correlation_id) == [AuditEventType.TRANSACTION_REJECTED]

    def test_huge_amount_rejected_without_error(self, components, valid_form, store):
        """Test an amount too large to store is a form error, not a crash."""
        valid_form["amount"] = "1e30"
        tx, validation, message = components.transactions.submit(valid_form)
        assert tx is None
        assert validation.errors_for("amount") == ["Amount is too large."]
        assert "Amount is too large." in message
        assert store.get_item("kesiLedgerTransactions") is None

    def test_fee_uses_rate_at_submission(self, components, valid_form):
        """Test earlier transactions keep their fee after a rate change."""
        first, _, _ = components.transactions.submit(valid_form)
        components.fee_rates.update("2")
        second, _, _ = components.transactions.submit(valid_form)

        assert first.service_fee == Decimal("5.00")
        assert second.service_fee == Decimal("10.00")
        stored = {t.id: t.service_fee for t in components.transactions.reload()}
        assert stored[first.id] == Decimal("5.00")

    def test_zero_rate_gives_no_fee(self, components, valid_form):
        """Test transactions created at 0% have no fee."""
        components.fee_rates.update("0")
        tx, _, _ = components.transactions.submit(valid_form)
        assert tx.service_fee is None
        assert components.transactions.aggregates().effective_expenses == Decimal("500")

    def test_balance_after_income_and_expense(self, components, valid_form):
        """Test the balance reflects fee treatment on both sides."""
        income = dict(valid_form, type="income", amount="1000")
        expense = dict(valid_form, type="expense", amount="500")
        components.transactions.submit(income)
        components.transactions.submit(expense)

        totals = components.transactions.aggregates()
        assert totals.net_income == Decimal("990.00")
        assert totals.effective_expenses == Decimal("505.00")
        assert totals.balance == Decimal("485.00")

    def test_newest_first_ordering(self, components, valid_form):
        """Test the list is most recent first, with new entries ahead on ties."""
        first, _, _ = components.transactions.submit(valid_form)
        older, _, _ = components.transactions.submit(dict(valid_form, date=date(2024, 5, 1)))
        latest, _, _ = components.transactions.submit(valid_form)

        ids = [t.id for t in components.transactions.transactions]
        assert ids == [latest.id, first.id, older.id]

    def test_failed_save_still_adds_in_memory(self, valid_form, stub_model):
        """Test the user is warned when the store is full."""
        components = create_app_components(
            store=InMemoryKeyValueStore(max_bytes=64),
            category_agent=CategorySuggestionAgent(model=stub_model),
        )
        tx, _, message = components.transactions.submit(valid_form)
        assert tx is not None
        assert message == (
            "Expense added successfully. Warning: it could not be saved to local storage."
        )
        assert len(components.transactions.transactions) == 1

    def test_preview_fee(self, components):
        """Test the form preview uses the current rate."""
        assert components.transactions.preview_fee("250") == Decimal("2.50")
        assert components.transactions.preview_fee(None) == Decimal("0.00")
        components.fee_rates.update("2")
        assert components.transactions.preview_fee("250") == Decimal("5.00")


class TestReportFlow:
    """Tests for report export."""

    def test_export_with_data(self, components, valid_form):
        """Test a report over a populated range."""
        components.transactions.submit(valid_form)
        correlation_id = create_correlation_id()
        report, message = components.reports.export(
            date(2024, 5, 1),
            date(2024, 5, 31),
            correlation_id,
        )
        assert report.has_data is True
        assert message == "Report ready with 1 transactions."
        assert audit_types(components, correlation_id) == [AuditEventType.REPORT_GENERATED]

    def test_export_without_data(self, components):
        """Test an empty range is a notice, not an error."""
        correlation_id = create_correlation_id()
        report, message = components.reports.export(
            date(2024, 5, 1),
            date(2024, 5, 31),
            correlation_id,
        )
        assert report is not None
        assert report.has_data is False
        assert message == "No transactions found in the selected date range."
        assert audit_types(components, correlation_id) == [AuditEventType.REPORT_EMPTY]

    def test_export_inverted_range(self, components):
        """Test an inverted range is rejected with a message."""
        report, message = components.reports.export(date(2024, 5, 31), date(2024, 5, 1))
        assert report is None
        assert "after" in message

    def test_export_missing_bound(self, components):
        """Test a missing bound is rejected."""
        report, message = components.reports.export(None, date(2024, 5, 1))
        assert report is None
        assert message == "Please select a valid date range."


class TestCategoryFlow:
    """Tests for category suggestions through the orchestrator."""

    def test_suggestion(self, components):
        """Test a successful suggestion."""
        correlation_id = create_correlation_id()
        category, message = asyncio.run(
            components.categories.suggest("Vegetables and rice", correlation_id)
        )
        assert category == "Groceries"
        assert message == "Suggested category: Groceries"
        assert audit_types(components, correlation_id) == [AuditEventType.CATEGORY_SUGGESTED]

    def test_failure_is_a_notice(self, store, make_stub_model):
        """Test a model failure does not raise."""
        components = create_app_components(
            store=store,
            category_agent=CategorySuggestionAgent(
                model=make_stub_model(error=RuntimeError("offline"))
            ),
        )
        correlation_id = create_correlation_id()
        category, message = asyncio.run(
            components.categories.suggest("Lunch", correlation_id)
        )
        assert category is None
        assert message.startswith("Could not suggest a category.")
        assert audit_types(components, correlation_id) == [
            AuditEventType.CATEGORY_SUGGESTION_FAILED
        ]

    def test_empty_description(self, components):
        """Test an empty description is refused without a model call."""
        category, message = asyncio.run(components.categories.suggest(""))
        assert category is None
        assert "description" in message


class TestCreateAppComponents:
    """Tests for component wiring."""

    def test_default_store_is_json_file(self, tmp_path, stub_model, valid_form):
        """Test data_dir places the ledger file."""
        components = create_app_components(
            data_dir=tmp_path,
            category_agent=CategorySuggestionAgent(model=stub_model),
        )
        components.transactions.submit(valid_form)
        store = JsonFileKeyValueStore(tmp_path / "ledger.json")
        assert "kesiLedgerTransactions" in store.keys()
        assert "kesiLedgerAuditLog" in store.keys()

    def test_undecodable_ledger_file_starts_empty(self, tmp_path, stub_model):
        """Test a corrupted ledger file does not stop the app from starting."""
        (tmp_path / "ledger.json").write_bytes(b'{"kesiLedgerTransactions": "\xff\xfe"}')
        components = create_app_components(
            data_dir=tmp_path,
            category_agent=CategorySuggestionAgent(model=stub_model),
        )
        assert components.fee_rates.current_rate == Decimal("1")
        assert components.transactions.transactions == []

    def test_audit_storage_shares_store(self, components):
        """Test the audit log lives in the same store."""
        assert isinstance(components.audit_logger.storage, LocalAuditStorage)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
