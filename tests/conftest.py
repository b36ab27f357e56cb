"""
Shared fixtures for Kesi Ledger tests.

No test touches the network or the real data directory:
storage is in-memory (or under tmp_path) and the Gemini model is a stub.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from kesi_ledger.config import AppSettings, StorageSettings
from kesi_ledger.models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionType,
)
from kesi_ledger.services.storage import InMemoryKeyValueStore, LocalLedgerStorage


class StubResponse:
    def __init__(self, text: str):
        self.text = text


class StubModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text: str = '{"suggestedCategory": "Groceries"}', error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def generate_content_async(self, prompt: str) -> StubResponse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return StubResponse(self.text)


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        max_transaction_amount=Decimal("1000000"),
        future_date_tolerance_days=0,
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def ledger_storage(store, storage_settings) -> LocalLedgerStorage:
    return LocalLedgerStorage(store, storage_settings, default_fee_rate=Decimal("1"))


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""

    def _make(
        amount="100",
        tx_type=TransactionType.EXPENSE,
        tx_date=date(2024, 5, 15),
        service_fee=None,
        **overrides,
    ) -> Transaction:
        fields = dict(
            date=tx_date,
            description="Test transaction",
            amount=Decimal(str(amount)),
            type=tx_type,
            category="General",
            name="Aung Aung",
            phone_number="09 123 456 789",
            payment_method=PaymentMethod.KPAY,
            service_fee=Decimal(str(service_fee)) if service_fee is not None else None,
        )
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest.fixture
def valid_form() -> dict:
    """Form input as the UI submits it (camelCase keys)."""
    return {
        "date": date(2024, 5, 15),
        "description": "Market shopping",
        "amount": "500",
        "type": "expense",
        "category": "Groceries",
        "name": "Daw Mya",
        "phoneNumber": "+95 9 123 456 789",
        "paymentMethod": "KPay",
    }


@pytest.fixture
def stub_model() -> StubModel:
    return StubModel()


@pytest.fixture
def make_stub_model():
    """Factory for stub models with a given response text or error."""
    return StubModel
