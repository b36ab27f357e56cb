"""
Core Data Models for Kesi Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for local storage (camelCase keys, same as the web app)
4. Keep money as Decimal end to end

DESIGN DECISION: A Transaction is frozen. There is no edit and no delete,
so once the service fee is snapshotted it can never drift.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


PHONE_NUMBER_PATTERN = r"^\+?[0-9\s\-()]{7,20}$"

ZERO = Decimal("0")

# Amounts are stored as JSON numbers (binary doubles); 15 significant
# digits is what a double holds exactly.
MAX_AMOUNT_DIGITS = 15
AMOUNT_DECIMAL_PLACES = 2


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    """
    Supported mobile wallets.

    DESIGN DECISION: Closed set. Anything else is rejected at the form.
    """
    KPAY = "KPay"
    WAVE_MONEY = "WaveMoney"


def _coerce_calendar_date(v: Any) -> Any:
    """
    Reduce datetimes and ISO timestamps to a calendar date.

    The browser app stored full timestamps ("2024-05-01T10:20:00.000Z");
    only the date part is meaningful.
    """
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, str) and "T" in v:
        return dt.datetime.fromisoformat(v.replace("Z", "+00:00")).date()
    return v


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Validated form input for a new transaction.

    CRITICAL: A draft has no id and no service fee.
    Both are assigned by the ledger at creation time.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    date: dt.date = Field(
        default_factory=dt.date.today,
        description="Calendar date of the transaction"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the transaction was for"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=MAX_AMOUNT_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Gross amount (pre-fee)"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Income or expense"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Spending/earning category"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name of the counterparty"
    )
    phone_number: str = Field(
        ...,
        min_length=1,
        pattern=PHONE_NUMBER_PATTERN,
        description="Phone number of the counterparty"
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.KPAY,
        description="Wallet used for the payment"
    )

    @field_validator('date', mode='before')
    @classmethod
    def reduce_to_date(cls, v: Any) -> Any:
        return _coerce_calendar_date(v)


class Transaction(BaseModel):
    """
    A recorded transaction.

    CRITICAL: service_fee is a snapshot taken when the transaction was
    created. None means "no fee"; it is never stored as zero.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Opaque unique identifier"
    )
    date: dt.date
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    type: TransactionType
    category: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    payment_method: PaymentMethod
    service_fee: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Fee snapshotted at creation; absent when zero"
    )

    @field_validator('date', mode='before')
    @classmethod
    def reduce_to_date(cls, v: Any) -> Any:
        return _coerce_calendar_date(v)

    @field_validator('service_fee', mode='before')
    @classmethod
    def zero_fee_is_absent(cls, v: Any) -> Any:
        """A stored zero fee is the same as no fee."""
        if v is None:
            return None
        try:
            if Decimal(str(v)) == ZERO:
                return None
        except ArithmeticError:
            pass
        return v

    @property
    def fee(self) -> Decimal:
        """Service fee for arithmetic (absent counts as zero)."""
        return self.service_fee if self.service_fee is not None else ZERO

    @property
    def has_fee(self) -> bool:
        """Whether a fee line should be shown for this transaction."""
        return self.service_fee is not None

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    def to_storage_dict(self) -> dict:
        """
        Convert to the dict layout used by the local store.

        serviceFee is omitted entirely when absent.
        """
        return self.model_dump(by_alias=True, exclude_none=True)


class LedgerAggregates(BaseModel):
    """
    Derived totals over a set of transactions.

    Income fees are deducted (net receivable); expense fees are added
    (total payable).
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    gross_income: Decimal = ZERO
    gross_expenses: Decimal = ZERO
    fees_on_income: Decimal = ZERO
    fees_on_expenses: Decimal = ZERO
    net_income: Decimal = ZERO
    effective_expenses: Decimal = ZERO
    balance: Decimal = ZERO
    transaction_count: int = Field(default=0, ge=0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage form validation.

    Stage 1: Schema validation (types, required fields, formats)
    Stage 2: Semantic validation (future dates, suspicious amounts)
    """

    validated_at: dt.datetime = Field(
        default_factory=dt.datetime.utcnow
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool = Field(
        ...,
        description="Can the draft be added to the ledger?"
    )

    issues: list[ValidationIssue] = Field(default_factory=list)

    # Warnings don't block but should be shown
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[str]:
        """Error messages for one form field."""
        return [
            issue.message for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]
