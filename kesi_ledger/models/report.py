"""
Report Models

A Report is the data behind an export: a title, the date range it covers,
and one row per matching transaction. Layout and styling belong to the
presentation layer; these models only carry values and their
2-decimal-place text form.
"""

import csv
import datetime as dt
import io
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from kesi_ledger.models.transaction import (
    LedgerAggregates,
    PaymentMethod,
    TransactionType,
)


REPORT_COLUMNS = [
    "Date",
    "Type",
    "Description",
    "Category",
    "Name",
    "Phone",
    "Method",
    "Amount",
    "Fee",
    "Net Amount",
]


def format_money(value: Decimal) -> str:
    """Two decimal places, no thousands separator."""
    return f"{value:.2f}"


class ReportRow(BaseModel):
    """One exported transaction."""
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    date: dt.date
    type: TransactionType
    description: str
    category: str
    name: str
    phone_number: str
    payment_method: PaymentMethod
    amount: Decimal
    service_fee: Decimal = Field(
        ...,
        ge=0,
        description="Fee for the row (zero when the transaction has none)"
    )
    effective_amount: Decimal = Field(
        ...,
        description="amount - fee for income, amount + fee for expense"
    )
    has_fee: bool = False

    def to_cells(self) -> list[str]:
        """Row values as text, in REPORT_COLUMNS order."""
        return [
            self.date.strftime("%Y-%m-%d"),
            self.type.value,
            self.description,
            self.category,
            self.name,
            self.phone_number,
            self.payment_method.value,
            format_money(self.amount),
            format_money(self.service_fee) if self.has_fee else "",
            format_money(self.effective_amount),
        ]


class Report(BaseModel):
    """
    Export data for a date range.

    CRITICAL: Callers must check has_data and show a "no data"
    notice instead of rendering an empty table.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    date_from: dt.date
    date_to: dt.date
    generated_at: dt.datetime = Field(default_factory=dt.datetime.now)
    rows: list[ReportRow] = Field(default_factory=list)
    totals: LedgerAggregates = Field(default_factory=LedgerAggregates)

    @property
    def has_data(self) -> bool:
        return len(self.rows) > 0

    @property
    def subtitle(self) -> str:
        """Date range line printed under the title."""
        return (
            f"Report for: {self.date_from.strftime('%B %d, %Y')} - "
            f"{self.date_to.strftime('%B %d, %Y')}"
        )

    def file_name(self, extension: str = "pdf") -> str:
        """Download file name, e.g. Kesi_Ledger_Report_20240501_20240531.pdf"""
        return (
            f"Kesi_Ledger_Report_{self.date_from.strftime('%Y%m%d')}_"
            f"{self.date_to.strftime('%Y%m%d')}.{extension.lstrip('.')}"
        )

    def to_table(self) -> list[list[str]]:
        """Header row followed by one text row per transaction."""
        return [list(REPORT_COLUMNS)] + [row.to_cells() for row in self.rows]

    def to_csv(self) -> str:
        """Render the table as CSV text."""
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([self.title])
        writer.writerow([self.subtitle])
        writer.writerows(self.to_table())
        return buffer.getvalue()
