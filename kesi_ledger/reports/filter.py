"""
Report Filter

DESIGN DECISION: Selection is DETERMINISTIC and read-only.
It picks transactions whose date falls in an inclusive range and derives
per-row effective amounts with the same rule the balance uses, so the
rows of a report always add up to the balance of the rows.

An inverted range (from after to) is rejected instead of silently
producing an empty report.
"""

import calendar
from datetime import date
from typing import Iterable, Optional

from kesi_ledger.config import get_settings
from kesi_ledger.ledger.aggregator import effective_amount, get_aggregates
from kesi_ledger.ledger.errors import LedgerError
from kesi_ledger.models.report import Report, ReportRow
from kesi_ledger.models.transaction import Transaction


class InvalidDateRangeError(LedgerError):
    """Date range is missing a bound or is inverted."""
    pass


def _check_range(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from is None or date_to is None:
        raise InvalidDateRangeError("Please select a valid date range.")
    if date_from > date_to:
        raise InvalidDateRangeError(
            f"Start date {date_from.isoformat()} is after end date {date_to.isoformat()}."
        )


def filter_by_range(
    transactions: Iterable[Transaction],
    date_from: Optional[date],
    date_to: Optional[date],
) -> list[Transaction]:
    """
    Transactions dated within [date_from, date_to], both inclusive.

    Input order is preserved.

    Raises:
        InvalidDateRangeError: If a bound is missing or date_from > date_to
    """
    _check_range(date_from, date_to)
    return [t for t in transactions if date_from <= t.date <= date_to]


def to_report_row(transaction: Transaction) -> ReportRow:
    """Export fields for one transaction."""
    return ReportRow(
        transaction_id=transaction.id,
        date=transaction.date,
        type=transaction.type,
        description=transaction.description,
        category=transaction.category,
        name=transaction.name,
        phone_number=transaction.phone_number,
        payment_method=transaction.payment_method,
        amount=transaction.amount,
        service_fee=transaction.fee,
        effective_amount=effective_amount(transaction),
        has_fee=transaction.has_fee,
    )


def build_report(
    transactions: Iterable[Transaction],
    date_from: Optional[date],
    date_to: Optional[date],
    title: Optional[str] = None,
) -> Report:
    """
    Build export data for a date range.

    The result may have no rows; check report.has_data before rendering.

    Raises:
        InvalidDateRangeError: If a bound is missing or date_from > date_to
    """
    selected = filter_by_range(transactions, date_from, date_to)

    return Report(
        title=title or get_settings().app.report_title,
        date_from=date_from,
        date_to=date_to,
        rows=[to_report_row(t) for t in selected],
        totals=get_aggregates(selected),
    )


def describe_range(date_from: date, date_to: date) -> str:
    """Short human description of a date range, e.g. "in May 2024"."""
    if date_from == date_to:
        return f"on {date_from.strftime('%d %b %Y')}"

    same_month = (date_from.year, date_from.month) == (date_to.year, date_to.month)
    if same_month:
        last_day = calendar.monthrange(date_to.year, date_to.month)[1]
        if date_from.day == 1 and date_to.day == last_day:
            return f"in {date_from.strftime('%B %Y')}"
        return f"from {date_from.strftime('%d')} to {date_to.strftime('%d %b %Y')}"
    elif date_from.year == date_to.year:
        return f"from {date_from.strftime('%d %b')} to {date_to.strftime('%d %b %Y')}"
    return f"from {date_from.strftime('%d %b %Y')} to {date_to.strftime('%d %b %Y')}"
