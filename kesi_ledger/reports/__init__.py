"""Report filtering and export data."""

from kesi_ledger.reports.filter import (
    InvalidDateRangeError,
    build_report,
    describe_range,
    filter_by_range,
    to_report_row,
)

__all__ = [
    "InvalidDateRangeError",
    "build_report",
    "describe_range",
    "filter_by_range",
    "to_report_row",
]
