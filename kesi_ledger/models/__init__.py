"""
Data Models Package

This package contains all Pydantic models used in Kesi Ledger.
All data flowing through the system must conform to these schemas.
"""

from kesi_ledger.models.transaction import (
    PHONE_NUMBER_PATTERN,
    LedgerAggregates,
    PaymentMethod,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from kesi_ledger.models.report import (
    REPORT_COLUMNS,
    Report,
    ReportRow,
    format_money,
)
from kesi_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "PHONE_NUMBER_PATTERN",
    "LedgerAggregates",
    "PaymentMethod",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Report models
    "REPORT_COLUMNS",
    "Report",
    "ReportRow",
    "format_money",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
