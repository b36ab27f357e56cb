"""
Audit Models for Kesi Ledger

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every ledger change and every rejected input
2. Debugging information when storage misbehaves
3. A history the user can look back on

DESIGN DECISION: Audit logs are append-only. We never modify them.
The local store keeps only the most recent events (see StorageSettings).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger changes
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Settings
    FEE_RATE_UPDATED = "fee_rate_updated"
    FEE_RATE_REJECTED = "fee_rate_rejected"

    # Reports
    REPORT_GENERATED = "report_generated"
    REPORT_EMPTY = "report_empty"

    # Category suggestion
    CATEGORY_SUGGESTED = "category_suggested"
    CATEGORY_SUGGESTION_FAILED = "category_suggestion_failed"

    # System events
    STORAGE_FAILURE = "storage_failure"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'fee_rate', 'report')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one form submission)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_storage_dict(self) -> dict:
        """JSON-safe dict for the local audit log record."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(tx_id, "expense", "500.00", None, cid)
        event = AuditEventBuilder.fee_rate_updated("1", "2.5", cid)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        transaction_type: str,
        amount: str,
        service_fee: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type.capitalize()} added: {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
                "service_fee": service_fee,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction form rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def fee_rate_updated(
        previous_rate: str,
        new_rate: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FEE_RATE_UPDATED,
            entity_type="fee_rate",
            correlation_id=correlation_id,
            description=f"Service fee rate updated to {new_rate}%",
            details={
                "previous_rate": previous_rate,
                "new_rate": new_rate,
            },
            is_user_action=True,
        )

    @staticmethod
    def fee_rate_rejected(
        raw_value: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FEE_RATE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="fee_rate",
            correlation_id=correlation_id,
            description="Service fee rate input rejected",
            details={
                "raw_value": raw_value,
            },
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def report_generated(
        date_from: str,
        date_to: str,
        row_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            entity_type="report",
            correlation_id=correlation_id,
            description=f"Report generated with {row_count} rows",
            details={
                "date_from": date_from,
                "date_to": date_to,
                "row_count": row_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def report_empty(
        date_from: str,
        date_to: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_EMPTY,
            entity_type="report",
            correlation_id=correlation_id,
            description="No transactions found in the selected date range",
            details={
                "date_from": date_from,
                "date_to": date_to,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_suggested(
        category: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_SUGGESTED,
            entity_type="category",
            correlation_id=correlation_id,
            description=f"Suggested category: {category}",
            details={
                "category": category,
            },
        )

    @staticmethod
    def category_suggestion_failed(
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_SUGGESTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="category",
            correlation_id=correlation_id,
            description="Could not suggest a category",
            error_message=error_message,
        )

    @staticmethod
    def storage_failure(
        operation: str,
        key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILURE,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=key,
            correlation_id=correlation_id,
            description=f"Storage {operation} failed for {key}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
