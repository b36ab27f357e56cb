"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of every ledger change and rejected input
2. Debugging capability when local storage misbehaves
3. A history the user can look back on

The audit logger:
- Is synchronous, like the rest of the ledger core
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from kesi_ledger.models.audit import AuditEvent, AuditEventBuilder
from kesi_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The local audit record (for user visibility), if storage is given
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_added(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        service_fee: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log a new ledger entry."""
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            service_fee=service_fee,
            correlation_id=correlation_id,
        ))

    def log_transaction_rejected(
        self,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected transaction form."""
        self.log(AuditEventBuilder.transaction_rejected(
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_fee_rate_updated(
        self,
        previous_rate: str,
        new_rate: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.fee_rate_updated(
            previous_rate=previous_rate,
            new_rate=new_rate,
            correlation_id=correlation_id,
        ))

    def log_fee_rate_rejected(
        self,
        raw_value: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.fee_rate_rejected(
            raw_value=raw_value,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_report(
        self,
        date_from: str,
        date_to: str,
        row_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a report export, or the "no data" outcome."""
        if row_count:
            event = AuditEventBuilder.report_generated(
                date_from=date_from,
                date_to=date_to,
                row_count=row_count,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.report_empty(
                date_from=date_from,
                date_to=date_to,
                correlation_id=correlation_id,
            )
        self.log(event)

    def log_category_suggested(
        self,
        category: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.category_suggested(
            category=category,
            correlation_id=correlation_id,
        ))

    def log_category_suggestion_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.category_suggestion_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_storage_failure(
        self,
        operation: str,
        key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_failure(
            operation=operation,
            key=key,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a form submission).
    Pass it through all subsequent operations.
    """
    return uuid4()
