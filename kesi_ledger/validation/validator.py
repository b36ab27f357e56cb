"""
Two-Stage Transaction Form Validation

STAGE 1 - SCHEMA VALIDATION:
- Required fields present and non-empty
- Amount strictly positive
- Phone number format
- Type / payment method are known values
Any failure here is an ERROR and the transaction is not created.

STAGE 2 - SEMANTIC VALIDATION:
- Dates in the future
- Unusually large amounts
These are WARNINGS. The user sees them but can still save.

IMPORTANT: Validation NEVER silently fixes issues (beyond trimming
whitespace). It reports them for the user to correct.
"""

from datetime import date, timedelta
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from kesi_ledger.config import AppSettings, get_settings
from kesi_ledger.models.transaction import (
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)


# User-facing messages per form field (camelCase, as the form names them)
FIELD_MESSAGES = {
    "date": "Date is required.",
    "description": "Description is required.",
    "amount": "Amount must be positive.",
    "type": "Type is required.",
    "category": "Category is required.",
    "name": "Name is required.",
    "phoneNumber": "Phone number is required.",
    "paymentMethod": "Payment method is required.",
}

MISSING_ERROR_TYPES = {"missing", "string_too_short", "none_required"}

AMOUNT_LIMIT_MESSAGES = {
    "decimal_max_digits": "Amount is too large.",
    "decimal_whole_digits": "Amount is too large.",
    "decimal_max_places": "Amount can have at most 2 decimal places.",
}


def _issue_from_error(error: dict) -> ValidationIssue:
    """Map one pydantic error to a form issue."""
    field = str(error["loc"][0]) if error["loc"] else "form"
    error_type = error["type"]

    if field == "phoneNumber" and error_type == "string_pattern_mismatch":
        message = "Invalid phone number format."
        suggested_fix = "Use digits, spaces, dashes or brackets, optionally starting with +"
    elif field == "amount" and error_type in AMOUNT_LIMIT_MESSAGES:
        message = AMOUNT_LIMIT_MESSAGES[error_type]
        suggested_fix = None
    else:
        message = FIELD_MESSAGES.get(field, error["msg"])
        suggested_fix = None

    return ValidationIssue(
        field=field,
        issue_type="missing" if error_type in MISSING_ERROR_TYPES else "invalid_format",
        message=message,
        severity="error",
        suggested_fix=suggested_fix,
    )


class TransactionValidator:
    """
    Validates transaction form input through a two-stage pipeline.

    Stage 1 builds the TransactionDraft; stage 2 only runs on a draft.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        form: Mapping[str, Any],
    ) -> tuple[Optional[TransactionDraft], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (draft_or_None, list_of_issues)
        """
        try:
            return TransactionDraft.model_validate(dict(form)), []
        except ValidationError as e:
            issues = []
            seen = set()
            for error in e.errors():
                issue = _issue_from_error(error)
                # One message per field is enough for a form
                if issue.field in seen:
                    continue
                seen.add(issue.field)
                issues.append(issue)
            return None, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
        today: Optional[date] = None,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Returns: list_of_issues (warnings only)
        """
        issues = []
        today = today or date.today()

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Transaction date ({draft.date.isoformat()}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if draft.amount > self._settings.max_transaction_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return issues

    def validate(
        self,
        form: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> tuple[Optional[TransactionDraft], ValidationResult]:
        """
        Run full two-stage validation.

        Args:
            form: Raw form values, keyed by camelCase or snake_case names
            today: Reference date for the future-date check

        Returns:
            (draft, result). draft is None when result.is_valid is False.
        """
        draft, all_issues = self._validate_schema(form)
        schema_valid = draft is not None

        semantic_valid = False
        if draft is not None:
            all_issues.extend(self._validate_semantic(draft, today))
            semantic_valid = not any(i.severity == "error" for i in all_issues)

        warnings = [i.message for i in all_issues if i.severity == "warning"]

        result = ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )
        return (draft if result.is_valid else None), result

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Summary of validation results for display next to the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
