"""
Entry Form Validation

Validates manual work log and payment forms before they reach the store.

DESIGN DECISION: The models themselves accept anything that is
well-formed (zero hours is legal for an imported entry). The stricter
rules that apply to what a user types live here, so they can be
reported field-by-field instead of as a single pydantic traceback.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and blocks submission.
"""

from decimal import Decimal
from typing import Optional

from hours_ledger.models.entries import (
    EntrySource,
    PaymentEntry,
    PaymentForm,
    ValidationIssue,
    ValidationResult,
    WorkLogEntry,
    WorkLogForm,
)


class EntryValidationError(ValueError):
    """A form was submitted with blocking validation issues."""

    def __init__(self, result: ValidationResult):
        messages = "; ".join(issue.message for issue in result.issues)
        super().__init__(f"Entry rejected: {messages}")
        self.result = result


def _require_positive(
    field: str,
    label: str,
    value: Optional[Decimal],
) -> Optional[ValidationIssue]:
    if value is None:
        return ValidationIssue(
            field=field,
            issue_type="missing",
            message=f"{label} is required",
            severity="error",
        )
    if value <= 0:
        return ValidationIssue(
            field=field,
            issue_type="not_positive",
            message=f"{label} must be a positive number",
            severity="error",
        )
    return None


class EntryValidator:
    """
    Validates entry forms.

    Every check runs, so the UI can show all problems at once
    rather than one per submit.
    """

    def validate_work_log(self, form: WorkLogForm) -> ValidationResult:
        """
        Check a manual work log form.

        Rules:
        - description is required
        - hours and rate must be positive
        - end, when given, cannot precede start
        """
        issues = []

        if not form.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))

        for field, label in (("hours", "Hours"), ("rate", "Rate")):
            issue = _require_positive(field, label, getattr(form, field))
            if issue:
                issues.append(issue)

        if form.start and form.end and form.end < form.start:
            issues.append(ValidationIssue(
                field="end",
                issue_type="inconsistent",
                message="End time is before start time",
                severity="error",
            ))

        return self._result(issues)

    def validate_payment(self, form: PaymentForm) -> ValidationResult:
        """
        Check a payment form.

        Rules:
        - amount and exchange rate must be positive
        - date is required
        """
        issues = []

        issue = _require_positive("amount", "Amount", form.amount)
        if issue:
            issues.append(issue)

        issue = _require_positive("exchange_rate", "Exchange rate", form.exchange_rate)
        if issue:
            issues.append(issue)

        if form.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Payment date is required",
                severity="error",
            ))

        return self._result(issues)

    def build_work_log(
        self,
        form: WorkLogForm,
        entry_id: Optional[str] = None,
    ) -> WorkLogEntry:
        """
        Turn a valid form into a manual WorkLogEntry.

        Raises:
            EntryValidationError: If the form has blocking issues.
        """
        result = self.validate_work_log(form)
        if not result.is_valid:
            raise EntryValidationError(result)

        return WorkLogEntry(
            id=entry_id,
            description=form.description,
            hours=form.hours,
            rate=form.rate,
            start=form.start,
            end=form.end,
            source=EntrySource.MANUAL,
        )

    def build_payment(
        self,
        form: PaymentForm,
        entry_id: Optional[str] = None,
    ) -> PaymentEntry:
        """
        Turn a valid form into a PaymentEntry.

        Raises:
            EntryValidationError: If the form has blocking issues.
        """
        result = self.validate_payment(form)
        if not result.is_valid:
            raise EntryValidationError(result)

        return PaymentEntry(
            id=entry_id,
            amount=form.amount,
            exchange_rate=form.exchange_rate,
            date=form.date,
            description=form.description or None,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text for a notification when a form is rejected."""
        if result.is_valid:
            return "All checks passed."

        lines = ["Please fix the following:"]
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
        return "\n".join(lines)

    @staticmethod
    def _result(issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )
