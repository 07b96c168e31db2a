"""
Core Data Models for Hours Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Keep historical exchange rates immutable once recorded

DESIGN DECISION: Money and hours are Decimal, never float.
Values coming from UI widgets are converted with Decimal(str(value))
so that 0.1 + 0.2 style drift never reaches the ledger.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are taken to be UTC so manual and imported rows sort together."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntrySource(str, Enum):
    """
    Where a work log entry came from.

    CRITICAL: IMPORTED entries are derived from the time report.
    They are never edited or deleted through the ledger; the next
    sync replaces them wholesale.
    """
    MANUAL = "manual"
    IMPORTED = "imported"


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class WorkLogEntry(BaseModel):
    """
    Hours worked at a given hourly rate.

    The model accepts zero hours because imported entries can carry
    a zero duration (e.g. a timer that was started and stopped).
    Manual entries must be strictly positive; that rule lives in
    the EntryValidator, not here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Unique ID, assigned by the store on creation"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Free text label"
    )
    hours: Decimal = Field(
        ...,
        ge=0,
        description="Hours worked"
    )
    rate: Decimal = Field(
        ...,
        ge=0,
        description="Earnings per hour, in the earnings currency"
    )
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    source: EntrySource = Field(
        default=EntrySource.MANUAL,
        description="Manual entry or imported from the time report"
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="Set by the store on creation"
    )

    @field_validator('start', 'end', 'created_at')
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @model_validator(mode='after')
    def validate_interval(self) -> 'WorkLogEntry':
        """End cannot precede start."""
        if self.start and self.end and self.end < self.start:
            raise ValueError("End time cannot be before start time")
        return self

    @property
    def earnings(self) -> Decimal:
        """Earnings for this entry in the earnings currency."""
        return self.hours * self.rate

    @property
    def is_editable(self) -> bool:
        return self.source == EntrySource.MANUAL


class PaymentEntry(BaseModel):
    """
    A payment received in the local currency.

    CRITICAL: `exchange_rate` is the HISTORICAL rate, recorded when the
    payment was made. It is never recomputed from the live rate, otherwise
    past payments would silently change value.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Unique ID, assigned by the store on creation"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount received, in the local currency"
    )
    exchange_rate: Decimal = Field(
        ...,
        gt=0,
        description="Local currency units per one earnings currency unit, at payment time"
    )
    date: datetime = Field(
        ...,
        description="When the payment was received"
    )
    description: Optional[str] = None
    created_at: Optional[datetime] = Field(
        default=None,
        description="Set by the store on creation"
    )

    @field_validator('date', 'created_at')
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def amount_in_earnings_currency(self) -> Decimal:
        """Payment restated in the earnings currency at its own historical rate."""
        return self.amount / self.exchange_rate


# =============================================================================
# EXTERNAL TIME REPORT
# =============================================================================

class RawTimeEntry(BaseModel):
    """
    One row of the external time report, as reported.

    CRITICAL: This is UNTRUSTED data. `reported_rate` in particular is
    known to be stale and is discarded during normalization.
    """

    source_id: str = Field(
        ...,
        min_length=1,
        description="ID of the entry in the time tracking service"
    )
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_seconds: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Tracked duration in seconds"
    )
    reported_rate: Optional[Decimal] = None


# =============================================================================
# AGGREGATES
# =============================================================================

class LedgerTotals(BaseModel):
    """
    Summary figures computed from the loaded entries.

    Never persisted; always recomputed from the entries.
    """
    model_config = ConfigDict(frozen=True)

    total_hours: Decimal = Decimal("0")
    total_earnings: Decimal = Decimal("0")
    total_payments_local: Decimal = Decimal("0")
    total_payments_earnings_currency: Decimal = Decimal("0")
    balance_earnings_currency: Decimal = Decimal("0")
    balance_local: Decimal = Decimal("0")

    work_log_count: int = Field(default=0, ge=0)
    payment_count: int = Field(default=0, ge=0)

    @property
    def is_settled(self) -> bool:
        """True when nothing is owed either way."""
        return self.balance_earnings_currency == 0


class LedgerSummary(BaseModel):
    """Prose summary of a LedgerTotals."""

    summary: str
    generated: bool = Field(
        default=True,
        description="False when the fallback message was used"
    )
    generated_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# FORM INPUT (unverified)
# =============================================================================

class WorkLogForm(BaseModel):
    """
    Raw values from the manual work log form.

    CRITICAL: This is PROPOSED data, NOT verified.
    It MUST go through EntryValidator before becoming a WorkLogEntry.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: Optional[str] = None
    hours: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator('start', 'end')
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class PaymentForm(BaseModel):
    """Raw values from the payment form. Unverified."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = None
    exchange_rate: Optional[Decimal] = None
    date: Optional[datetime] = None
    description: Optional[str] = None

    @field_validator('date')
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


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
        description="Type of issue (e.g., 'missing', 'not_positive', 'inconsistent')"
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


class ValidationResult(BaseModel):
    """Result of validating one entry form."""

    validated_at: datetime = Field(default_factory=utc_now)
    is_valid: bool = Field(
        ...,
        description="Can the entry be submitted?"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[str]:
        """Messages to show inline next to a form field."""
        return [
            issue.message
            for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]
