"""
Data Models Package

This package contains all Pydantic models used in Hours Ledger.
All data flowing through the system must conform to these schemas.
"""

from hours_ledger.models.entries import (
    EntrySource,
    LedgerSummary,
    LedgerTotals,
    PaymentEntry,
    PaymentForm,
    RawTimeEntry,
    ValidationIssue,
    ValidationResult,
    WorkLogEntry,
    WorkLogForm,
)
from hours_ledger.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "EntrySource",
    "LedgerSummary",
    "LedgerTotals",
    "PaymentEntry",
    "PaymentForm",
    "RawTimeEntry",
    "ValidationIssue",
    "ValidationResult",
    "WorkLogEntry",
    "WorkLogForm",
    # Audit models
    "AUDIT_COLUMNS",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
