"""
Audit Models for Hours Ledger

Every change to the ledger is logged for audit purposes.
This provides:
1. A history of edits to entries that otherwise only keep their latest state
2. Debugging information when a store or sync call fails
3. Ability to reconstruct what the user saw at a given time

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from hours_ledger.models.entries import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Loading
    RECORDS_LOADED = "records_loaded"

    # Work logs
    WORK_LOG_CREATED = "work_log_created"
    WORK_LOG_UPDATED = "work_log_updated"
    WORK_LOG_DELETED = "work_log_deleted"

    # Payments
    PAYMENT_CREATED = "payment_created"
    PAYMENT_UPDATED = "payment_updated"
    PAYMENT_DELETED = "payment_deleted"

    # Validation
    ENTRY_REJECTED = "entry_rejected"

    # Time report
    TIME_REPORT_SYNCED = "time_report_synced"
    TIME_REPORT_FAILED = "time_report_failed"

    # Summary
    SUMMARY_GENERATED = "summary_generated"
    SUMMARY_FAILED = "summary_failed"

    # Storage
    STORE_OPERATION_FAILED = "store_operation_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "account_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


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
        default_factory=utc_now,
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

    # Context - whose ledger and which entry?
    account_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'work_log', 'payment', 'summary')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one session load)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

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
            "account_id": self.account_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Columns follow AUDIT_COLUMNS.
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.account_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_changed("payment", "created", payment.id, account_id)
        event = AuditEventBuilder.store_failed("create", "payment", account_id, str(e))
    """

    _CHANGE_TYPES = {
        ("work_log", "created"): AuditEventType.WORK_LOG_CREATED,
        ("work_log", "updated"): AuditEventType.WORK_LOG_UPDATED,
        ("work_log", "deleted"): AuditEventType.WORK_LOG_DELETED,
        ("payment", "created"): AuditEventType.PAYMENT_CREATED,
        ("payment", "updated"): AuditEventType.PAYMENT_UPDATED,
        ("payment", "deleted"): AuditEventType.PAYMENT_DELETED,
    }

    @staticmethod
    def records_loaded(
        account_id: str,
        work_log_count: int,
        payment_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_LOADED,
            account_id=account_id,
            correlation_id=correlation_id,
            description=(
                f"Loaded {work_log_count} work logs and {payment_count} payments"
            ),
            details={
                "work_log_count": work_log_count,
                "payment_count": payment_count,
            },
        )

    @classmethod
    def entry_changed(
        cls,
        entity_type: str,
        change: str,
        entity_id: Optional[str],
        account_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        """Build a created/updated/deleted event for a work log or payment."""
        event_type = cls._CHANGE_TYPES[(entity_type, change)]
        return AuditEvent(
            event_type=event_type,
            account_id=account_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {change}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def entry_rejected(
        entity_type: str,
        account_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_REJECTED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Validation rejected {entity_type} with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def time_report_synced(
        account_id: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TIME_REPORT_SYNCED,
            account_id=account_id,
            entity_type="time_report",
            correlation_id=correlation_id,
            description=f"Imported {entry_count} entries from the time report",
            details={"entry_count": entry_count},
        )

    @staticmethod
    def time_report_failed(
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TIME_REPORT_FAILED,
            severity=AuditSeverity.ERROR,
            account_id=account_id,
            entity_type="time_report",
            correlation_id=correlation_id,
            description="Time report sync failed",
            error_message=error_message,
        )

    @staticmethod
    def summary_generated(
        account_id: str,
        used_fallback: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if used_fallback:
            return AuditEvent(
                event_type=AuditEventType.SUMMARY_FAILED,
                severity=AuditSeverity.WARNING,
                account_id=account_id,
                entity_type="summary",
                correlation_id=correlation_id,
                description="Summary generation failed, fallback message shown",
            )
        return AuditEvent(
            event_type=AuditEventType.SUMMARY_GENERATED,
            account_id=account_id,
            entity_type="summary",
            correlation_id=correlation_id,
            description="Summary generated",
            is_user_action=True,
        )

    @staticmethod
    def store_failed(
        operation: str,
        entity_type: str,
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_OPERATION_FAILED,
            severity=AuditSeverity.ERROR,
            account_id=account_id,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Store operation failed: {operation} {entity_type}",
            error_message=error_message,
            details={"operation": operation},
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
