"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. A trail of edits, since entries only keep their latest state
2. Debugging capability when a store or sync call fails
3. User can see history of their interactions

The audit logger:
- Is async to match the store interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from hours_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from hours_ledger.services.storage import AuditStorageInterface


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
    2. Audit storage, when configured (for persistence and user visibility)
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
        self._logger = structlog.get_logger("hours_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_records_loaded(
        self,
        account_id: str,
        work_log_count: int,
        payment_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.records_loaded(
            account_id=account_id,
            work_log_count=work_log_count,
            payment_count=payment_count,
            correlation_id=correlation_id,
        ))

    async def log_entry_changed(
        self,
        entity_type: str,
        change: str,
        entity_id: Optional[str],
        account_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a work log or payment being created, updated or deleted."""
        await self.log(AuditEventBuilder.entry_changed(
            entity_type=entity_type,
            change=change,
            entity_id=entity_id,
            account_id=account_id,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_entry_rejected(
        self,
        entity_type: str,
        account_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_rejected(
            entity_type=entity_type,
            account_id=account_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_time_report_synced(
        self,
        account_id: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.time_report_synced(
            account_id=account_id,
            entry_count=entry_count,
            correlation_id=correlation_id,
        ))

    async def log_time_report_failed(
        self,
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.time_report_failed(
            account_id=account_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_summary(
        self,
        account_id: str,
        used_fallback: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.summary_generated(
            account_id=account_id,
            used_fallback=used_fallback,
            correlation_id=correlation_id,
        ))

    async def log_store_failed(
        self,
        operation: str,
        entity_type: str,
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.store_failed(
            operation=operation,
            entity_type=entity_type,
            account_id=account_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user session.
    Pass it through all subsequent operations.
    """
    return uuid4()
