"""
Main Orchestrator for Hours Ledger

This module ties together all the components and defines the
end-to-end flows for one account's ledger:
1. Load (store → manual work logs + payments)
2. Sync (time report → normalize → imported work logs)
3. Edit (form → validate → store → in-memory state)
4. Summarize (entries → totals → summary agent)

DESIGN DECISION: The orchestrator enforces the boundaries:
- In-memory state changes only after the store accepted the change
- Imported entries are never edited or deleted
- Every step is audited

User-facing operations return `(ok, message)` so the UI can show a
notification without catching exceptions itself.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from hours_ledger.agents import SummaryAgent
from hours_ledger.audit import AuditLogger, create_correlation_id
from hours_ledger.config import get_settings
from hours_ledger.ledger import combine_work_logs, compute_totals, sort_by_start_desc
from hours_ledger.models.entries import (
    LedgerSummary,
    LedgerTotals,
    PaymentEntry,
    PaymentForm,
    ValidationResult,
    WorkLogEntry,
    WorkLogForm,
)
from hours_ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    RecordStoreInterface,
    StorageError,
)
from hours_ledger.services.time_report import (
    ClockifyReportSource,
    TimeReportError,
    TimeReportSource,
    normalize_time_entries,
)
from hours_ledger.validation import EntryValidationError, EntryValidator


logger = structlog.get_logger(__name__)

WORK_LOG = "work_log"
PAYMENT = "payment"


class LedgerSession:
    """
    One user's view of their ledger.

    State:
    - manual_work_logs: work logs from the store, newest first
    - imported_work_logs: normalized time report entries (never persisted)
    - payments: payments from the store, newest first
    - live_exchange_rate: today's rate, entered by the user

    Flow for every edit:
    1. Validate the form (rejections are audited, nothing is stored)
    2. Call the store with the explicit account id
    3. Apply the change to in-memory state ONLY if the store succeeded
    4. Audit the outcome
    """

    def __init__(
        self,
        account_id: str,
        store: RecordStoreInterface,
        report_source: Optional[TimeReportSource] = None,
        summary_agent: Optional[SummaryAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[EntryValidator] = None,
        fixed_rate: Optional[Decimal] = None,
    ):
        if not account_id:
            raise ValueError("account_id is required")

        self.account_id = account_id
        self._store = store
        self._report_source = report_source
        self._summary_agent = summary_agent
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or EntryValidator()
        self._fixed_rate = (
            fixed_rate if fixed_rate is not None else get_settings().clockify.fixed_rate
        )
        self._correlation_id: UUID = create_correlation_id()

        self.manual_work_logs: list[WorkLogEntry] = []
        self.imported_work_logs: list[WorkLogEntry] = []
        self.payments: list[PaymentEntry] = []
        self.live_exchange_rate: Optional[Decimal] = None

    # =========================================================================
    # DERIVED STATE
    # =========================================================================

    @property
    def work_logs(self) -> list[WorkLogEntry]:
        """Imported and manual work logs together, newest first."""
        return sort_by_start_desc(
            combine_work_logs(self.imported_work_logs, self.manual_work_logs)
        )

    def totals(self, current_exchange_rate: Optional[Decimal] = None) -> LedgerTotals:
        """
        Compute totals over everything currently loaded.

        Falls back to the session's live rate when none is passed.
        """
        rate = current_exchange_rate
        if rate is None:
            rate = self.live_exchange_rate or Decimal("0")
        return compute_totals(self.work_logs, self.payments, rate)

    def new_payment_form(self) -> PaymentForm:
        """Blank payment form, pre-filled with the live rate when set."""
        return PaymentForm(exchange_rate=self.live_exchange_rate)

    def validate_work_log(self, form: WorkLogForm) -> ValidationResult:
        return self._validator.validate_work_log(form)

    def validate_payment(self, form: PaymentForm) -> ValidationResult:
        return self._validator.validate_payment(form)

    # =========================================================================
    # LOADING
    # =========================================================================

    async def load(self) -> tuple[bool, str]:
        """
        Load manual work logs and payments from the store.

        On failure the previously loaded state is kept.
        """
        try:
            work_logs = await self._store.list_work_logs(self.account_id)
            payments = await self._store.list_payments(self.account_id)
        except StorageError as e:
            logger.error("records_load_failed", account_id=self.account_id, error=str(e))
            await self._audit_logger.log_store_failed(
                operation="list",
                entity_type="records",
                account_id=self.account_id,
                error_message=str(e),
                correlation_id=self._correlation_id,
            )
            return False, f"Could not load records: {e}"

        self.manual_work_logs = work_logs
        self.payments = payments

        await self._audit_logger.log_records_loaded(
            account_id=self.account_id,
            work_log_count=len(work_logs),
            payment_count=len(payments),
            correlation_id=self._correlation_id,
        )
        return True, f"Loaded {len(work_logs)} work logs and {len(payments)} payments"

    async def sync_time_report(self) -> tuple[bool, str]:
        """
        Replace the imported work logs with a fresh copy of the time report.

        Every imported entry is billed at the fixed rate. On failure the
        previously imported entries are kept.
        """
        if self._report_source is None:
            return False, "No time report source is configured"

        try:
            raws = await self._report_source.fetch()
            imported = normalize_time_entries(raws, self._fixed_rate)
        except TimeReportError as e:
            logger.error("time_report_sync_failed", account_id=self.account_id, error=str(e))
            await self._audit_logger.log_time_report_failed(
                account_id=self.account_id,
                error_message=str(e),
                correlation_id=self._correlation_id,
            )
            return False, f"Could not sync time report: {e}"

        self.imported_work_logs = imported

        await self._audit_logger.log_time_report_synced(
            account_id=self.account_id,
            entry_count=len(self.imported_work_logs),
            correlation_id=self._correlation_id,
        )
        return True, f"Imported {len(self.imported_work_logs)} entries"

    # =========================================================================
    # WORK LOGS
    # =========================================================================

    async def add_work_log(self, form: WorkLogForm) -> tuple[bool, str]:
        try:
            entry = self._validator.build_work_log(form)
        except EntryValidationError as e:
            return await self._rejected(WORK_LOG, e)

        try:
            saved = await self._store.create_work_log(self.account_id, entry)
        except StorageError as e:
            return await self._store_failed("create", WORK_LOG, e)

        self.manual_work_logs.insert(0, saved)
        await self._changed(WORK_LOG, "created", saved.id, {"hours": str(saved.hours)})
        return True, "Work log added"

    async def update_work_log(self, entry_id: str, form: WorkLogForm) -> tuple[bool, str]:
        """
        Update a manual work log.

        Imported entries are refused: they are replaced on every sync.
        """
        index = self._index_of(self.manual_work_logs, entry_id)
        if index is None:
            return self._refuse_missing_work_log(entry_id, "edited")

        try:
            entry = self._validator.build_work_log(form, entry_id=entry_id)
        except EntryValidationError as e:
            return await self._rejected(WORK_LOG, e)

        try:
            await self._store.update_work_log(self.account_id, entry)
        except StorageError as e:
            return await self._store_failed("update", WORK_LOG, e)

        entry = entry.model_copy(
            update={"created_at": self.manual_work_logs[index].created_at}
        )
        self.manual_work_logs[index] = entry
        await self._changed(WORK_LOG, "updated", entry_id)
        return True, "Work log updated"

    async def delete_work_log(self, entry_id: str) -> tuple[bool, str]:
        index = self._index_of(self.manual_work_logs, entry_id)
        if index is None:
            return self._refuse_missing_work_log(entry_id, "deleted")

        try:
            deleted = await self._store.delete_work_log(self.account_id, entry_id)
        except StorageError as e:
            return await self._store_failed("delete", WORK_LOG, e)

        # Gone from the store either way
        del self.manual_work_logs[index]
        if not deleted:
            return True, "Work log was already deleted"

        await self._changed(WORK_LOG, "deleted", entry_id)
        return True, "Work log deleted"

    def _refuse_missing_work_log(self, entry_id: str, action: str) -> tuple[bool, str]:
        if self._index_of(self.imported_work_logs, entry_id) is not None:
            return False, f"Imported entries cannot be {action}"
        return False, "Work log not found"

    # =========================================================================
    # PAYMENTS
    # =========================================================================

    async def add_payment(self, form: PaymentForm) -> tuple[bool, str]:
        try:
            entry = self._validator.build_payment(form)
        except EntryValidationError as e:
            return await self._rejected(PAYMENT, e)

        try:
            saved = await self._store.create_payment(self.account_id, entry)
        except StorageError as e:
            return await self._store_failed("create", PAYMENT, e)

        self.payments.insert(0, saved)
        await self._changed(
            PAYMENT,
            "created",
            saved.id,
            {"amount": str(saved.amount), "exchange_rate": str(saved.exchange_rate)},
        )
        return True, "Payment added"

    async def update_payment(self, entry_id: str, form: PaymentForm) -> tuple[bool, str]:
        index = self._index_of(self.payments, entry_id)
        if index is None:
            return False, "Payment not found"

        try:
            entry = self._validator.build_payment(form, entry_id=entry_id)
        except EntryValidationError as e:
            return await self._rejected(PAYMENT, e)

        try:
            await self._store.update_payment(self.account_id, entry)
        except StorageError as e:
            return await self._store_failed("update", PAYMENT, e)

        entry = entry.model_copy(update={"created_at": self.payments[index].created_at})
        self.payments[index] = entry
        await self._changed(PAYMENT, "updated", entry_id)
        return True, "Payment updated"

    async def delete_payment(self, entry_id: str) -> tuple[bool, str]:
        index = self._index_of(self.payments, entry_id)
        if index is None:
            return False, "Payment not found"

        try:
            deleted = await self._store.delete_payment(self.account_id, entry_id)
        except StorageError as e:
            return await self._store_failed("delete", PAYMENT, e)

        del self.payments[index]
        if not deleted:
            return True, "Payment was already deleted"

        await self._changed(PAYMENT, "deleted", entry_id)
        return True, "Payment deleted"

    # =========================================================================
    # SUMMARY
    # =========================================================================

    async def generate_summary(
        self,
        current_exchange_rate: Optional[Decimal] = None,
    ) -> LedgerSummary:
        """
        Summarize the current totals in prose.

        Never raises for model failures: the agent returns the fallback
        message instead.
        """
        if self._summary_agent is None:
            self._summary_agent = SummaryAgent()

        totals = self.totals(current_exchange_rate)
        summary = await self._summary_agent.summarize(totals)

        await self._audit_logger.log_summary(
            account_id=self.account_id,
            used_fallback=not summary.generated,
            correlation_id=self._correlation_id,
        )
        return summary

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _index_of(entries: list, entry_id: str) -> Optional[int]:
        for index, entry in enumerate(entries):
            if entry.id == entry_id:
                return index
        return None

    async def _rejected(self, entity_type: str, error: EntryValidationError) -> tuple[bool, str]:
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in error.result.issues
        ]
        await self._audit_logger.log_entry_rejected(
            entity_type=entity_type,
            account_id=self.account_id,
            issues=issues,
            correlation_id=self._correlation_id,
        )
        return False, self._validator.get_user_friendly_summary(error.result)

    async def _store_failed(
        self,
        operation: str,
        entity_type: str,
        error: StorageError,
    ) -> tuple[bool, str]:
        logger.error(
            "store_operation_failed",
            operation=operation,
            entity_type=entity_type,
            account_id=self.account_id,
            error=str(error),
        )
        await self._audit_logger.log_store_failed(
            operation=operation,
            entity_type=entity_type,
            account_id=self.account_id,
            error_message=str(error),
            correlation_id=self._correlation_id,
        )
        label = entity_type.replace("_", " ")
        return False, f"Could not {operation} {label}: {error}"

    async def _changed(
        self,
        entity_type: str,
        change: str,
        entity_id: Optional[str],
        details: Optional[dict] = None,
    ) -> None:
        await self._audit_logger.log_entry_changed(
            entity_type=entity_type,
            change=change,
            entity_id=entity_id,
            account_id=self.account_id,
            details=details,
            correlation_id=self._correlation_id,
        )


def create_app_components(
    use_storage: bool = True,
    account_id: Optional[str] = None,
) -> tuple[LedgerSession, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage; records
                    then live in memory for the lifetime of the process.
        account_id: Whose ledger to open. Defaults to the ACCOUNT_ID setting.

    Returns:
        (session, sheets_client)
    """
    settings = get_settings()
    sheets_client = None
    store: RecordStoreInterface
    audit_logger: AuditLogger

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsRecordStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = InMemoryRecordStore()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        store = InMemoryRecordStore()
        audit_logger = AuditLogger()  # Local-only logging

    report_source = None
    if settings.clockify.is_configured:
        report_source = ClockifyReportSource()

    session = LedgerSession(
        account_id=account_id or settings.app.account_id,
        store=store,
        report_source=report_source,
        summary_agent=SummaryAgent(),
        audit_logger=audit_logger,
    )
    return session, sheets_client
