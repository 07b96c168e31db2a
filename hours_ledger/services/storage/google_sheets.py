"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the document store because:
1. The ledger owner can inspect and export their data directly
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a personal ledger is tiny)
- No transactions (last write wins, which is all the ledger needs)
- Limited query capabilities (we filter by account in Python)

Rows are read and written BY HEADER NAME, not by position. That is
what lets a schema migration rename a column in place without
rewriting every row.
"""

import json
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from hours_ledger.config import GoogleSheetsSettings, get_settings
from hours_ledger.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventType,
    AuditSeverity,
)
from hours_ledger.models.entries import (
    EntrySource,
    PaymentEntry,
    WorkLogEntry,
    utc_now,
)
from hours_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptRecordError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    require_id,
)
from hours_ledger.services.storage.migrations import (
    CURRENT_SCHEMA_VERSION,
    migrate_header,
    pending_migrations,
)


logger = structlog.get_logger(__name__)

Entry = TypeVar("Entry", WorkLogEntry, PaymentEntry)


# Column mappings for the WorkLogs sheet
WORK_LOG_COLUMNS = [
    "id",
    "account_id",
    "created_at",
    "description",
    "hours",
    "rate",
    "start",
    "end",
    "source",
]

# Column mappings for the Payments sheet
PAYMENT_COLUMNS = [
    "id",
    "account_id",
    "created_at",
    "amount",
    "exchange_rate",
    "date",
    "description",
]

META_COLUMNS = ["key", "value"]
SCHEMA_VERSION_KEY = "schema_version"

# Only transient API failures are worth retrying
_api_retry = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication, worksheet creation and the one-time
    schema migration of existing sheets.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
        self._schema_version: Optional[int] = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_work_logs_sheet(self) -> gspread.Worksheet:
        """Get or create the WorkLogs worksheet."""
        return self._get_or_create_sheet(
            self._settings.work_logs_sheet_name, WORK_LOG_COLUMNS
        )

    def get_payments_sheet(self) -> gspread.Worksheet:
        """Get or create the Payments worksheet."""
        return self._get_or_create_sheet(
            self._settings.payments_sheet_name, PAYMENT_COLUMNS
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )

    def get_meta_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.meta_sheet_name, META_COLUMNS, rows=10
        )

    def ensure_schema(self) -> int:
        """
        Bring the record sheets up to CURRENT_SCHEMA_VERSION.

        Runs once per client. A missing version means the sheets
        predate versioning (v0); migrating freshly created sheets
        is a no-op since they already use the current column names.

        Returns:
            The schema version the sheets were at before migrating.
        """
        if self._schema_version is not None:
            return self._schema_version

        meta = self.get_meta_sheet()
        meta_rows = meta.get_all_values()
        from_version = 0
        version_row = None
        for idx, row in enumerate(meta_rows[1:], start=2):
            if row and row[0] == SCHEMA_VERSION_KEY:
                from_version = int(row[1])
                version_row = idx
                break

        if pending_migrations(from_version):
            for sheet in (self.get_work_logs_sheet(), self.get_payments_sheet()):
                header = sheet.row_values(1)
                new_header = migrate_header(header, from_version)
                for col_idx, (old, new) in enumerate(zip(header, new_header), start=1):
                    if old != new:
                        sheet.update_cell(1, col_idx, new)

            if version_row is None:
                meta.append_row([SCHEMA_VERSION_KEY, str(CURRENT_SCHEMA_VERSION)])
            else:
                meta.update_cell(version_row, 2, str(CURRENT_SCHEMA_VERSION))

            logger.info(
                "schema_migrated",
                from_version=from_version,
                to_version=CURRENT_SCHEMA_VERSION,
            )

        self._schema_version = CURRENT_SCHEMA_VERSION
        return from_version


class GoogleSheetsRecordStore(RecordStoreInterface):
    """
    Google Sheets implementation of the record store.

    One worksheet per entry kind, one entry per row, an account_id
    column scoping rows to their owner.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _work_log_values(account_id: str, entry: WorkLogEntry) -> dict[str, str]:
        return {
            "id": entry.id or "",
            "account_id": account_id,
            "created_at": _iso(entry.created_at),
            "description": entry.description,
            "hours": str(entry.hours),
            "rate": str(entry.rate),
            "start": _iso(entry.start),
            "end": _iso(entry.end),
            "source": entry.source.value,
        }

    @staticmethod
    def _payment_values(account_id: str, entry: PaymentEntry) -> dict[str, str]:
        return {
            "id": entry.id or "",
            "account_id": account_id,
            "created_at": _iso(entry.created_at),
            "amount": str(entry.amount),
            "exchange_rate": str(entry.exchange_rate),
            "date": _iso(entry.date),
            "description": entry.description or "",
        }

    @staticmethod
    def _record_to_work_log(record: dict[str, str]) -> WorkLogEntry:
        try:
            return WorkLogEntry(
                id=record.get("id"),
                description=record.get("description", ""),
                hours=record.get("hours") or None,
                rate=record.get("rate") or None,
                start=record.get("start") or None,
                end=record.get("end") or None,
                source=record.get("source") or EntrySource.MANUAL,
                created_at=record.get("created_at") or None,
            )
        except ValidationError as e:
            raise CorruptRecordError(
                f"Work log {record.get('id')} is malformed: {e}",
                record_id=record.get("id", ""),
            )

    @staticmethod
    def _record_to_payment(record: dict[str, str]) -> PaymentEntry:
        try:
            return PaymentEntry(
                id=record.get("id"),
                amount=record.get("amount") or None,
                exchange_rate=record.get("exchange_rate") or None,
                date=record.get("date") or None,
                description=record.get("description") or None,
                created_at=record.get("created_at") or None,
            )
        except ValidationError as e:
            raise CorruptRecordError(
                f"Payment {record.get('id')} is malformed: {e}",
                record_id=record.get("id", ""),
            )

    @staticmethod
    def _row_for_header(header: list[str], values: dict[str, str]) -> list[str]:
        return [values.get(column, "") for column in header]

    # ------------------------------------------------------------------
    # Sheet operations (sync, retried on API errors)
    # ------------------------------------------------------------------

    @_api_retry
    def _read(self, sheet: gspread.Worksheet) -> tuple[list[str], list[tuple[int, dict[str, str]]]]:
        """Header plus (sheet row number, record) for every non-empty row."""
        all_rows = sheet.get_all_values()
        if not all_rows:
            return [], []
        header = all_rows[0]
        records = []
        for idx, row in enumerate(all_rows[1:], start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            padded = row + [""] * (len(header) - len(row))
            records.append((idx, dict(zip(header, padded))))
        return header, records

    @_api_retry
    def _append(self, sheet: gspread.Worksheet, values: dict[str, str]) -> None:
        header = sheet.row_values(1)
        sheet.append_row(self._row_for_header(header, values), value_input_option="RAW")

    @_api_retry
    def _write_row(self, sheet: gspread.Worksheet, header: list[str], row_idx: int, values: dict[str, str]) -> None:
        sheet.update(
            range_name=f"A{row_idx}",
            values=[self._row_for_header(header, values)],
            value_input_option="RAW",
        )

    @_api_retry
    def _delete_row(self, sheet: gspread.Worksheet, row_idx: int) -> None:
        sheet.delete_rows(row_idx)

    def _find(
        self,
        records: list[tuple[int, dict[str, str]]],
        account_id: str,
        entry_id: str,
    ) -> Optional[tuple[int, dict[str, str]]]:
        for idx, record in records:
            if record.get("id") == entry_id and record.get("account_id") == account_id:
                return idx, record
        return None

    # ------------------------------------------------------------------
    # Generic CRUD over one sheet
    # ------------------------------------------------------------------

    def _sheet(self, getter: Callable[[], gspread.Worksheet]) -> gspread.Worksheet:
        self._client.ensure_schema()
        return getter()

    def _create(
        self,
        getter: Callable[[], gspread.Worksheet],
        to_values: Callable[[str, Entry], dict[str, str]],
        account_id: str,
        entry: Entry,
    ) -> Entry:
        stored = entry.model_copy(update={"id": uuid4().hex, "created_at": utc_now()})
        self._append(self._sheet(getter), to_values(account_id, stored))
        return stored

    def _list(
        self,
        getter: Callable[[], gspread.Worksheet],
        from_record: Callable[[dict[str, str]], Entry],
        account_id: str,
    ) -> list[Entry]:
        _, records = self._read(self._sheet(getter))
        # Later rows first, so equal timestamps keep append order after sorting
        entries = [
            from_record(record)
            for _, record in reversed(records)
            if record.get("account_id") == account_id
        ]
        # Sort by creation time, newest first
        entries.sort(
            key=lambda e: e.created_at or _OLDEST,
            reverse=True,
        )
        return entries

    def _update(
        self,
        getter: Callable[[], gspread.Worksheet],
        to_values: Callable[[str, Entry], dict[str, str]],
        account_id: str,
        entry: Entry,
    ) -> None:
        entry_id = require_id(entry)
        sheet = self._sheet(getter)
        header, records = self._read(sheet)
        found = self._find(records, account_id, entry_id)
        if found is None:
            raise NotFoundError(f"{type(entry).__name__} not found: {entry_id}")

        row_idx, existing = found
        values = to_values(account_id, entry)
        values["created_at"] = existing.get("created_at", "")
        self._write_row(sheet, header, row_idx, values)

    def _delete(
        self,
        getter: Callable[[], gspread.Worksheet],
        account_id: str,
        entry_id: str,
    ) -> bool:
        sheet = self._sheet(getter)
        _, records = self._read(sheet)
        found = self._find(records, account_id, entry_id)
        if found is None:
            return False
        self._delete_row(sheet, found[0])
        return True

    @staticmethod
    def _wrap(action: str, func: Callable, *args):
        try:
            return func(*args)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to {action}: {e}") from e

    # ------------------------------------------------------------------
    # Interface
    # ------------------------------------------------------------------

    async def create_work_log(self, account_id: str, entry: WorkLogEntry) -> WorkLogEntry:
        """Append a work log row."""
        return self._wrap(
            "save work log", self._create,
            self._client.get_work_logs_sheet, self._work_log_values, account_id, entry,
        )

    async def list_work_logs(self, account_id: str) -> list[WorkLogEntry]:
        return self._wrap(
            "list work logs", self._list,
            self._client.get_work_logs_sheet, self._record_to_work_log, account_id,
        )

    async def update_work_log(self, account_id: str, entry: WorkLogEntry) -> None:
        self._wrap(
            "update work log", self._update,
            self._client.get_work_logs_sheet, self._work_log_values, account_id, entry,
        )

    async def delete_work_log(self, account_id: str, entry_id: str) -> bool:
        return self._wrap(
            "delete work log", self._delete,
            self._client.get_work_logs_sheet, account_id, entry_id,
        )

    async def create_payment(self, account_id: str, entry: PaymentEntry) -> PaymentEntry:
        """Append a payment row."""
        return self._wrap(
            "save payment", self._create,
            self._client.get_payments_sheet, self._payment_values, account_id, entry,
        )

    async def list_payments(self, account_id: str) -> list[PaymentEntry]:
        return self._wrap(
            "list payments", self._list,
            self._client.get_payments_sheet, self._record_to_payment, account_id,
        )

    async def update_payment(self, account_id: str, entry: PaymentEntry) -> None:
        self._wrap(
            "update payment", self._update,
            self._client.get_payments_sheet, self._payment_values, account_id, entry,
        )

    async def delete_payment(self, account_id: str, entry_id: str) -> bool:
        return self._wrap(
            "delete payment", self._delete,
            self._client.get_payments_sheet, account_id, entry_id,
        )


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            account_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    @retry(
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        self._client.get_audit_sheet().append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_row(event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("audit_row_unreadable", error=str(e), row_id=row[0])

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
