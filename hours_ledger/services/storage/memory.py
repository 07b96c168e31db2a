"""
In-Memory Storage Implementation

Backs tests, and local runs where no spreadsheet is configured.
Data lives for the lifetime of the process only.
"""

from typing import Optional, TypeVar
from uuid import uuid4

from hours_ledger.models.audit import AuditEvent
from hours_ledger.models.entries import PaymentEntry, WorkLogEntry, utc_now
from hours_ledger.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    RecordStoreInterface,
    require_id,
)


Entry = TypeVar("Entry", WorkLogEntry, PaymentEntry)


class InMemoryRecordStore(RecordStoreInterface):
    """
    Dict-backed record store.

    Entries are kept per account in insertion order, so listing in
    reverse gives creation time descending. Copies go in and out;
    callers never hold a reference to stored state.
    """

    def __init__(self):
        self._work_logs: dict[str, dict[str, WorkLogEntry]] = {}
        self._payments: dict[str, dict[str, PaymentEntry]] = {}

    @staticmethod
    def _create(bucket: dict[str, Entry], entry: Entry) -> Entry:
        stored = entry.model_copy(update={
            "id": uuid4().hex,
            "created_at": utc_now(),
        })
        bucket[stored.id] = stored
        return stored.model_copy()

    @staticmethod
    def _update(bucket: dict[str, Entry], entry: Entry) -> None:
        entry_id = require_id(entry)
        existing = bucket.get(entry_id)
        if existing is None:
            raise NotFoundError(f"{type(entry).__name__} not found: {entry_id}")
        bucket[entry_id] = entry.model_copy(update={
            "created_at": existing.created_at,
        })

    @staticmethod
    def _list(bucket: Optional[dict[str, Entry]]) -> list[Entry]:
        if not bucket:
            return []
        return [entry.model_copy() for entry in reversed(bucket.values())]

    async def create_work_log(self, account_id: str, entry: WorkLogEntry) -> WorkLogEntry:
        return self._create(self._work_logs.setdefault(account_id, {}), entry)

    async def list_work_logs(self, account_id: str) -> list[WorkLogEntry]:
        return self._list(self._work_logs.get(account_id))

    async def update_work_log(self, account_id: str, entry: WorkLogEntry) -> None:
        self._update(self._work_logs.setdefault(account_id, {}), entry)

    async def delete_work_log(self, account_id: str, entry_id: str) -> bool:
        return self._work_logs.get(account_id, {}).pop(entry_id, None) is not None

    async def create_payment(self, account_id: str, entry: PaymentEntry) -> PaymentEntry:
        return self._create(self._payments.setdefault(account_id, {}), entry)

    async def list_payments(self, account_id: str) -> list[PaymentEntry]:
        return self._list(self._payments.get(account_id))

    async def update_payment(self, account_id: str, entry: PaymentEntry) -> None:
        self._update(self._payments.setdefault(account_id, {}), entry)

    async def delete_payment(self, account_id: str, entry_id: str) -> bool:
        return self._payments.get(account_id, {}).pop(entry_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
