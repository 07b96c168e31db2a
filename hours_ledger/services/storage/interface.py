"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real document database later
2. Use in-memory storage for testing and offline use
3. Keep business logic decoupled from storage implementation

Every operation takes an explicit account_id. There is no ambient
"current user"; whoever calls the store says whose ledger it is.
"""

from abc import ABC, abstractmethod
from typing import Union

from hours_ledger.models.audit import AuditEvent
from hours_ledger.models.entries import PaymentEntry, WorkLogEntry


class RecordStoreInterface(ABC):
    """
    Abstract interface for ledger record storage.

    Contract shared by every implementation:
    - create_* assigns `id` and `created_at` and returns the stored entry
    - list_* returns entries ordered by creation time, newest first
    - update_* replaces the entry with the same id (last write wins)
    - delete_* removes by id
    """

    # ------------------------------------------------------------------
    # Work logs
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_work_log(
        self,
        account_id: str,
        entry: WorkLogEntry,
    ) -> WorkLogEntry:
        """
        Persist a new work log entry.

        Returns:
            The entry with `id` and `created_at` assigned

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def list_work_logs(self, account_id: str) -> list[WorkLogEntry]:
        """
        List the account's work log entries, newest first.

        Raises:
            StorageError: If the read fails
            CorruptRecordError: If a stored row cannot be parsed
        """
        pass

    @abstractmethod
    async def update_work_log(
        self,
        account_id: str,
        entry: WorkLogEntry,
    ) -> None:
        """
        Replace an existing work log entry by id.

        Raises:
            StorageError: If the entry has no id or the write fails
            NotFoundError: If no entry with that id exists
        """
        pass

    @abstractmethod
    async def delete_work_log(self, account_id: str, entry_id: str) -> bool:
        """
        Delete a work log entry by id.

        Returns:
            True if an entry was deleted, False if none matched
        """
        pass

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_payment(
        self,
        account_id: str,
        entry: PaymentEntry,
    ) -> PaymentEntry:
        """Persist a new payment. Same contract as create_work_log."""
        pass

    @abstractmethod
    async def list_payments(self, account_id: str) -> list[PaymentEntry]:
        """List the account's payments, newest first."""
        pass

    @abstractmethod
    async def update_payment(
        self,
        account_id: str,
        entry: PaymentEntry,
    ) -> None:
        """Replace an existing payment by id. Same contract as update_work_log."""
        pass

    @abstractmethod
    async def delete_payment(self, account_id: str, entry_id: str) -> bool:
        """Delete a payment by id."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class CorruptRecordError(StorageError):
    """A stored record could not be parsed into a valid entry."""

    def __init__(self, message: str, record_id: str = ""):
        super().__init__(message)
        self.record_id = record_id


def require_id(entry: Union[WorkLogEntry, PaymentEntry]) -> str:
    """Updates are replace-by-id; an entry without one cannot be updated."""
    if not entry.id:
        raise StorageError(
            f"Cannot update {type(entry).__name__} without an id"
        )
    return entry.id
