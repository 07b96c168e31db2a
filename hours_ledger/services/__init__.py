"""Services package."""

from hours_ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    CorruptRecordError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from hours_ledger.services.time_report import (
    ClockifyReportSource,
    TimeReportError,
    TimeReportSource,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "CorruptRecordError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStoreInterface",
    "StorageError",
    # Time report services
    "ClockifyReportSource",
    "TimeReportError",
    "TimeReportSource",
]
