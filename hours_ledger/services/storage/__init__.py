"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the persistent backend; the in-memory store backs tests
and unconfigured local runs.
"""

from hours_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptRecordError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from hours_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
)
from hours_ledger.services.storage.migrations import (
    CURRENT_SCHEMA_VERSION,
    MigrationError,
    migrate_header,
    migrate_record,
)
from hours_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStoreInterface",
    # Exceptions
    "ConnectionError",
    "CorruptRecordError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    # Migrations
    "CURRENT_SCHEMA_VERSION",
    "MigrationError",
    "migrate_header",
    "migrate_record",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
]
