"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("GOOGLE_SHEETS_CREDENTIALS_PATH", __file__)
os.environ.setdefault("GOOGLE_SHEETS_SPREADSHEET_ID", "test-spreadsheet")
os.environ.setdefault("CLOCKIFY_REPORT_URL", "https://reports.example.test/shared/abc")

from hours_ledger.audit import AuditLogger  # noqa: E402
from hours_ledger.models.entries import (  # noqa: E402
    EntrySource,
    PaymentEntry,
    RawTimeEntry,
    WorkLogEntry,
)
from hours_ledger.services.storage import (  # noqa: E402
    InMemoryAuditStorage,
    InMemoryRecordStore,
)


def make_work_log(
    hours: str = "1",
    rate: str = "8",
    description: str = "Work",
    **kwargs,
) -> WorkLogEntry:
    return WorkLogEntry(
        description=description,
        hours=Decimal(hours),
        rate=Decimal(rate),
        **kwargs,
    )


def make_payment(
    amount: str = "400000",
    exchange_rate: str = "50000",
    **kwargs,
) -> PaymentEntry:
    kwargs.setdefault("date", datetime(2024, 5, 1, tzinfo=timezone.utc))
    return PaymentEntry(
        amount=Decimal(amount),
        exchange_rate=Decimal(exchange_rate),
        **kwargs,
    )


def make_raw_entry(
    source_id: str = "abc123",
    duration_seconds: str = "3600",
    reported_rate: str = "20",
    **kwargs,
) -> RawTimeEntry:
    kwargs.setdefault("start_time", datetime(2024, 5, 1, 9, tzinfo=timezone.utc))
    kwargs.setdefault("end_time", datetime(2024, 5, 1, 10, tzinfo=timezone.utc))
    return RawTimeEntry(
        source_id=source_id,
        description=kwargs.pop("description", "Imported task"),
        duration_seconds=Decimal(duration_seconds),
        reported_rate=Decimal(reported_rate),
        **kwargs,
    )


@pytest.fixture
def store():
    """Empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def imported_entry():
    return make_work_log(
        hours="2",
        rate="8.12",
        description="Synced",
        id="clockify-xyz",
        source=EntrySource.IMPORTED,
        start=datetime(2024, 5, 2, 9, tzinfo=timezone.utc),
    )


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.get = AsyncMock()
    client.aclose = AsyncMock()
    return client
