"""
Time Report Services Package

Fetches entries from an external time tracker and normalizes them
into read-only work log entries.
"""

from hours_ledger.services.time_report.interface import (
    TimeReportError,
    TimeReportSource,
)
from hours_ledger.services.time_report.clockify import ClockifyReportSource
from hours_ledger.services.time_report.normalization import (
    IMPORTED_ID_PREFIX,
    NO_DESCRIPTION,
    normalize_time_entries,
    normalize_time_entry,
)

__all__ = [
    "ClockifyReportSource",
    "IMPORTED_ID_PREFIX",
    "NO_DESCRIPTION",
    "TimeReportError",
    "TimeReportSource",
    "normalize_time_entries",
    "normalize_time_entry",
]
