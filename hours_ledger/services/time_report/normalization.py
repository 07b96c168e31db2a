"""
Normalization of imported time entries.

Maps untrusted RawTimeEntry rows onto WorkLogEntry. The reported
rate is DISCARDED: every imported entry is billed at the configured
fixed rate, because the report's rate field is stale.
"""

from decimal import Decimal
from typing import Iterable

from pydantic import ValidationError

from hours_ledger.ledger.aggregator import sort_by_start_desc
from hours_ledger.models.entries import EntrySource, RawTimeEntry, WorkLogEntry
from hours_ledger.services.time_report.interface import TimeReportError

SECONDS_PER_HOUR = Decimal("3600")
IMPORTED_ID_PREFIX = "clockify-"
NO_DESCRIPTION = "(no description)"


def normalize_time_entry(raw: RawTimeEntry, fixed_rate: Decimal) -> WorkLogEntry:
    """
    Convert one report row into an imported, read-only work log entry.

    Raises:
        TimeReportError: If the row cannot form a valid work log
    """
    duration = raw.duration_seconds or Decimal("0")
    try:
        return WorkLogEntry(
            id=f"{IMPORTED_ID_PREFIX}{raw.source_id}",
            description=(raw.description or "").strip() or NO_DESCRIPTION,
            hours=duration / SECONDS_PER_HOUR,
            rate=fixed_rate,
            start=raw.start_time,
            end=raw.end_time,
            source=EntrySource.IMPORTED,
        )
    except ValidationError as e:
        raise TimeReportError(
            f"Unusable time entry {raw.source_id}",
            details=e.errors(include_url=False),
        ) from e


def normalize_time_entries(
    raws: Iterable[RawTimeEntry],
    fixed_rate: Decimal,
) -> list[WorkLogEntry]:
    """Normalize a whole report, newest entry first."""
    return sort_by_start_desc(
        normalize_time_entry(raw, fixed_rate) for raw in raws
    )
