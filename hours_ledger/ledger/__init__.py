"""Ledger computations package."""

from hours_ledger.ledger.aggregator import (
    LedgerDataError,
    combine_work_logs,
    compute_totals,
    sort_by_start_desc,
)

__all__ = [
    "LedgerDataError",
    "combine_work_logs",
    "compute_totals",
    "sort_by_start_desc",
]
