"""
Ledger Aggregator

Reduces work logs and payments into the figures shown on the dashboard.

CRITICAL RULES:
1. Every past payment is converted with ITS OWN historical exchange rate.
   The live rate never touches payments already received.
2. The live rate is used for exactly one figure: the outstanding balance
   restated in the local currency. Money not yet paid has no historical rate.
3. This module is pure. No I/O, no logging, no mutation of its inputs.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from hours_ledger.models.entries import LedgerTotals, PaymentEntry, WorkLogEntry


ZERO = Decimal("0")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class LedgerDataError(ValueError):
    """
    Stored data makes a figure undefined.

    Raised for legacy or corrupt payments whose exchange rate is not
    positive. Validation keeps such payments out of new data; this
    catches anything that slipped past it.
    """

    def __init__(self, message: str, payment_id: Optional[str] = None):
        super().__init__(message)
        self.payment_id = payment_id


def compute_totals(
    work_logs: Iterable[WorkLogEntry],
    payments: Iterable[PaymentEntry],
    current_exchange_rate: Decimal = ZERO,
) -> LedgerTotals:
    """
    Compute totals and balances.

    Args:
        work_logs: All work log entries (imported and manual). Order is irrelevant.
        payments: All payment entries. Order is irrelevant.
        current_exchange_rate: Live rate, local units per earnings unit.
            Zero means "unset" and yields a zero local balance.

    Returns:
        LedgerTotals with every figure in Decimal.

    Raises:
        LedgerDataError: A payment has a non-positive exchange rate.
        ValueError: The live rate is negative.
    """
    if not isinstance(current_exchange_rate, Decimal):
        current_exchange_rate = Decimal(str(current_exchange_rate))
    if current_exchange_rate < 0:
        raise ValueError(
            f"Live exchange rate cannot be negative: {current_exchange_rate}"
        )

    total_hours = ZERO
    total_earnings = ZERO
    work_log_count = 0
    for log in work_logs:
        total_hours += log.hours
        total_earnings += log.hours * log.rate
        work_log_count += 1

    total_payments_local = ZERO
    total_payments_earnings_currency = ZERO
    payment_count = 0
    for payment in payments:
        if payment.exchange_rate <= 0:
            raise LedgerDataError(
                f"Payment {payment.id or '(unsaved)'} has exchange rate "
                f"{payment.exchange_rate}; cannot convert it",
                payment_id=payment.id,
            )
        total_payments_local += payment.amount
        total_payments_earnings_currency += payment.amount / payment.exchange_rate
        payment_count += 1

    balance_earnings_currency = total_earnings - total_payments_earnings_currency
    if current_exchange_rate > 0:
        balance_local = balance_earnings_currency * current_exchange_rate
    else:
        balance_local = ZERO

    return LedgerTotals(
        total_hours=total_hours,
        total_earnings=total_earnings,
        total_payments_local=total_payments_local,
        total_payments_earnings_currency=total_payments_earnings_currency,
        balance_earnings_currency=balance_earnings_currency,
        balance_local=balance_local,
        work_log_count=work_log_count,
        payment_count=payment_count,
    )


def sort_by_start_desc(work_logs: Iterable[WorkLogEntry]) -> list[WorkLogEntry]:
    """Newest first; entries without a start time go last."""
    return sorted(
        work_logs,
        key=lambda log: log.start or _OLDEST,
        reverse=True,
    )


def combine_work_logs(
    imported: Sequence[WorkLogEntry],
    manual: Sequence[WorkLogEntry],
) -> list[WorkLogEntry]:
    """
    Imported rows first, then manual rows.

    No deduplication: a manual entry covering the same time window as
    an imported one is counted twice. Reconciling the two is left to
    the user.
    """
    return [*imported, *manual]
