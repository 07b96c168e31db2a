"""
Tests for the Ledger Aggregator.

The aggregator is pure, so every test is a plain input/output check.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from hours_ledger.ledger import (
    LedgerDataError,
    combine_work_logs,
    compute_totals,
    sort_by_start_desc,
)
from hours_ledger.models.entries import PaymentEntry

from conftest import make_payment, make_work_log


class TestComputeTotals:
    """Totals and balances."""

    def test_empty_inputs_yield_zero_totals(self):
        totals = compute_totals([], [], Decimal("60000"))
        assert totals.total_hours == 0
        assert totals.total_earnings == 0
        assert totals.total_payments_local == 0
        assert totals.total_payments_earnings_currency == 0
        assert totals.balance_earnings_currency == 0
        assert totals.balance_local == 0
        assert totals.work_log_count == 0
        assert totals.payment_count == 0
        assert totals.is_settled is True

    def test_single_work_log(self):
        """10 hours at 8 earns 80, nothing paid yet."""
        totals = compute_totals([make_work_log(hours="10", rate="8")], [])
        assert totals.total_hours == Decimal("10")
        assert totals.total_earnings == Decimal("80")
        assert totals.balance_earnings_currency == Decimal("80")

    def test_single_payment(self):
        """400000 at 50000 is 8 in the earnings currency."""
        totals = compute_totals([], [make_payment("400000", "50000")])
        assert totals.total_payments_local == Decimal("400000")
        assert totals.total_payments_earnings_currency == Decimal("8")
        assert totals.balance_earnings_currency == Decimal("-8")

    def test_payments_use_their_own_historical_rates(self):
        payments = [
            make_payment("500000", "50000"),
            make_payment("110000", "55000"),
        ]
        totals = compute_totals([], payments, Decimal("70000"))

        assert totals.total_payments_local == Decimal("610000")
        assert totals.total_payments_earnings_currency == Decimal("12")
        averaged = Decimal("610000") / Decimal("52500")
        at_live_rate = Decimal("610000") / Decimal("70000")
        assert totals.total_payments_earnings_currency != averaged
        assert totals.total_payments_earnings_currency != at_live_rate

    def test_total_earnings_is_sum_of_products(self):
        logs = [
            make_work_log(hours="1.5", rate="8.12"),
            make_work_log(hours="0.25", rate="10"),
            make_work_log(hours="3", rate="0"),
        ]
        totals = compute_totals(logs, [])
        assert totals.total_earnings == Decimal("1.5") * Decimal("8.12") + Decimal("2.5")
        assert totals.total_hours == Decimal("4.75")
        assert totals.work_log_count == 3

    def test_live_rate_does_not_change_payments_in_earnings_currency(self):
        logs = [make_work_log(hours="100", rate="8")]
        payments = [make_payment("400000", "50000"), make_payment("120000", "60000")]

        low = compute_totals(logs, payments, Decimal("40000"))
        high = compute_totals(logs, payments, Decimal("90000"))

        assert low.total_payments_earnings_currency == high.total_payments_earnings_currency
        assert low.balance_earnings_currency == high.balance_earnings_currency
        assert low.balance_local != high.balance_local

    def test_balance_identity(self):
        logs = [make_work_log(hours="7", rate="8.12")]
        payments = [make_payment("300000", "61000")]
        totals = compute_totals(logs, payments, Decimal("61000"))
        assert totals.balance_earnings_currency == (
            totals.total_earnings - totals.total_payments_earnings_currency
        )

    def test_balance_local_uses_live_rate(self):
        totals = compute_totals(
            [make_work_log(hours="10", rate="8")],
            [make_payment("400000", "50000")],
            Decimal("60000"),
        )
        assert totals.balance_earnings_currency == Decimal("72")
        assert totals.balance_local == Decimal("72") * Decimal("60000")

    def test_zero_live_rate_gives_zero_local_balance(self):
        totals = compute_totals(
            [make_work_log(hours="10", rate="8")],
            [make_payment("100000", "50000")],
            Decimal("0"),
        )
        assert totals.balance_earnings_currency == Decimal("78")
        assert totals.balance_local == 0

    def test_live_rate_defaults_to_unset(self):
        totals = compute_totals([make_work_log()], [])
        assert totals.balance_local == 0

    def test_float_live_rate_is_converted_exactly(self):
        totals = compute_totals([make_work_log(hours="1", rate="1")], [], 0.1)
        assert totals.balance_local == Decimal("0.1")

    def test_negative_live_rate_is_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            compute_totals([], [], Decimal("-1"))

    def test_zero_payment_rate_is_a_data_error(self):
        """Legacy rows can bypass validation; they must not divide by zero."""
        corrupt = PaymentEntry.model_construct(
            id="legacy-1",
            amount=Decimal("1000"),
            exchange_rate=Decimal("0"),
            date=datetime(2023, 1, 1, tzinfo=timezone.utc),
        )
        with pytest.raises(LedgerDataError) as exc_info:
            compute_totals([], [corrupt])
        assert exc_info.value.payment_id == "legacy-1"

    def test_inputs_are_not_modified(self):
        logs = [make_work_log(hours="2", rate="5")]
        payments = [make_payment()]
        compute_totals(logs, payments, Decimal("50000"))
        assert logs[0].hours == Decimal("2")
        assert payments[0].amount == Decimal("400000")

    def test_accepts_generators(self):
        totals = compute_totals(
            (make_work_log() for _ in range(3)),
            (make_payment() for _ in range(2)),
        )
        assert totals.work_log_count == 3
        assert totals.payment_count == 2


class TestWorkLogOrdering:
    """Combining and sorting imported and manual work logs."""

    def test_combine_keeps_both_sources_without_dedup(self, imported_entry):
        manual = make_work_log(
            hours="2",
            rate="8.12",
            description="Synced",
            start=imported_entry.start,
        )
        combined = combine_work_logs([imported_entry], [manual])
        assert combined == [imported_entry, manual]
        assert compute_totals(combined, []).total_hours == Decimal("4")

    def test_sort_by_start_desc(self):
        old = make_work_log(start=datetime(2024, 1, 1, tzinfo=timezone.utc))
        new = make_work_log(start=datetime(2024, 6, 1, tzinfo=timezone.utc))
        undated = make_work_log()
        assert sort_by_start_desc([old, undated, new]) == [new, old, undated]
