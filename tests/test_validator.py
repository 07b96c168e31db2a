"""Tests for entry form validation."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from hours_ledger.models.entries import EntrySource, PaymentForm, WorkLogForm
from hours_ledger.validation import EntryValidationError, EntryValidator


@pytest.fixture
def validator():
    return EntryValidator()


def work_log_form(**overrides) -> WorkLogForm:
    values = {
        "description": "Feature work",
        "hours": Decimal("2"),
        "rate": Decimal("8.12"),
    }
    values.update(overrides)
    return WorkLogForm(**values)


def payment_form(**overrides) -> PaymentForm:
    values = {
        "amount": Decimal("400000"),
        "exchange_rate": Decimal("50000"),
        "date": datetime(2024, 5, 1),
    }
    values.update(overrides)
    return PaymentForm(**values)


class TestWorkLogValidation:

    def test_valid_form(self, validator):
        result = validator.validate_work_log(work_log_form())
        assert result.is_valid is True
        assert result.issues == []

    @pytest.mark.parametrize("description", [None, "", "   "])
    def test_description_required(self, validator, description):
        result = validator.validate_work_log(work_log_form(description=description))
        assert result.is_valid is False
        assert result.errors_for("description") == ["Description is required"]

    @pytest.mark.parametrize("field", ["hours", "rate"])
    @pytest.mark.parametrize("value", [Decimal("0"), Decimal("-1.5")])
    def test_hours_and_rate_must_be_positive(self, validator, field, value):
        result = validator.validate_work_log(work_log_form(**{field: value}))
        assert result.is_valid is False
        [issue] = result.issues
        assert issue.field == field
        assert issue.issue_type == "not_positive"

    def test_missing_hours_is_reported_as_missing(self, validator):
        result = validator.validate_work_log(work_log_form(hours=None))
        assert result.issues[0].issue_type == "missing"
        assert result.errors_for("hours") == ["Hours is required"]

    def test_end_before_start(self, validator):
        form = work_log_form(
            start=datetime(2024, 5, 1, 10),
            end=datetime(2024, 5, 1, 9, tzinfo=timezone.utc),
        )
        result = validator.validate_work_log(form)
        assert result.errors_for("end") == ["End time is before start time"]

    def test_reports_every_issue_at_once(self, validator):
        result = validator.validate_work_log(WorkLogForm())
        assert result.error_count == 3
        assert {i.field for i in result.issues} == {"description", "hours", "rate"}

    def test_build_work_log_is_manual(self, validator):
        entry = validator.build_work_log(work_log_form(), entry_id="w-1")
        assert entry.id == "w-1"
        assert entry.source == EntrySource.MANUAL
        assert entry.hours == Decimal("2")

    def test_long_description_is_accepted(self, validator):
        form = work_log_form(description="x" * 600)
        assert validator.validate_work_log(form).is_valid is True
        assert len(validator.build_work_log(form).description) == 600

    def test_build_work_log_raises_with_result(self, validator):
        with pytest.raises(EntryValidationError) as exc_info:
            validator.build_work_log(work_log_form(rate=Decimal("0")))
        assert exc_info.value.result.errors_for("rate") == [
            "Rate must be a positive number"
        ]


class TestPaymentValidation:

    def test_valid_form(self, validator):
        assert validator.validate_payment(payment_form()).is_valid is True

    def test_zero_exchange_rate_is_rejected(self, validator):
        """A zero rate would make the payment unconvertible."""
        result = validator.validate_payment(payment_form(exchange_rate=Decimal("0")))
        assert result.is_valid is False
        assert result.errors_for("exchange_rate") == [
            "Exchange rate must be a positive number"
        ]

    def test_amount_must_be_positive(self, validator):
        result = validator.validate_payment(payment_form(amount=Decimal("-5")))
        assert result.errors_for("amount") == ["Amount must be a positive number"]

    def test_date_required(self, validator):
        result = validator.validate_payment(payment_form(date=None))
        assert result.errors_for("date") == ["Payment date is required"]

    def test_build_payment_drops_blank_description(self, validator):
        payment = validator.build_payment(payment_form(description="   "))
        assert payment.description is None
        assert payment.date.tzinfo == timezone.utc

    def test_long_note_is_accepted(self, validator):
        entry = validator.build_payment(payment_form(description="x" * 600))
        assert len(entry.description) == 600

    def test_build_payment_raises(self, validator):
        with pytest.raises(EntryValidationError, match="Payment date is required"):
            validator.build_payment(payment_form(date=None))


class TestUserFriendlySummary:

    def test_valid(self, validator):
        result = validator.validate_payment(payment_form())
        assert validator.get_user_friendly_summary(result) == "All checks passed."

    def test_lists_errors(self, validator):
        result = validator.validate_payment(PaymentForm())
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("Please fix the following:")
        assert "Amount is required" in summary
        assert "Payment date is required" in summary
