"""Entry validation package."""

from hours_ledger.validation.validator import EntryValidationError, EntryValidator

__all__ = ["EntryValidationError", "EntryValidator"]
