"""Abstract time report source and its errors."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from hours_ledger.models.entries import RawTimeEntry


class TimeReportSource(ABC):
    """Anything that can hand us raw time tracking entries."""

    @abstractmethod
    async def fetch(self) -> list[RawTimeEntry]:
        """
        Fetch every entry currently in the report.

        Raises:
            TimeReportError: If the report cannot be fetched or parsed
        """
        pass


class TimeReportError(Exception):
    """The time report could not be fetched or understood."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.details = details
