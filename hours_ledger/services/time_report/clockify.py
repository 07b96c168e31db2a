"""
Clockify Shared Report Client

Fetches a Clockify shared report as JSON and turns its `timeentries`
array into RawTimeEntry objects. No authentication: shared reports are
public by URL.

Only transport errors are retried. A 4xx/5xx answer or a body we
cannot parse fails immediately with TimeReportError.
"""

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from hours_ledger.config import get_settings
from hours_ledger.models.entries import RawTimeEntry
from hours_ledger.services.time_report.interface import (
    TimeReportError,
    TimeReportSource,
)

logger = structlog.get_logger(__name__)


class ClockifyReportSource(TimeReportSource):
    """Async client for one Clockify shared report."""

    def __init__(
        self,
        report_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings().clockify
        self.report_url = report_url or settings.report_url
        self._timeout = timeout_seconds or settings.timeout_seconds
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    async def _get_report(self) -> Any:
        client = await self._get_client()
        response = await client.get(
            self.report_url,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse_entry(item: dict) -> RawTimeEntry:
        interval = item.get("timeInterval") or {}
        return RawTimeEntry(
            source_id=str(item.get("_id") or item.get("id") or ""),
            description=item.get("description"),
            start_time=interval.get("start"),
            end_time=interval.get("end"),
            duration_seconds=interval.get("duration"),
            reported_rate=item.get("rate"),
        )

    async def fetch(self) -> list[RawTimeEntry]:
        """
        Fetch and parse the report.

        Accepts either the full report object (entries under
        `timeentries`) or a bare list of entries.
        """
        if not self.report_url:
            raise TimeReportError("No time report URL configured")

        try:
            data = await self._get_report()
        except httpx.HTTPStatusError as e:
            raise TimeReportError(
                f"Failed to fetch report: {e.response.status_code} {e.response.reason_phrase}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TimeReportError(f"Failed to fetch report: {e}") from e
        except ValueError as e:
            raise TimeReportError(f"Report is not valid JSON: {e}") from e

        if isinstance(data, dict):
            items = data.get("timeentries") or []
        elif isinstance(data, list):
            items = data
        else:
            raise TimeReportError(
                f"Unexpected report shape: {type(data).__name__}",
                details=data,
            )

        try:
            entries = [self._parse_entry(item) for item in items]
        except (ValidationError, AttributeError) as e:
            raise TimeReportError(f"Report entry is malformed: {e}") from e

        logger.info("time_report_fetched", entry_count=len(entries))
        return entries
