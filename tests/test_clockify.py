"""Tests for the Clockify shared report client."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import httpx
import pytest
from tenacity import wait_none

from hours_ledger.services.time_report import ClockifyReportSource, TimeReportError

REPORT_URL = "https://reports.example.test/shared/abc"


@pytest.fixture
def report_payload():
    """Shared report as Clockify returns it."""
    return {
        "totals": [],
        "timeentries": [
            {
                "_id": "65a1",
                "description": "API work",
                "rate": 2500,
                "timeInterval": {
                    "start": "2024-05-01T09:00:00Z",
                    "end": "2024-05-01T10:30:00Z",
                    "duration": 5400,
                },
            },
            {
                "_id": "65a2",
                "description": "",
                "timeInterval": {
                    "start": "2024-05-02T09:00:00Z",
                    "end": None,
                    "duration": None,
                },
            },
        ],
    }


def json_response(payload):
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.json = MagicMock(return_value=payload)
    return response


@pytest.fixture
def source():
    return ClockifyReportSource(report_url=REPORT_URL, timeout_seconds=5)


class TestClockifyReportSource:

    @pytest.mark.asyncio
    async def test_fetch_parses_entries(self, source, mock_httpx_client, report_payload):
        mock_httpx_client.get.return_value = json_response(report_payload)

        with patch.object(source, "_get_client", return_value=mock_httpx_client):
            entries = await source.fetch()

        mock_httpx_client.get.assert_awaited_once()
        assert mock_httpx_client.get.call_args.args[0] == REPORT_URL
        assert [e.source_id for e in entries] == ["65a1", "65a2"]
        first = entries[0]
        assert first.description == "API work"
        assert first.duration_seconds == Decimal("5400")
        assert first.reported_rate == Decimal("2500")
        assert first.start_time.tzinfo is not None
        assert entries[1].duration_seconds is None

    @pytest.mark.asyncio
    async def test_fetch_accepts_bare_list(self, source, mock_httpx_client, report_payload):
        mock_httpx_client.get.return_value = json_response(report_payload["timeentries"])

        with patch.object(source, "_get_client", return_value=mock_httpx_client):
            entries = await source.fetch()

        assert len(entries) == 2

    @pytest.mark.asyncio
    async def test_empty_report(self, source, mock_httpx_client):
        mock_httpx_client.get.return_value = json_response({"timeentries": []})

        with patch.object(source, "_get_client", return_value=mock_httpx_client):
            assert await source.fetch() == []

    @pytest.mark.asyncio
    async def test_http_error_status(self, source):
        def handler(request):
            return httpx.Response(404, request=request)

        source._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        with pytest.raises(TimeReportError) as exc_info:
            await source.fetch()
        assert exc_info.value.status_code == 404
        await source.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self, source):
        def handler(request):
            return httpx.Response(200, text="<html>not json</html>", request=request)

        source._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        with pytest.raises(TimeReportError, match="not valid JSON"):
            await source.fetch()
        await source.close()

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried_then_reported(self, source, mock_httpx_client):
        mock_httpx_client.get.side_effect = httpx.ConnectError("connection refused")

        with patch.object(ClockifyReportSource._get_report.retry, "wait", wait_none()), \
                patch.object(source, "_get_client", return_value=mock_httpx_client):
            with pytest.raises(TimeReportError, match="connection refused"):
                await source.fetch()

        assert mock_httpx_client.get.await_count == 3

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, source, mock_httpx_client):
        mock_httpx_client.get.return_value = json_response("nope")

        with patch.object(source, "_get_client", return_value=mock_httpx_client):
            with pytest.raises(TimeReportError, match="Unexpected report shape"):
                await source.fetch()

    @pytest.mark.asyncio
    async def test_malformed_entry(self, source, mock_httpx_client):
        mock_httpx_client.get.return_value = json_response({"timeentries": [{"description": "x"}]})

        with patch.object(source, "_get_client", return_value=mock_httpx_client):
            with pytest.raises(TimeReportError, match="malformed"):
                await source.fetch()

    @pytest.mark.asyncio
    async def test_missing_url(self):
        source = ClockifyReportSource(report_url="unused")
        source.report_url = ""
        with pytest.raises(TimeReportError, match="No time report URL"):
            await source.fetch()
