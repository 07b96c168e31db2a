"""Tests for the narrative summary agent. Gemini is always mocked."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hours_ledger.agents import FALLBACK_SUMMARY, SummaryAgent
from hours_ledger.config import GeminiSettings
from hours_ledger.models.entries import LedgerTotals


@pytest.fixture
def totals():
    return LedgerTotals(
        total_hours=Decimal("10"),
        total_earnings=Decimal("80"),
        total_payments_local=Decimal("400000"),
        total_payments_earnings_currency=Decimal("8"),
        balance_earnings_currency=Decimal("72"),
        balance_local=Decimal("4320000"),
        work_log_count=1,
        payment_count=1,
    )


@pytest.fixture
def agent():
    return SummaryAgent(
        settings=GeminiSettings(api_key="test-key"),
        earnings_currency="USD",
        local_currency="IRT",
    )


def mock_model(text=None, error=None):
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=MagicMock(text=text))
    return model


class TestSummaryAgent:

    def test_prompt_contains_every_figure(self, agent, totals):
        prompt = agent.build_prompt(totals)
        assert "Total Hours Worked: 10.00" in prompt
        assert "Total Earnings in USD: 80.00" in prompt
        assert "Total Payments in IRT: 400000" in prompt
        assert "Total Payments in USD: 8.00" in prompt
        assert "Remaining Balance in IRT: 4320000" in prompt
        assert "Remaining Balance in USD: 72.00" in prompt

    @pytest.mark.asyncio
    async def test_summarize(self, agent, totals):
        agent._model = mock_model(text="  You are owed 72 USD.  ")

        summary = await agent.summarize(totals)

        assert summary.summary == "You are owed 72 USD."
        assert summary.generated is True
        agent._model.generate_content_async.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_model_error_returns_fallback(self, agent, totals):
        agent._model = mock_model(error=RuntimeError("quota exceeded"))

        summary = await agent.summarize(totals)

        assert summary.summary == FALLBACK_SUMMARY
        assert summary.generated is False

    @pytest.mark.asyncio
    async def test_empty_response_returns_fallback(self, agent, totals):
        agent._model = mock_model(text="   ")
        summary = await agent.summarize(totals)
        assert summary.summary == FALLBACK_SUMMARY

    @pytest.mark.asyncio
    async def test_configuration_error_returns_fallback(self, agent, totals):
        with patch.object(agent, "_configure_genai", side_effect=ValueError("no key")):
            summary = await agent.summarize(totals)
        assert summary.generated is False

    def test_fallback_text(self):
        assert FALLBACK_SUMMARY == (
            "Sorry, I couldn't generate a summary at this time. "
            "Please check the server logs for more details."
        )
