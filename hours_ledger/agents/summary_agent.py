"""
Narrative Summary Agent

Asks Gemini to restate the ledger totals as a short paragraph.

CRITICAL BOUNDARIES:
- CAN: Rephrase the figures it is given
- CANNOT: Compute, adjust or invent figures
- CANNOT: Fail loudly. Any error yields FALLBACK_SUMMARY.

The LLM is a WRITER, not a CALCULATOR. Every number in its
prompt was already computed by the Ledger Aggregator.
"""

from typing import Optional

import google.generativeai as genai
import structlog

from hours_ledger.config import GeminiSettings, get_settings
from hours_ledger.models.entries import LedgerSummary, LedgerTotals


logger = structlog.get_logger(__name__)

FALLBACK_SUMMARY = (
    "Sorry, I couldn't generate a summary at this time. "
    "Please check the server logs for more details."
)


class SummaryAgent:
    """
    Produces a prose summary of LedgerTotals.

    The Gemini model is configured lazily, on first use, so a missing
    API key only disables summaries instead of breaking app startup.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        earnings_currency: Optional[str] = None,
        local_currency: Optional[str] = None,
    ):
        self._settings = settings
        app_settings = get_settings().app
        self.earnings_currency = earnings_currency or app_settings.earnings_currency
        self.local_currency = local_currency or app_settings.local_currency
        self._model = None

    def _configure_genai(self):
        """Configure Google Generative AI."""
        settings = self._settings or get_settings().gemini
        genai.configure(api_key=settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
            }
        )

    def build_prompt(self, totals: LedgerTotals) -> str:
        earn = self.earnings_currency
        local = self.local_currency
        return f"""Provide a summary of the financial status based on the following information:

Total Hours Worked: {totals.total_hours:.2f}
Total Earnings in {earn}: {totals.total_earnings:.2f}
Total Payments in {local}: {totals.total_payments_local:.0f}
Total Payments in {earn}: {totals.total_payments_earnings_currency:.2f}
Remaining Balance in {local}: {totals.balance_local:.0f}
Remaining Balance in {earn}: {totals.balance_earnings_currency:.2f}

Give a concise summary. Use ONLY the figures above."""

    async def summarize(self, totals: LedgerTotals) -> LedgerSummary:
        """
        Summarize the totals.

        Never raises. On any failure (missing key, network, empty
        response) the fixed fallback message is returned with
        `generated=False`.
        """
        try:
            if self._model is None:
                self._configure_genai()
            response = await self._model.generate_content_async(
                self.build_prompt(totals)
            )
            text = response.text.strip()
            if not text:
                raise ValueError("Empty response from model")
            return LedgerSummary(summary=text)
        except Exception as e:
            logger.warning("summary_generation_failed", error=str(e))
            return LedgerSummary(summary=FALLBACK_SUMMARY, generated=False)
