"""AI Agents package."""

from hours_ledger.agents.summary_agent import FALLBACK_SUMMARY, SummaryAgent

__all__ = ["FALLBACK_SUMMARY", "SummaryAgent"]
