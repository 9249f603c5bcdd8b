"""AI Agents package."""

from moneytracker.agents.ai_agents import (
    ADVICE_EMPTY,
    ADVICE_FAILED,
    ADVICE_UNAVAILABLE,
    AdvisorAgent,
    QuoteAgent,
)
from moneytracker.agents.json_extraction import extract_first_json_object

__all__ = [
    "ADVICE_EMPTY",
    "ADVICE_FAILED",
    "ADVICE_UNAVAILABLE",
    "AdvisorAgent",
    "QuoteAgent",
    "extract_first_json_object",
]
