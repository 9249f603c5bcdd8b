"""
AI Agents for Money Tracker

DESIGN DECISION: Gemini is used for two narrow jobs, behind two small
classes with clear boundaries.

1. QUOTE AGENT:
   - CAN: Look up the current price and company name for a ticker
   - CANNOT: Touch stored positions (PortfolioService decides what to save)
   - MUST: Return None on ANY failure, never raise

2. ADVISOR AGENT:
   - CAN: Summarize figures we computed ourselves
   - CANNOT: Invent balances or holdings
   - MUST: Fall back to a fixed message when unavailable

Model text is free-form; structured data is pulled out of it with
extract_first_json_object so that fragile step stays isolated here.
"""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import google.generativeai as genai
import structlog

from moneytracker.agents.json_extraction import extract_first_json_object
from moneytracker.config import GeminiSettings
from moneytracker.models.finance import NAME_MAX_LENGTH, Quote


logger = structlog.get_logger(__name__)

ADVICE_UNAVAILABLE = "AI Service Unavailable (Check API Key)"
ADVICE_EMPTY = "Could not generate advice."
ADVICE_FAILED = "Could not generate advice due to an error."


def _to_price(value: Any) -> Optional[Decimal]:
    """Parse a model-supplied price; None unless positive and finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).replace(",", "").strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def _grounding_sources(response: Any) -> list[str]:
    """Collect web URIs from a grounded response, if any."""
    sources = []
    for candidate in getattr(response, "candidates", None) or []:
        metadata = getattr(candidate, "grounding_metadata", None)
        for chunk in getattr(metadata, "grounding_chunks", None) or []:
            uri = getattr(getattr(chunk, "web", None), "uri", None)
            if isinstance(uri, str) and uri:
                sources.append(uri)
        break  # first candidate only
    return sources


class QuoteAgent:
    """
    Stock quote lookup through Gemini.

    The model is asked for {"price": number, "name": string}. Taiwan
    listings are priced in TWD, US listings in USD.
    """

    def __init__(
        self,
        settings: GeminiSettings,
        model: Optional[Any] = None,
    ):
        self._settings = settings
        self._model = model
        if self._model is None and self._settings.api_key:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        tools = "google_search_retrieval" if self._settings.use_search_grounding else None
        self._model = genai.GenerativeModel(
            model_name=self._settings.quote_model_name,
            tools=tools,
            generation_config={
                "temperature": 0.0,  # Prices, not prose
                "max_output_tokens": 256,
            },
        )

    @staticmethod
    def build_prompt(symbol: str) -> str:
        return f"""Find the current stock price and full company name for "{symbol}".
If it is a Taiwan stock, provide the price in TWD. If US, in USD.
Return the output as a JSON object with keys "price" (number) and "name" (string)."""

    async def fetch_quote(self, symbol: str) -> Optional[Quote]:
        """
        Look up a quote for `symbol`.

        Returns None when the service is not configured, times out,
        errors, or answers without a usable JSON object.
        """
        symbol = (symbol or "").strip().upper()
        if not symbol:
            return None
        if self._model is None:
            logger.warning("quote_service_unconfigured", symbol=symbol)
            return None

        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(self.build_prompt(symbol)),
                timeout=self._settings.timeout_seconds,
            )
            text = response.text
        except asyncio.TimeoutError:
            logger.warning(
                "quote_lookup_timeout",
                symbol=symbol,
                timeout=self._settings.timeout_seconds,
            )
            return None
        except Exception as e:
            logger.warning("quote_lookup_failed", symbol=symbol, error=str(e))
            return None

        data = extract_first_json_object(text)
        if data is None:
            logger.info("quote_unparsable", symbol=symbol)
            return None

        price = _to_price(data.get("price"))
        if price is None:
            logger.info("quote_without_price", symbol=symbol, payload=data)
            return None

        name = data.get("name")
        name = name.strip() if isinstance(name, str) else ""
        return Quote(
            symbol=symbol,
            price=price,
            name=name[:NAME_MAX_LENGTH].rstrip() or None,
            sources=_grounding_sources(response),
        )


class AdvisorAgent:
    """
    Generates a short financial-health summary from computed figures.

    The prompt carries only numbers we derived from the user's own
    records; the model formats, it does not look anything up.
    """

    def __init__(
        self,
        settings: GeminiSettings,
        model: Optional[Any] = None,
    ):
        self._settings = settings
        self._model = model
        if self._model is None and self._settings.api_key:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.advice_model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    @staticmethod
    def build_prompt(
        total_balance: Decimal,
        expense_summary: str,
        portfolio_summary: str,
    ) -> str:
        return f"""You are a wise financial advisor.
My Total Bank Balance: {total_balance}
My Recent Top Expenses: {expense_summary or "none recorded"}
My Stock Portfolio: {portfolio_summary or "no holdings"}

Give me a concise, 3-sentence summary of my financial health and 1 specific actionable tip.
Tone: Professional but encouraging."""

    async def generate_advice(
        self,
        total_balance: Decimal,
        expense_summary: str,
        portfolio_summary: str,
    ) -> str:
        if self._model is None:
            return ADVICE_UNAVAILABLE

        prompt = self.build_prompt(total_balance, expense_summary, portfolio_summary)
        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(prompt),
                timeout=self._settings.timeout_seconds,
            )
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("advice_generation_failed", error=str(e))
            return ADVICE_FAILED

        return text or ADVICE_EMPTY
