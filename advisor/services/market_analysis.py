"""
News-driven market analysis.

Two personas look at the latest headlines in sequence: the gossiper picks out
trends and sentiment, then the financial analyst turns that into a
market-impact view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from ..core.personas import PersonaManager
from ..core.session import TurnBudget
from ..providers.base import NewsProvider
from ..providers.llm.base import LLMProvider, system, user

logger = logging.getLogger(__name__)


@dataclass
class MarketAnalysis:
    headlines: List[str]
    trends: str
    outlook: str

    def render(self) -> str:
        return (
            "🗞️ News Pulse\n\n"
            f"{self.trends}\n\n"
            "📈 Market Outlook\n\n"
            f"{self.outlook}"
        )


class MarketAnalyst:
    """Runs the gossiper and financial analyst personas over fresh headlines."""

    PERSONAS = ["gossiper", "financial_analyst"]

    def __init__(
        self,
        llm_provider: LLMProvider,
        news_provider: NewsProvider,
        persona_manager: PersonaManager,
        budget: TurnBudget,
        headline_count: int = 12,
        temperature: float = 0.7,
    ):
        self.llm_provider = llm_provider
        self.news_provider = news_provider
        self.persona_manager = persona_manager
        self.budget = budget
        self.headline_count = headline_count
        self.temperature = temperature

    async def run(self) -> MarketAnalysis:
        """Raises FetchError or ProviderError; callers surface them."""
        news = await self.news_provider.fetch_latest()
        headlines = [item.title for item in news[: self.headline_count]]
        if not headlines:
            logger.info("No headlines available for market analysis")
        news_context = ". ".join(headlines) or "No recent headlines were available."

        gossiper = self.persona_manager.get_persona(self.PERSONAS[0])
        trends = await self.llm_provider.complete(
            [
                system(gossiper.system_prompt),
                user(f"Analyze these crypto news and identify the key trends. News context: {news_context}"),
            ],
            model=self.budget.model,
            max_tokens=self.budget.max_tokens,
            temperature=self.temperature,
        )

        analyst = self.persona_manager.get_persona(self.PERSONAS[1])
        outlook = await self.llm_provider.complete(
            [
                system(analyst.system_prompt),
                user(
                    "Provide a comprehensive analysis of the market trends based on recent news.\n\n"
                    f"News context: {news_context}\n\n"
                    f"A news interpreter summarized the mood as:\n{trends}"
                ),
            ],
            model=self.budget.model,
            max_tokens=self.budget.max_tokens,
            temperature=self.temperature,
        )

        logger.info("Market analysis completed over %d headlines", len(headlines))
        return MarketAnalysis(headlines=headlines, trends=trends, outlook=outlook)
