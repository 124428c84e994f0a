import asyncio
from typing import Any, Dict, List, Optional

import pytest

from advisor.core import SessionContextTracker, TurnBudget, TurnKind
from advisor.providers.base import NewsProvider
from advisor.providers.llm.base import LLMMessage, LLMProvider, LLMResponse
from advisor.types import NewsItem

BASE_PROMPT = "You are a crypto advisor."

BUDGETS = {
    TurnKind.INTRODUCTION: TurnBudget(model="detailed-model", max_tokens=1000),
    TurnKind.CONTINUATION: TurnBudget(model="quick-model", max_tokens=150),
}


class FakeLLMProvider(LLMProvider):
    """Scripted provider: pops replies (or exceptions) in order and records calls."""

    def __init__(self, replies: Optional[List[Any]] = None):
        self.replies = list(replies or [])
        self.calls: List[Dict[str, Any]] = []
        self.gates: Dict[int, asyncio.Event] = {}
        self.closed = False
        super().__init__(api_key="test-key", model="quick-model")

    def _setup_client(self, **kwargs) -> None:
        pass

    def hold_call(self, index: int) -> asyncio.Event:
        """Make call number ``index`` wait until the returned event is set."""
        gate = asyncio.Event()
        self.gates[index] = gate
        return gate

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs,
    ) -> LLMResponse:
        index = len(self.calls)
        self.calls.append({
            "messages": list(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
            "model": kwargs.get("model"),
        })
        gate = self.gates.get(index)
        if gate is not None:
            await gate.wait()
        reply = self.replies.pop(0) if self.replies else f"reply-{index}"
        if isinstance(reply, BaseException):
            raise reply
        return self._create_response(content=reply, model=kwargs.get("model") or self.model)

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "model": self.model}

    async def close(self) -> None:
        self.closed = True


class FakeNewsProvider(NewsProvider):
    name = "fake-news"

    def __init__(self, results: Optional[List[Any]] = None):
        self.results = list(results or [])
        self.calls = 0
        self.closed = False

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def fetch_latest(self) -> List[NewsItem]:
        self.calls += 1
        result = self.results.pop(0) if self.results else make_news(3)
        if isinstance(result, BaseException):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True


def make_news(count: int) -> List[NewsItem]:
    return [
        NewsItem(
            title=f"Headline {i}",
            url=f"https://example.com/news/{i}",
            source="Example Wire",
            published_at="2024-01-15T12:00:00Z",
        )
        for i in range(count)
    ]


@pytest.fixture
def fake_llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def tracker(fake_llm) -> SessionContextTracker:
    return SessionContextTracker(
        llm_provider=fake_llm,
        base_prompt=BASE_PROMPT,
        budgets=BUDGETS,
        temperature=0.7,
    )


