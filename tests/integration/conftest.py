import asyncio
import json
import sys
import time
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from clearsight.core.config import Config  # noqa: E402
from clearsight.core.database.memory_store import MemoryStore  # noqa: E402
from clearsight.core.models.analysis import ComparisonResult, RhetoricResult, SentimentAnalysis  # noqa: E402
from clearsight.core.models.article import ArticleInput  # noqa: E402
from clearsight.core.models.enrichment import AnalysisKind  # noqa: E402
from clearsight.integrations.groq_client import AnalysisReply  # noqa: E402


NEUTRAL_SENTIMENT: Dict[str, Any] = {
    "tone": "neutral",
    "emotions": {"joy": 0.1, "trust": 0.2, "fear": 0.1, "anger": 0.0,
                 "sadness": 0.0, "anticipation": 0.3, "disgust": 0.0, "surprise": 0.1},
    "rhetoric": {"analytical": 0.7, "supportive": 0.1, "persuasive": 0.1,
                 "alarmist": 0.0, "dismissive": 0.0, "sarcastic": 0.0},
    "loaded_language": 0.1,
    "certainty": {"certainty": 0.6, "speculation": 0.2},
}

RHETORIC_RESULT: Dict[str, Any] = {
    "overall_tone": "measured",
    "sentiment_label": "neutral",
    "rhetorical_devices": [{"device": "appeal to authority", "example": "experts say"}],
    "bias_indicators": ["relies on a single source"],
}

COMPARISON_RESULT: Dict[str, Any] = {
    "framing_differences": "Article 1 leads with costs, article 2 with benefits.",
    "tone_comparison": "Article 1 is cautious, article 2 upbeat.",
    "source_selection": "Article 2 quotes industry only.",
    "key_differences": "Only article 1 mentions the delay.",
    "bias_assessment": "Article 1 appears more neutral.",
}


# Chat completions fakes (stand-in for AsyncOpenAI)

def chat_response(content: Optional[str] = None,
                  tool_arguments: Any = None,
                  finish_reason: str = "stop",
                  prompt_tokens: int = 120,
                  completion_tokens: int = 80):
    tool_calls = None
    if tool_arguments is not None:
        arguments = tool_arguments if isinstance(tool_arguments, str) else json.dumps(tool_arguments)
        tool_calls = [SimpleNamespace(type="function", function=SimpleNamespace(name="result", arguments=arguments))]
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(index=0, message=message, finish_reason=finish_reason)],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
        model="fake-model",
    )


class FakeCompletions:
    """Replays scripted outcomes; the last one repeats once the script runs out."""

    def __init__(self, outcomes: List[Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeChatClient:
    def __init__(self, outcomes: List[Any]) -> None:
        self.completions = FakeCompletions(outcomes)
        self.chat = SimpleNamespace(completions=self.completions)


# Scoring client fake for pipeline tests

class FakeScoringClient:
    def __init__(self,
                 payloads: Optional[Dict[str, Dict[str, Any]]] = None,
                 delays: Optional[Dict[str, float]] = None,
                 errors: Optional[Dict[str, Exception]] = None) -> None:
        self.payloads = payloads or {}
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls: List[str] = []
        self.call_times: List[float] = []
        self.models = {
            AnalysisKind.SENTIMENT: "fake-sentiment",
            AnalysisKind.RHETORIC: "fake-rhetoric",
            AnalysisKind.COMPARISON: "fake-comparison",
        }

    def model_for(self, kind: AnalysisKind) -> str:
        return self.models[kind]

    async def _behave(self, text: str) -> None:
        self.calls.append(text)
        self.call_times.append(time.monotonic())
        if self.delays.get(text):
            await asyncio.sleep(self.delays[text])
        if text in self.errors:
            raise self.errors[text]

    async def analyse_sentiment(self, text: str) -> AnalysisReply:
        await self._behave(text)
        payload = self.payloads.get(text, NEUTRAL_SENTIMENT)
        return AnalysisReply(
            result=SentimentAnalysis.from_dict(payload),
            model=self.models[AnalysisKind.SENTIMENT],
            attempts=1,
            raw_response=payload,
            prompt_tokens=150,
            completion_tokens=60,
        )

    async def analyse_rhetoric(self, text: str) -> AnalysisReply:
        await self._behave(text)
        return AnalysisReply(
            result=RhetoricResult.from_dict(RHETORIC_RESULT),
            model=self.models[AnalysisKind.RHETORIC],
            attempts=1,
            raw_response=RHETORIC_RESULT,
        )

    async def analyse_comparison(self, primary_text: str, reference_text: str) -> AnalysisReply:
        await self._behave(f"{primary_text}|{reference_text}")
        return AnalysisReply(
            result=ComparisonResult.from_dict(COMPARISON_RESULT),
            model=self.models[AnalysisKind.COMPARISON],
            attempts=1,
            raw_response=COMPARISON_RESULT,
        )


# requests fakes for the NewsAPI client

class FakeResponse:
    def __init__(self, status_code: int = 200, json_data: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._json = json_data
        self.text = text if json_data is None else json.dumps(json_data)

    def json(self):
        if self._json is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json


class FakeSession:
    def __init__(self, responses: Optional[List[Any]] = None) -> None:
        self.responses = list(responses or [])
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        outcome = self.responses.pop(0) if self.responses else FakeResponse(200, {"status": "ok", "articles": []})
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def newsapi_article(n: int, **overrides) -> Dict[str, Any]:
    article = {
        "source": {"id": None, "name": f"Outlet {n}"},
        "author": "Staff",
        "title": f"Headline number {n}",
        "description": f"Description {n}",
        "url": f"https://news.example.com/story-{n}",
        "urlToImage": None,
        "publishedAt": "2024-03-01T12:30:45Z",
        "content": f"Body text of story {n}",
    }
    article.update(overrides)
    return article


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fake_scoring_client_factory():
    def _factory(**kwargs) -> FakeScoringClient:
        return FakeScoringClient(**kwargs)

    return _factory


@pytest.fixture
def fake_chat_client_factory():
    def _factory(*outcomes) -> FakeChatClient:
        return FakeChatClient(list(outcomes))

    return _factory


@pytest.fixture
def sample_inputs() -> List[ArticleInput]:
    return [
        ArticleInput(url="https://news.example.com/a", title="Markets rally", source="Wire",
                     content="Stocks climbed on Tuesday."),
        ArticleInput(url="https://news.example.com/b", title="Storm warning", source="Wire",
                     content="Forecasters expect heavy rain."),
        ArticleInput(url="https://news.example.com/c", title="Council vote", source="Local",
                     description="The council voted 5-2."),
    ]


@pytest.fixture
def test_config() -> Config:
    config = Config()
    config.integrations.groq_api_key = "test-key"
    config.integrations.news_api_key = "news-key"
    return config
