#!/usr/bin/env python3
"""
Scoring service integration for article analysis.

Talks to an OpenAI-compatible chat completions endpoint (Groq by default)
and turns its output into typed analysis results:
- Sentiment: free-form JSON content parsed defensively
- Rhetoric and comparison: forced function calls whose arguments are the result

Both request strategies share one retry loop. Output that does not parse
into the expected schema consumes an attempt; well-formed HTTP errors and
transport failures are terminal.
"""

import asyncio
import os
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

import openai
from openai import AsyncOpenAI

from ..core.exceptions import (
    AnalysisError, AnalysisFormatError, AnalysisHTTPError, AnalysisTransportError, ErrorRecovery
)
from ..core.json_validator import JSONValidationError, parse_json_object
from ..core.models.analysis import SentimentAnalysis, RhetoricResult, ComparisonResult
from ..core.models.enrichment import AnalysisKind
from ..core.prompts import AnalysisPrompts
from ..core.schemas import get_tool_definition

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"

DEFAULT_MODELS = {
    AnalysisKind.SENTIMENT: "llama-3.1-8b-instant",
    AnalysisKind.RHETORIC: "llama-3.3-70b-versatile",
    AnalysisKind.COMPARISON: "llama-3.3-70b-versatile",
}


class RequestStrategy(str, Enum):
    """How a request asks for structured output and where the reply is read from."""
    JSON_CONTENT = "json_content"
    TOOL_CALL = "tool_call"


# The small sentiment model is unreliable with tool calls; the larger one handles them.
DEFAULT_STRATEGIES = {
    AnalysisKind.SENTIMENT: RequestStrategy.JSON_CONTENT,
    AnalysisKind.RHETORIC: RequestStrategy.TOOL_CALL,
    AnalysisKind.COMPARISON: RequestStrategy.TOOL_CALL,
}


@dataclass
class AnalysisReply(Generic[T]):
    """A validated analysis plus the metrics of the call that produced it."""
    result: T
    model: str
    attempts: int
    raw_response: Dict[str, Any] = field(default_factory=dict)
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None


class ScoringClient:
    """Client for the external structured-analysis service."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 base_url: str = DEFAULT_BASE_URL,
                 models: Optional[Dict[AnalysisKind, str]] = None,
                 strategies: Optional[Dict[AnalysisKind, RequestStrategy]] = None,
                 max_chars: int = 4000,
                 max_attempts: int = 3,
                 max_tokens: int = 1024,
                 retry_delay: float = 0.5,
                 client: Any = None):
        """
        Initialize scoring client.

        Args:
            api_key: Groq API key. If None, tries to get from environment.
            base_url: OpenAI-compatible API root
            models: Model name per analysis kind
            strategies: Request strategy per analysis kind
            max_chars: Character budget for each article text
            max_attempts: Total attempts per analysis, including the first
            max_tokens: Completion token cap per request
            retry_delay: Base delay between attempts in seconds
            client: Pre-built AsyncOpenAI-compatible client (tests inject fakes)
        """
        if client is None:
            api_key = api_key or os.getenv('GROQ_API_KEY')
            if not api_key:
                raise ValueError("Groq API key not provided and not found in GROQ_API_KEY environment variable")
            # SDK-level retries off: the attempt budget below is the only one
            client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

        self.client = client
        self.models = {**DEFAULT_MODELS, **(models or {})}
        self.strategies = {**DEFAULT_STRATEGIES, **(strategies or {})}
        self.max_chars = max_chars
        self.max_attempts = max_attempts
        self.max_tokens = max_tokens
        self.retry_delay = retry_delay

    @classmethod
    def from_config(cls, config, client: Any = None) -> 'ScoringClient':
        """Build a client from the application Config."""
        integrations = config.integrations
        return cls(
            api_key=integrations.groq_api_key,
            base_url=integrations.groq_base_url,
            models={
                AnalysisKind.SENTIMENT: integrations.sentiment_model,
                AnalysisKind.RHETORIC: integrations.rhetoric_model,
                AnalysisKind.COMPARISON: integrations.comparison_model,
            },
            max_chars=config.app.analysis_max_chars,
            max_attempts=config.app.analysis_max_attempts,
            max_tokens=config.app.analysis_max_tokens,
            retry_delay=config.app.analysis_retry_delay,
            client=client
        )

    def model_for(self, kind: AnalysisKind) -> str:
        return self.models[kind]

    async def analyse_sentiment(self, text: str) -> AnalysisReply[SentimentAnalysis]:
        """
        Run sentiment analysis on article text.

        Returns:
            Reply carrying a validated SentimentAnalysis

        Raises:
            AnalysisHTTPError: Non-200 with a well-formed error body
            AnalysisTransportError: Service unreachable
            AnalysisFormatError: Output still malformed after every attempt
        """
        messages = AnalysisPrompts.sentiment_messages(text, self.max_chars)
        return await self._analyse(AnalysisKind.SENTIMENT, messages, SentimentAnalysis.from_dict)

    async def analyse_rhetoric(self, text: str) -> AnalysisReply[RhetoricResult]:
        """Run rhetorical analysis on article text."""
        messages = AnalysisPrompts.rhetoric_messages(text, self.max_chars)
        return await self._analyse(AnalysisKind.RHETORIC, messages, RhetoricResult.from_dict)

    async def analyse_comparison(self, primary_text: str, reference_text: str) -> AnalysisReply[ComparisonResult]:
        """Compare two articles for framing, tone and bias."""
        messages = AnalysisPrompts.comparison_messages(primary_text, reference_text, self.max_chars)
        return await self._analyse(AnalysisKind.COMPARISON, messages, ComparisonResult.from_dict)

    async def _analyse(self,
                       kind: AnalysisKind,
                       messages: List[Dict[str, str]],
                       parse: Callable[[Dict[str, Any]], T]) -> AnalysisReply[T]:
        """Shared retry loop for every analysis kind."""
        model = self.models[kind]
        strategy = self.strategies[kind]
        last_error: Optional[AnalysisError] = None

        for attempt in range(1, self.max_attempts + 1):
            logger.info(f"Scoring request for {kind.value} ({model}, {strategy.value}, attempt {attempt}/{self.max_attempts})")
            for i, msg in enumerate(messages):
                logger.debug(f"Message {i + 1} [{msg['role'].upper()}]:\n{msg['content']}")

            start = time.monotonic()
            try:
                response = await self._request(kind, model, messages, strategy)
                payload = self._extract_payload(response, strategy)
                try:
                    result = parse(payload)
                except ValueError as e:
                    raise AnalysisFormatError(f"{kind.value} output failed validation: {e}") from e

            except AnalysisError as e:
                if not ErrorRecovery.is_retryable_error(e):
                    logger.error(f"{kind.value} analysis failed: {e}")
                    raise
                last_error = e
                logger.warning(f"{kind.value} attempt {attempt}/{self.max_attempts} unusable: {e}")
                if attempt < self.max_attempts and self.retry_delay > 0:
                    await asyncio.sleep(ErrorRecovery.get_retry_delay(self.retry_delay, attempt))
                continue

            usage = getattr(response, 'usage', None)
            prompt_tokens = getattr(usage, 'prompt_tokens', None)
            completion_tokens = getattr(usage, 'completion_tokens', None)
            logger.info(
                f"{kind.value} analysis succeeded in {time.monotonic() - start:.2f}s - tokens: "
                f"{prompt_tokens} prompt + {completion_tokens} completion"
            )
            return AnalysisReply(
                result=result,
                model=model,
                attempts=attempt,
                raw_response=payload,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens
            )

        raise AnalysisFormatError(
            f"{kind.value} analysis failed after {self.max_attempts} attempts: {last_error.message}",
            attempts=self.max_attempts
        )

    async def _request(self, kind: AnalysisKind, model: str, messages: List[Dict[str, str]],
                       strategy: RequestStrategy) -> Any:
        """Issue one chat completion, mapping SDK failures onto the analysis taxonomy."""
        request: Dict[str, Any] = {
            'model': model,
            'messages': messages,
            'temperature': 0,
            'max_tokens': self.max_tokens,
        }
        if strategy is RequestStrategy.TOOL_CALL:
            tool = get_tool_definition(kind.value)
            request['tools'] = [tool]
            request['tool_choice'] = {"type": "function", "function": {"name": tool['function']['name']}}

        try:
            return await self.client.chat.completions.create(**request)
        except openai.APIStatusError as e:
            if isinstance(e.body, dict):
                raise AnalysisHTTPError(e.status_code, e.body.get('message', e.body)) from e
            raise AnalysisFormatError(
                f"HTTP {e.status_code} with malformed error body",
                raw_output=str(e.body) if e.body else None
            ) from e
        except openai.APIConnectionError as e:
            raise AnalysisTransportError(model, e) from e

    def _extract_payload(self, response: Any, strategy: RequestStrategy) -> Dict[str, Any]:
        """Pull the JSON object out of a completion according to the strategy."""
        choices = getattr(response, 'choices', None) or []
        if not choices:
            raise AnalysisFormatError("Response has no choices")

        choice = choices[0]
        if getattr(choice, 'finish_reason', None) == "length":
            raise AnalysisFormatError(f"Response truncated at max_tokens={self.max_tokens}")

        message = choice.message
        raw = None
        if strategy is RequestStrategy.TOOL_CALL:
            tool_calls = getattr(message, 'tool_calls', None) or []
            if tool_calls:
                raw = tool_calls[0].function.arguments
        if raw is None:
            raw = getattr(message, 'content', None)

        try:
            return parse_json_object(raw)
        except JSONValidationError as e:
            raise AnalysisFormatError(f"Unparseable output: {e}", raw_output=raw) from e

    async def test_connection(self) -> bool:
        """Test scoring service connection."""
        try:
            response = await self.client.chat.completions.create(
                model=self.models[AnalysisKind.SENTIMENT],
                messages=[{"role": "user", "content": "Hello"}],
                max_tokens=5
            )
        except openai.OpenAIError as e:
            logger.error(f"Scoring service connection test failed: {e}")
            return False

        if response and response.choices:
            logger.info("Scoring service connection test successful")
            return True
        logger.error("Scoring service connection test failed: no response")
        return False
