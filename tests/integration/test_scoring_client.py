import asyncio
import json

import httpx
import openai
import pytest

from clearsight.core.exceptions import AnalysisFormatError, AnalysisHTTPError, AnalysisTransportError
from clearsight.core.models.analysis import ComparisonResult, RhetoricResult
from clearsight.core.models.enrichment import AnalysisKind
from clearsight.integrations.groq_client import RequestStrategy, ScoringClient

from conftest import COMPARISON_RESULT, NEUTRAL_SENTIMENT, RHETORIC_RESULT, chat_response

API_URL = "https://api.groq.com/openai/v1/chat/completions"


def _client(fake, **kwargs) -> ScoringClient:
    kwargs.setdefault("retry_delay", 0)
    return ScoringClient(client=fake, **kwargs)


def _status_error(status: int, body):
    response = httpx.Response(status, request=httpx.Request("POST", API_URL))
    return openai.APIStatusError("upstream error", response=response, body=body)


def _user_content(call) -> str:
    return call["messages"][-1]["content"]


def test_sentiment_happy_path(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response(json.dumps(NEUTRAL_SENTIMENT)))
    reply = asyncio.run(_client(fake).analyse_sentiment("Stocks climbed on Tuesday."))

    assert reply.result.tone == "neutral"
    assert reply.result.emotions.anticipation == 0.3
    assert reply.attempts == 1
    assert reply.model == "llama-3.1-8b-instant"
    assert reply.prompt_tokens == 120
    assert reply.completion_tokens == 80
    assert reply.raw_response == NEUTRAL_SENTIMENT

    call = fake.completions.calls[0]
    assert call["temperature"] == 0
    assert "tools" not in call
    assert _user_content(call).endswith("Article:\nStocks climbed on Tuesday.")


def test_long_text_is_truncated_with_marker(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response(json.dumps(NEUTRAL_SENTIMENT)))
    asyncio.run(_client(fake).analyse_sentiment("a" * 5000))

    sent = _user_content(fake.completions.calls[0]).split("Article:\n", 1)[1]
    assert sent == "a" * 4000 + " ..."


def test_malformed_output_exhausts_attempts(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response("I think the article is fine."))

    with pytest.raises(AnalysisFormatError) as exc_info:
        asyncio.run(_client(fake).analyse_sentiment("text"))

    assert exc_info.value.attempts == 3
    assert "sentiment analysis failed after 3 attempts" in str(exc_info.value)
    assert len(fake.completions.calls) == 3


def test_malformed_then_valid_succeeds_on_second_attempt(fake_chat_client_factory):
    fake = fake_chat_client_factory(
        chat_response("{not json"),
        chat_response(json.dumps(NEUTRAL_SENTIMENT)),
    )
    reply = asyncio.run(_client(fake).analyse_sentiment("text"))

    assert reply.attempts == 2
    assert len(fake.completions.calls) == 2


def test_well_formed_http_error_is_terminal(fake_chat_client_factory):
    fake = fake_chat_client_factory(_status_error(401, {"message": "Invalid API Key"}))

    with pytest.raises(AnalysisHTTPError) as exc_info:
        asyncio.run(_client(fake).analyse_sentiment("text"))

    assert exc_info.value.context["status_code"] == 401
    assert "Invalid API Key" in str(exc_info.value)
    assert len(fake.completions.calls) == 1


def test_http_error_with_malformed_body_is_retried(fake_chat_client_factory):
    fake = fake_chat_client_factory(
        _status_error(502, "<html>Bad Gateway</html>"),
        chat_response(json.dumps(NEUTRAL_SENTIMENT)),
    )
    reply = asyncio.run(_client(fake).analyse_sentiment("text"))

    assert reply.attempts == 2


def test_connection_failure_is_transport_error(fake_chat_client_factory):
    fake = fake_chat_client_factory(openai.APIConnectionError(request=httpx.Request("POST", API_URL)))

    with pytest.raises(AnalysisTransportError):
        asyncio.run(_client(fake).analyse_sentiment("text"))

    assert len(fake.completions.calls) == 1


def test_missing_numeric_fields_default_to_zero(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response(json.dumps({"tone": "negative", "emotions": {"fear": 0.7}})))
    reply = asyncio.run(_client(fake).analyse_sentiment("text"))

    assert reply.result.emotions.fear == 0.7
    assert reply.result.emotions.joy == 0.0
    assert reply.result.rhetoric.alarmist == 0.0
    assert reply.result.loaded_language == 0.0
    assert reply.result.certainty.speculation == 0.0


def test_fenced_json_is_recovered(fake_chat_client_factory):
    fenced = "```json\n" + json.dumps(NEUTRAL_SENTIMENT) + "\n```"
    fake = fake_chat_client_factory(chat_response(fenced))
    reply = asyncio.run(_client(fake).analyse_sentiment("text"))

    assert reply.result.tone == "neutral"
    assert reply.attempts == 1


def test_json_wrapped_in_prose_is_recovered(fake_chat_client_factory):
    wrapped = "Here is the analysis: " + json.dumps(NEUTRAL_SENTIMENT) + " Hope this helps."
    fake = fake_chat_client_factory(chat_response(wrapped))
    reply = asyncio.run(_client(fake).analyse_sentiment("text"))

    assert reply.result.certainty.certainty == 0.6


def test_invalid_tone_consumes_an_attempt(fake_chat_client_factory):
    fake = fake_chat_client_factory(
        chat_response(json.dumps(dict(NEUTRAL_SENTIMENT, tone="mixed"))),
        chat_response(json.dumps(NEUTRAL_SENTIMENT)),
    )
    reply = asyncio.run(_client(fake).analyse_sentiment("text"))

    assert reply.attempts == 2


def test_out_of_range_value_consumes_an_attempt(fake_chat_client_factory):
    fake = fake_chat_client_factory(
        chat_response(json.dumps(dict(NEUTRAL_SENTIMENT, loaded_language=1.5))),
    )

    with pytest.raises(AnalysisFormatError):
        asyncio.run(_client(fake, max_attempts=2).analyse_sentiment("text"))

    assert len(fake.completions.calls) == 2


def test_truncated_completion_is_retried(fake_chat_client_factory):
    fake = fake_chat_client_factory(
        chat_response('{"tone": "neu', finish_reason="length"),
        chat_response(json.dumps(NEUTRAL_SENTIMENT)),
    )
    reply = asyncio.run(_client(fake).analyse_sentiment("text"))

    assert reply.attempts == 2


def test_rhetoric_uses_forced_tool_call(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response(tool_arguments=RHETORIC_RESULT))
    reply = asyncio.run(_client(fake).analyse_rhetoric("Officials say the plan will work."))

    assert isinstance(reply.result, RhetoricResult)
    assert reply.result.rhetorical_devices[0].device == "appeal to authority"
    assert reply.model == "llama-3.3-70b-versatile"

    call = fake.completions.calls[0]
    assert call["tools"][0]["function"]["name"] == "rhetoric_result"
    assert call["tool_choice"] == {"type": "function", "function": {"name": "rhetoric_result"}}


def test_comparison_sends_both_articles(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response(tool_arguments=COMPARISON_RESULT))
    reply = asyncio.run(_client(fake).analyse_comparison("first body", "second body"))

    assert isinstance(reply.result, ComparisonResult)
    assert reply.result.bias_assessment == "Article 1 appears more neutral."

    content = _user_content(fake.completions.calls[0])
    assert "Article 1:\nfirst body" in content
    assert "Article 2:\nsecond body" in content


def test_tool_call_falls_back_to_content(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response(content=json.dumps(RHETORIC_RESULT)))
    reply = asyncio.run(_client(fake).analyse_rhetoric("text"))

    assert reply.result.overall_tone == "measured"


def test_incomplete_comparison_is_rejected(fake_chat_client_factory):
    partial = {key: value for key, value in COMPARISON_RESULT.items() if key != "bias_assessment"}
    fake = fake_chat_client_factory(chat_response(tool_arguments=partial))

    with pytest.raises(AnalysisFormatError):
        asyncio.run(_client(fake, max_attempts=1).analyse_comparison("a", "b"))


def test_models_follow_config(fake_chat_client_factory, test_config):
    test_config.integrations.sentiment_model = "custom-small"
    fake = fake_chat_client_factory(chat_response(json.dumps(NEUTRAL_SENTIMENT)))
    client = ScoringClient.from_config(test_config, client=fake)

    assert client.model_for(AnalysisKind.SENTIMENT) == "custom-small"
    assert client.max_attempts == 3


def test_missing_api_key_is_rejected(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with pytest.raises(ValueError):
        ScoringClient()


def test_connection_check(fake_chat_client_factory):
    ok = fake_chat_client_factory(chat_response("Hi"))
    down = fake_chat_client_factory(openai.APIConnectionError(request=httpx.Request("POST", API_URL)))

    assert asyncio.run(_client(ok).test_connection()) is True
    assert asyncio.run(_client(down).test_connection()) is False


def test_sentiment_strategy_can_switch_to_tool_calls(fake_chat_client_factory):
    fake = fake_chat_client_factory(chat_response(tool_arguments=NEUTRAL_SENTIMENT))
    client = _client(fake, strategies={AnalysisKind.SENTIMENT: RequestStrategy.TOOL_CALL})

    reply = asyncio.run(client.analyse_sentiment("text"))

    assert reply.result.tone == "neutral"
    assert fake.completions.calls[0]["tools"][0]["function"]["name"] == "sentiment_result"
