from datetime import datetime, timezone

import pytest
import requests

from clearsight.core.exceptions import (
    EmptyQueryError, SourceConnectionError, SourceHTTPError, SourceParseError
)
from clearsight.core.sources.newsapi import NewsApiClient, parse_published_at

from conftest import FakeResponse, FakeSession, newsapi_article


def _client(*responses) -> NewsApiClient:
    return NewsApiClient(api_key="news-key", session=FakeSession(list(responses)))


def test_search_sends_expected_params():
    client = _client(FakeResponse(200, {"status": "ok", "articles": [newsapi_article(1)]}))

    articles = client.search("interest rates", max_results=10)

    call = client.session.calls[0]
    assert call["url"] == "https://newsapi.org/v2/everything"
    assert call["params"] == {
        "q": "interest rates",
        "pageSize": 10,
        "sortBy": "publishedAt",
        "language": "en",
        "apiKey": "news-key",
    }
    assert call["timeout"] == 15
    assert articles[0].source == "Outlet 1"
    assert articles[0].content == "Body text of story 1"


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_query_is_rejected_without_io(query):
    client = _client()

    with pytest.raises(EmptyQueryError):
        client.search(query)

    assert client.session.calls == []


def test_http_error_status():
    client = _client(FakeResponse(500, text="Internal Server Error"))

    with pytest.raises(SourceHTTPError) as exc_info:
        client.search("anything")

    assert str(exc_info.value) == "NewsAPI returned HTTP 500"


def test_api_error_body_carries_code_and_message():
    client = _client(FakeResponse(200, {"status": "error", "code": "apiKeyInvalid",
                                        "message": "Your API key is invalid."}))

    with pytest.raises(SourceHTTPError) as exc_info:
        client.search("anything")

    assert "apiKeyInvalid" in str(exc_info.value)
    assert "Your API key is invalid." in str(exc_info.value)


def test_unparseable_body():
    client = _client(FakeResponse(200, text="<html>maintenance</html>"))

    with pytest.raises(SourceParseError):
        client.search("anything")


def test_non_object_body():
    client = _client(FakeResponse(200, ["not", "an", "object"]))

    with pytest.raises(SourceParseError):
        client.top_headlines()


def test_connection_failure():
    client = _client(requests.exceptions.ConnectionError("name resolution failed"))

    with pytest.raises(SourceConnectionError) as exc_info:
        client.search("anything")

    assert "name resolution failed" in str(exc_info.value)


def test_unusable_articles_are_dropped():
    client = _client(FakeResponse(200, {"status": "ok", "articles": [
        newsapi_article(1),
        newsapi_article(2, title="[Removed]"),
        newsapi_article(3, title=None),
        newsapi_article(4, url=""),
        newsapi_article(5, content=None),
    ]}))

    articles = client.search("anything")

    assert [a.title for a in articles] == ["Headline number 1", "Headline number 5"]
    assert articles[1].content == "Description 5"


def test_results_are_capped():
    client = _client(FakeResponse(200, {"status": "ok", "articles": [newsapi_article(n) for n in range(20)]}))

    assert len(client.top_headlines(max_results=9)) == 9
    assert client.session.calls[0]["url"].endswith("/top-headlines")


def test_published_at_parsing():
    assert parse_published_at("2024-03-01T12:30:45.123Z") == datetime(2024, 3, 1, 12, 30, 45, tzinfo=timezone.utc)
    assert parse_published_at("yesterday") is None
    assert parse_published_at(None) is None
