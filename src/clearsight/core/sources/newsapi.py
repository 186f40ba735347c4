#!/usr/bin/env python3
"""
NewsAPI client.

Searches https://newsapi.org for articles and normalizes them into
ArticleInput objects ready for the enrichment pipeline.
"""

import os
import logging
from typing import Any, Dict, List, Optional

import requests
from dateutil import parser as date_parser

from ..exceptions import (
    EmptyQueryError, SourceConnectionError, SourceHTTPError, SourceParseError
)
from ..models.article import ArticleInput

logger = logging.getLogger(__name__)

SOURCE_NAME = "NewsAPI"
REMOVED_PLACEHOLDER = "[Removed]"


class NewsApiClient:
    """Client for the NewsAPI v2 everything and top-headlines endpoints."""

    BASE_URL = "https://newsapi.org/v2"
    DEFAULT_SEARCH_MAX = 15
    DEFAULT_HEADLINES_MAX = 9

    def __init__(self,
                 api_key: Optional[str] = None,
                 timeout: int = 15,
                 base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize NewsAPI client.

        Args:
            api_key: NewsAPI key. If None, tries to get from environment.
            timeout: Request timeout in seconds
            base_url: API root, mainly for tests
            session: Pre-built requests session
        """
        self.api_key = api_key or os.getenv('NEWS_API_KEY')
        self.timeout = timeout
        self.base_url = (base_url or self.BASE_URL).rstrip('/')

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "ClearSight/1.0 (news sentiment analysis)",
            "Accept": "application/json"
        })

    def search(self, query: str, max_results: int = DEFAULT_SEARCH_MAX) -> List[ArticleInput]:
        """
        Search for articles matching a query, newest first.

        Args:
            query: Free-text search query
            max_results: Maximum number of articles to return

        Returns:
            Normalized articles

        Raises:
            EmptyQueryError: If the query is empty or whitespace
            SourceError: If the request fails or the response is unusable
        """
        if not query or not query.strip():
            raise EmptyQueryError()

        params = {
            'q': query,
            'pageSize': min(max_results, 100),
            'sortBy': 'publishedAt',
            'language': 'en',
            'apiKey': self.api_key
        }
        return self._fetch('everything', params, max_results)

    def top_headlines(self, max_results: int = DEFAULT_HEADLINES_MAX) -> List[ArticleInput]:
        """Fetch the latest English top headlines."""
        params = {
            'pageSize': min(max_results, 100),
            'language': 'en',
            'apiKey': self.api_key
        }
        return self._fetch('top-headlines', params, max_results)

    def _fetch(self, endpoint: str, params: Dict[str, Any], max_results: int) -> List[ArticleInput]:
        url = f"{self.base_url}/{endpoint}"
        logger.info(f"Fetching {SOURCE_NAME} {endpoint} (pageSize={params['pageSize']})")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"{SOURCE_NAME} request failed: {e}")
            raise SourceConnectionError(SOURCE_NAME, url, e) from e

        if response.status_code != 200:
            raise SourceHTTPError(SOURCE_NAME, response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise SourceParseError(SOURCE_NAME, 'json', e) from e

        if not isinstance(body, dict):
            raise SourceParseError(SOURCE_NAME, 'json', ValueError("response body is not an object"))

        if body.get('status') != 'ok':
            raise SourceHTTPError(
                SOURCE_NAME,
                body.get('code') or body.get('status', 'unknown'),
                body.get('message', 'no message')
            )

        articles = []
        for raw in body.get('articles') or []:
            article = self.normalize_article(raw)
            if article is not None:
                articles.append(article)

        articles = articles[:max_results]
        logger.info(f"{SOURCE_NAME} {endpoint} returned {len(articles)} usable articles")
        return articles

    @staticmethod
    def normalize_article(raw: Dict[str, Any]) -> Optional[ArticleInput]:
        """
        Convert one NewsAPI article into an ArticleInput.

        Returns:
            None for articles missing a title or url and for removed placeholders
        """
        title = (raw.get('title') or '').strip()
        url = (raw.get('url') or '').strip()
        if not title or not url or title == REMOVED_PLACEHOLDER:
            return None

        description = raw.get('description') or ''
        return ArticleInput(
            url=url,
            title=title,
            source=(raw.get('source') or {}).get('name') or '',
            content=raw.get('content') or description,
            description=description,
            published_at=parse_published_at(raw.get('publishedAt'))
        )


def parse_published_at(value: Optional[str]):
    """Parse a NewsAPI ISO-8601 timestamp, truncated to whole seconds."""
    if not value:
        return None
    try:
        return date_parser.isoparse(value).replace(microsecond=0)
    except (ValueError, TypeError):
        logger.debug(f"Unparseable publishedAt: {value!r}")
        return None
