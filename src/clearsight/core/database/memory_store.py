#!/usr/bin/env python3
"""
In-memory article store.

Mirrors the ArticleStore operations without a database. Used when no
DATABASE_URL is configured and as the store behind the test suite.
Thread-safe: every operation holds one lock, like the shared psycopg
connection does.
"""

import itertools
import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, List, Optional

from ..exceptions import InvalidTransitionError
from ..models.article import Article, ArticleInput
from ..models.enrichment import AnalysisKind, EnrichmentResult, EnrichmentStatus, ResultPatch
from .article_service import collapse_duplicates

logger = logging.getLogger(__name__)


class MemoryStore:
    """Dict-backed store with the same contract as ArticleStore."""

    def __init__(self):
        self._lock = threading.Lock()
        self._articles: Dict[int, Article] = {}
        self._ids_by_url: Dict[str, int] = {}
        self._results: Dict[int, EnrichmentResult] = {}
        self._article_seq = itertools.count(1)
        self._result_seq = itertools.count(1)

    # Article operations

    def upsert(self, articles: List[ArticleInput]) -> List[Article]:
        """Insert or refresh articles keyed by URL; returns them in input order."""
        batch = collapse_duplicates(articles)
        now = datetime.now(timezone.utc)
        stored: List[Article] = []

        with self._lock:
            for item in batch:
                existing_id = self._ids_by_url.get(item.url)
                if existing_id is not None:
                    article = replace(
                        self._articles[existing_id],
                        title=item.title,
                        content=item.content,
                        description=item.description,
                        updated_at=now
                    )
                else:
                    article = Article(
                        id=next(self._article_seq),
                        url=item.url,
                        title=item.title,
                        source=item.source,
                        content=item.content,
                        description=item.description,
                        published_at=item.published_at,
                        created_at=now,
                        updated_at=now
                    )
                    self._ids_by_url[item.url] = article.id
                self._articles[article.id] = article
                stored.append(article)

        logger.info(f"Upserted {len(stored)} articles ({len(articles)} provided)")
        return stored

    def get_article(self, article_id: int) -> Optional[Article]:
        with self._lock:
            return self._articles.get(article_id)

    def get_articles_count(self) -> int:
        with self._lock:
            return len(self._articles)

    def cleanup_old_articles(self, days: int = 30) -> int:
        """Remove articles older than specified days together with their results."""
        cutoff_date = datetime.now(timezone.utc) - timedelta(days=days)

        with self._lock:
            doomed = {aid for aid, a in self._articles.items() if a.created_at and a.created_at < cutoff_date}
            for aid in doomed:
                del self._ids_by_url[self._articles.pop(aid).url]

            for rid, result in list(self._results.items()):
                if result.article_id in doomed:
                    del self._results[rid]
                elif result.reference_article_id in doomed:
                    self._results[rid] = replace(result, reference_article_id=None)

        logger.info(f"Deleted {len(doomed)} articles older than {days} days")
        return len(doomed)

    # Enrichment operations

    def insert_pending(self,
                       article_id: int,
                       kind: AnalysisKind,
                       model_name: str,
                       reference_article_id: Optional[int] = None) -> EnrichmentResult:
        now = datetime.now(timezone.utc)
        with self._lock:
            result = EnrichmentResult(
                id=next(self._result_seq),
                article_id=article_id,
                reference_article_id=reference_article_id,
                kind=kind,
                model_name=model_name,
                status=EnrichmentStatus.PENDING,
                created_at=now,
                updated_at=now
            )
            self._results[result.id] = result
            return result

    def patch_result(self, result_id: int, patch: ResultPatch) -> EnrichmentResult:
        """Move a pending row to its terminal state, rejecting any other transition."""
        with self._lock:
            current = self._results.get(result_id)
            if current is None:
                raise InvalidTransitionError(result_id, 'missing', patch.status.value)
            if not current.status.can_transition_to(patch.status):
                raise InvalidTransitionError(result_id, current.status.value, patch.status.value)

            patched = replace(
                current,
                status=patch.status,
                latency_ms=patch.latency_ms,
                prompt_tokens=patch.prompt_tokens,
                completion_tokens=patch.completion_tokens,
                raw_response=patch.raw_response,
                computed_score=patch.computed_score,
                computed_result=patch.computed_result,
                error_message=patch.error_message,
                updated_at=datetime.now(timezone.utc)
            )
            self._results[result_id] = patched
            return patched

    def lookup_complete(self, article_ids: List[int], kind: AnalysisKind) -> Dict[int, EnrichmentResult]:
        """Newest complete result per article; ties on creation time go to the higher id."""
        wanted = set(article_ids)
        found: Dict[int, EnrichmentResult] = {}

        with self._lock:
            for result in self._results.values():
                if result.article_id not in wanted or result.kind != kind:
                    continue
                if result.status is not EnrichmentStatus.COMPLETE:
                    continue
                best = found.get(result.article_id)
                if best is None or (result.created_at, result.id) > (best.created_at, best.id):
                    found[result.article_id] = result

        return found

    def get_results(self, article_id: int) -> List[EnrichmentResult]:
        with self._lock:
            rows = [r for r in self._results.values() if r.article_id == article_id]
        return sorted(rows, key=lambda r: (r.created_at, r.id))

    # Maintenance

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            counts: Dict[str, int] = {}
            for result in self._results.values():
                counts[result.status.value] = counts.get(result.status.value, 0) + 1
            return {
                'connected': True,
                'backend': 'memory',
                'articles': len(self._articles),
                'enrichment_results': counts
            }

    def close(self) -> None:
        pass
