#!/usr/bin/env python3
"""
Enrichment result data models.

One EnrichmentResult row is written per analysis invocation. Rows start
pending and move exactly once to complete or error.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .article import Article, _parse_datetime_safe


class AnalysisKind(str, Enum):
    """Closed set of analyses the scoring service performs."""
    SENTIMENT = "sentiment"
    RHETORIC = "rhetoric"
    COMPARISON = "comparison"


class EnrichmentStatus(str, Enum):
    """Lifecycle of an enrichment row (and of an article in a batch)."""
    PENDING = "pending"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not EnrichmentStatus.PENDING

    def can_transition_to(self, target: 'EnrichmentStatus') -> bool:
        """Only pending -> complete and pending -> error are allowed."""
        return self is EnrichmentStatus.PENDING and target.is_terminal


@dataclass
class EnrichmentResult:
    """A persisted analysis attempt for an article (or article pair)."""
    id: int
    article_id: int
    kind: AnalysisKind
    model_name: str
    status: EnrichmentStatus = EnrichmentStatus.PENDING
    reference_article_id: Optional[int] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    latency_ms: Optional[int] = None
    raw_response: Optional[Dict[str, Any]] = None
    computed_score: Optional[float] = None
    computed_result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'EnrichmentResult':
        """Create EnrichmentResult from a model_responses row."""
        return cls(
            id=row['id'],
            article_id=row['article_id'],
            reference_article_id=row.get('reference_article_id'),
            kind=AnalysisKind(row['response_type']),
            model_name=row['model_name'],
            status=EnrichmentStatus(row['status']),
            prompt_tokens=row.get('prompt_tokens'),
            completion_tokens=row.get('completion_tokens'),
            latency_ms=row.get('latency_ms'),
            raw_response=row.get('raw_response'),
            computed_score=row.get('computed_score'),
            computed_result=row.get('computed_result'),
            error_message=row.get('error_message'),
            created_at=_parse_datetime_safe(row.get('created_at')),
            updated_at=_parse_datetime_safe(row.get('updated_at'))
        )


@dataclass
class ResultPatch:
    """Terminal values written onto a pending enrichment row."""
    status: EnrichmentStatus
    latency_ms: int
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    raw_response: Optional[Dict[str, Any]] = None
    computed_score: Optional[float] = None
    computed_result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None


@dataclass
class ArticleWithStatus:
    """An article as seen by the caller of a batch, tagged with its analysis state."""
    article: Article
    status: EnrichmentStatus
    computed_score: Optional[float] = None
    computed_result: Optional[Dict[str, Any]] = None
    model_name: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def id(self) -> int:
        return self.article.id

    def apply(self, update: 'EnrichmentUpdate') -> 'ArticleWithStatus':
        """Return a copy carrying the terminal state from an update."""
        return replace(
            self,
            status=update.status,
            computed_score=update.computed_score,
            computed_result=update.computed_result,
            model_name=update.model_name,
            error_message=update.error_message
        )


@dataclass
class EnrichmentUpdate:
    """Incremental result for one article, keyed by its stable identifier."""
    article_id: int
    status: EnrichmentStatus
    computed_score: Optional[float] = None
    computed_result: Optional[Dict[str, Any]] = None
    model_name: Optional[str] = None
    error_message: Optional[str] = None
    latency_ms: Optional[int] = None
