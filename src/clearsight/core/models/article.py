#!/usr/bin/env python3
"""
Article data models.

Represents a news article as received from a source (ArticleInput) and as
persisted in the dedup store (Article). Identity is the normalized URL.
"""

from datetime import datetime
from typing import Dict, Any, Optional
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from dateutil import parser as date_parser


def _parse_datetime_safe(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except Exception:  # noqa: BLE001
        return None


def normalize_url(url: str) -> str:
    """
    Normalize an article URL for use as its identity.

    Strips surrounding whitespace, lower-cases scheme and host and drops
    the fragment. Path and query are kept verbatim.
    """
    url = (url or "").strip()
    if not url:
        return url

    parts = urlsplit(url)
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path,
        parts.query,
        ""
    ))


@dataclass
class ArticleInput:
    """A raw article as delivered by a news source, before dedup."""
    url: str
    title: str
    source: str = ""
    content: str = ""
    description: str = ""
    published_at: Optional[datetime] = None

    def __post_init__(self):
        """Clean and validate data after initialization."""
        self.url = normalize_url(self.url)
        self.title = (self.title or "").strip()
        self.source = (self.source or "").strip()
        self.content = self.content or ""
        self.description = self.description or ""
        self.published_at = _parse_datetime_safe(self.published_at)

        if not self.url:
            raise ValueError("Article url is required")
        if not self.title:
            raise ValueError(f"Article title is required ({self.url})")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ArticleInput':
        """Create ArticleInput from a normalized article map."""
        return cls(
            url=data.get('url', ''),
            title=data.get('title', ''),
            source=data.get('source', '') or '',
            content=data.get('content', '') or '',
            description=data.get('description', '') or '',
            published_at=data.get('published_at')
        )


@dataclass
class Article:
    """A deduplicated news item keyed by URL."""
    id: int
    url: str
    title: str
    source: str = ""
    content: str = ""
    description: str = ""
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def analysis_text(self) -> str:
        """Text sent for analysis: body content, falling back to the description."""
        return self.content or self.description or ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'url': self.url,
            'title': self.title,
            'source': self.source,
            'content': self.content,
            'description': self.description,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Article':
        """Create Article from a database row."""
        return cls(
            id=row['id'],
            url=row['url'],
            title=row['title'],
            source=row.get('source') or '',
            content=row.get('content') or '',
            description=row.get('description') or '',
            published_at=_parse_datetime_safe(row.get('published_at')),
            created_at=_parse_datetime_safe(row.get('created_at')),
            updated_at=_parse_datetime_safe(row.get('updated_at'))
        )

    def __repr__(self):
        return f"Article(id={self.id}, title='{self.title[:50]}...', source='{self.source}')"
