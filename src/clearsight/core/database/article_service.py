#!/usr/bin/env python3
"""
Article Database Service

Handles all database operations related to news articles.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import List, Dict, Optional

import psycopg

from ..exceptions import DatabaseOperationError
from ..models.article import Article, ArticleInput

logger = logging.getLogger(__name__)


def collapse_duplicates(articles: List[ArticleInput]) -> List[ArticleInput]:
    """
    Collapse repeated URLs within one batch.

    The last occurrence supplies the values; the first occurrence fixes
    the position in the output.
    """
    latest: Dict[str, ArticleInput] = {}
    for article in articles:
        latest[article.url] = article
    return list(latest.values())


class ArticleService:
    """Service for article-related database operations."""

    def __init__(self, connection_manager):
        """
        Initialize article service.

        Args:
            connection_manager: Database connection manager instance
        """
        self.connection_manager = connection_manager

    def upsert(self, articles: List[ArticleInput]) -> List[Article]:
        """
        Insert or refresh articles keyed by URL in a single transaction.

        Existing rows keep their id and get title, content, description and
        updated_at overwritten. Any failure rolls back the whole batch.

        Args:
            articles: Raw articles, possibly repeating URLs

        Returns:
            Persisted articles, one per distinct URL, in input order

        Raises:
            DatabaseOperationError: If any row fails
        """
        batch = collapse_duplicates(articles)
        if not batch:
            return []

        now = datetime.now(timezone.utc)
        stored: List[Article] = []

        try:
            with self.connection_manager.transaction() as cursor:
                for article in batch:
                    cursor.execute("""
                        INSERT INTO articles (url, title, source, content, description, published_at, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (url) DO UPDATE SET
                            title = EXCLUDED.title,
                            content = EXCLUDED.content,
                            description = EXCLUDED.description,
                            updated_at = EXCLUDED.updated_at
                        RETURNING *
                    """, (
                        article.url,
                        article.title,
                        article.source,
                        article.content,
                        article.description,
                        article.published_at,
                        now,
                        now
                    ))
                    stored.append(Article.from_row(cursor.fetchone()))

        except psycopg.Error as e:
            logger.error(f"Failed to upsert {len(batch)} articles: {e}")
            raise DatabaseOperationError('upsert', 'articles', e) from e

        logger.info(f"Upserted {len(stored)} articles ({len(articles)} provided)")
        return stored

    def get_article(self, article_id: int) -> Optional[Article]:
        """
        Get a single article by id.

        Returns:
            The article, or None if it does not exist
        """
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("SELECT * FROM articles WHERE id = %s", (article_id,))
                row = cursor.fetchone()
                return Article.from_row(row) if row else None

        except psycopg.Error as e:
            logger.error(f"Failed to get article {article_id}: {e}")
            raise DatabaseOperationError('select', 'articles', e) from e

    def get_articles_count(self) -> int:
        """Get total number of stored articles."""
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("SELECT COUNT(*) as count FROM articles")
                result = cursor.fetchone()
                return result['count'] if result else 0

        except psycopg.Error as e:
            logger.error(f"Failed to get articles count: {e}")
            raise DatabaseOperationError('count', 'articles', e) from e

    def cleanup_old_articles(self, days: int = 30) -> int:
        """
        Remove articles older than specified days.

        Enrichment rows of deleted articles go with them (ON DELETE CASCADE).

        Args:
            days: Age threshold in days

        Returns:
            Number of articles deleted
        """
        cutoff_date = datetime.now(timezone.utc) - timedelta(days=days)

        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("""
                    DELETE FROM articles
                    WHERE created_at < %s
                """, (cutoff_date,))

                deleted_count = cursor.rowcount
                logger.info(f"Deleted {deleted_count} articles older than {days} days")
                return deleted_count

        except psycopg.Error as e:
            logger.error(f"Failed to cleanup old articles: {e}")
            raise DatabaseOperationError('delete', 'articles', e) from e
