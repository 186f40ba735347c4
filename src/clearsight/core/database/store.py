#!/usr/bin/env python3
"""
Article Store

Unified interface over the article and enrichment services. This is the
object the pipeline and commands talk to; MemoryStore offers the same
operations without a database.
"""

import logging
from pathlib import Path
from typing import List, Dict, Any, Optional, Union

import psycopg

from ..exceptions import DatabaseOperationError, StorageError
from ..models.article import Article, ArticleInput
from ..models.enrichment import AnalysisKind, EnrichmentResult, ResultPatch
from .connection_manager import ConnectionManager
from .article_service import ArticleService
from .enrichment_service import EnrichmentService
from .memory_store import MemoryStore

logger = logging.getLogger(__name__)


class ArticleStore:
    """PostgreSQL-backed dedup store for articles and their enrichment rows."""

    def __init__(self, config, connection_manager: Optional[ConnectionManager] = None):
        """
        Initialize article store with configuration.

        Args:
            config: Application Config (its database section is used)
            connection_manager: Pre-built connection manager, mainly for tests
        """
        self.config = config
        self.connection_manager = connection_manager or ConnectionManager(config.database)

        self.articles = ArticleService(self.connection_manager)
        self.enrichments = EnrichmentService(self.connection_manager)

    # Article operations

    def upsert(self, articles: List[ArticleInput]) -> List[Article]:
        """Insert or refresh articles keyed by URL in one transaction."""
        return self.articles.upsert(articles)

    def get_article(self, article_id: int) -> Optional[Article]:
        return self.articles.get_article(article_id)

    def cleanup_old_articles(self, days: int = 30) -> int:
        """Retention sweep; enrichment rows cascade."""
        return self.articles.cleanup_old_articles(days)

    # Enrichment operations

    def insert_pending(self,
                       article_id: int,
                       kind: AnalysisKind,
                       model_name: str,
                       reference_article_id: Optional[int] = None) -> EnrichmentResult:
        return self.enrichments.insert_pending(article_id, kind, model_name, reference_article_id)

    def patch_result(self, result_id: int, patch: ResultPatch) -> EnrichmentResult:
        return self.enrichments.patch_result(result_id, patch)

    def lookup_complete(self, article_ids: List[int], kind: AnalysisKind) -> Dict[int, EnrichmentResult]:
        """Newest complete result per article for the given kind."""
        return self.enrichments.lookup_complete(article_ids, kind)

    def get_results(self, article_id: int) -> List[EnrichmentResult]:
        return self.enrichments.get_results(article_id)

    # Schema management

    def apply_migrations(self, migrations_dir: Union[str, Path]) -> List[str]:
        """
        Run every *.sql file in the directory in name order.

        Migrations are written with IF NOT EXISTS, so reapplying is harmless.

        Returns:
            Names of the files applied
        """
        applied = []
        for path in sorted(Path(migrations_dir).glob('*.sql')):
            try:
                with self.connection_manager.transaction() as cursor:
                    cursor.execute(path.read_text())
            except psycopg.Error as e:
                logger.error(f"Migration {path.name} failed: {e}")
                raise DatabaseOperationError('migrate', path.stem, e) from e
            logger.info(f"Applied migration {path.name}")
            applied.append(path.name)
        return applied

    # Health Check

    def health_check(self) -> Dict[str, Any]:
        """Check database connection and return status info with table counts."""
        health_info = self.connection_manager.health_check()
        if not health_info.get('connected', False):
            return health_info

        try:
            health_info['backend'] = 'postgres'
            health_info['articles'] = self.articles.get_articles_count()
            health_info['enrichment_results'] = self.enrichments.get_status_counts()
        except StorageError as e:
            logger.warning(f"Could not get table stats: {e}")
            health_info['tables_error'] = str(e)

        return health_info

    # Connection Management

    def close(self):
        """Close database connection."""
        self.connection_manager.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_store(config) -> Union[ArticleStore, MemoryStore]:
    """Pick the PostgreSQL store when DATABASE_URL is set, otherwise the in-memory one."""
    if config.database.is_memory:
        logger.warning("DATABASE_URL not set; using in-memory store (nothing is persisted)")
        return MemoryStore()
    return ArticleStore(config)
