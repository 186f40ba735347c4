#!/usr/bin/env python3
"""
Database package for the enrichment pipeline.

Provides the article store with separate article and enrichment services,
plus an in-memory backend with the same operations.
"""

from .connection_manager import ConnectionManager
from .article_service import ArticleService, collapse_duplicates
from .enrichment_service import EnrichmentService
from .memory_store import MemoryStore
from .store import ArticleStore, create_store

__all__ = [
    'ConnectionManager',
    'ArticleService',
    'EnrichmentService',
    'MemoryStore',
    'ArticleStore',
    'collapse_duplicates',
    'create_store'
]
