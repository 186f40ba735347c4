#!/usr/bin/env python3
"""
Enrichment Database Service

Handles the model_responses table: pending rows written before a scoring
call, terminal patches written after it, and the cache lookup that lets
already-scored articles skip the scoring service.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import psycopg
from psycopg.types.json import Jsonb

from ..exceptions import DatabaseOperationError, InvalidTransitionError
from ..models.enrichment import AnalysisKind, EnrichmentResult, ResultPatch

logger = logging.getLogger(__name__)


def _json_param(value):
    return Jsonb(value) if value is not None else None


class EnrichmentService:
    """Service for enrichment-result database operations."""

    def __init__(self, connection_manager):
        """
        Initialize enrichment service.

        Args:
            connection_manager: Database connection manager instance
        """
        self.connection_manager = connection_manager

    def insert_pending(self,
                       article_id: int,
                       kind: AnalysisKind,
                       model_name: str,
                       reference_article_id: Optional[int] = None) -> EnrichmentResult:
        """
        Record that an analysis has been dispatched.

        Args:
            article_id: Article being analysed
            kind: Analysis kind
            model_name: Model the request goes to
            reference_article_id: Second article for comparisons

        Returns:
            The new pending row
        """
        now = datetime.now(timezone.utc)
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("""
                    INSERT INTO model_responses
                        (article_id, reference_article_id, response_type, model_name, status, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, 'pending', %s, %s)
                    RETURNING *
                """, (article_id, reference_article_id, kind.value, model_name, now, now))
                return EnrichmentResult.from_row(cursor.fetchone())

        except psycopg.Error as e:
            logger.error(f"Failed to insert pending {kind.value} row for article {article_id}: {e}")
            raise DatabaseOperationError('insert', 'model_responses', e) from e

    def patch_result(self, result_id: int, patch: ResultPatch) -> EnrichmentResult:
        """
        Move a pending row to its terminal state.

        Raises:
            InvalidTransitionError: If the row is missing or no longer pending
            DatabaseOperationError: On database failure
        """
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("""
                    UPDATE model_responses SET
                        status = %s,
                        latency_ms = %s,
                        prompt_tokens = %s,
                        completion_tokens = %s,
                        raw_response = %s,
                        computed_score = %s,
                        computed_result = %s,
                        error_message = %s,
                        updated_at = %s
                    WHERE id = %s AND status = 'pending'
                    RETURNING *
                """, (
                    patch.status.value,
                    patch.latency_ms,
                    patch.prompt_tokens,
                    patch.completion_tokens,
                    _json_param(patch.raw_response),
                    patch.computed_score,
                    _json_param(patch.computed_result),
                    patch.error_message,
                    datetime.now(timezone.utc),
                    result_id
                ))
                row = cursor.fetchone()
                if row:
                    return EnrichmentResult.from_row(row)

                cursor.execute("SELECT status FROM model_responses WHERE id = %s", (result_id,))
                current = cursor.fetchone()

        except psycopg.Error as e:
            logger.error(f"Failed to patch enrichment result {result_id}: {e}")
            raise DatabaseOperationError('update', 'model_responses', e) from e

        raise InvalidTransitionError(result_id, current['status'] if current else 'missing', patch.status.value)

    def lookup_complete(self, article_ids: List[int], kind: AnalysisKind) -> Dict[int, EnrichmentResult]:
        """
        Find the newest complete result per article.

        Pending and error rows are ignored; articles without a complete row
        are absent from the result.

        Returns:
            Map of article id to its most recent complete result
        """
        if not article_ids:
            return {}

        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("""
                    SELECT DISTINCT ON (article_id) *
                    FROM model_responses
                    WHERE article_id = ANY(%s)
                      AND response_type = %s
                      AND status = 'complete'
                    ORDER BY article_id, created_at DESC, id DESC
                """, (list(article_ids), kind.value))

                return {row['article_id']: EnrichmentResult.from_row(row) for row in cursor.fetchall()}

        except psycopg.Error as e:
            logger.error(f"Failed to look up cached {kind.value} results: {e}")
            raise DatabaseOperationError('select', 'model_responses', e) from e

    def get_results(self, article_id: int) -> List[EnrichmentResult]:
        """Every enrichment row for an article, oldest first."""
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("""
                    SELECT * FROM model_responses
                    WHERE article_id = %s
                    ORDER BY created_at, id
                """, (article_id,))
                return [EnrichmentResult.from_row(row) for row in cursor.fetchall()]

        except psycopg.Error as e:
            logger.error(f"Failed to get enrichment results for article {article_id}: {e}")
            raise DatabaseOperationError('select', 'model_responses', e) from e

    def get_status_counts(self) -> Dict[str, int]:
        """Count enrichment rows per status."""
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute("""
                    SELECT status, COUNT(*) as count
                    FROM model_responses
                    GROUP BY status
                """)
                return {row['status']: row['count'] for row in cursor.fetchall()}

        except psycopg.Error as e:
            logger.error(f"Failed to count enrichment results: {e}")
            raise DatabaseOperationError('count', 'model_responses', e) from e
