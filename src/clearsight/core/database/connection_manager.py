#!/usr/bin/env python3
"""
Database Connection Manager

Handles the PostgreSQL connection lifecycle with reconnection and
transaction support. A single connection is shared across worker threads,
so every cursor and transaction is serialized through one lock.
"""

import logging
import threading
import psycopg
from psycopg.rows import dict_row
from typing import Optional, Dict, Any
from contextlib import contextmanager

from ..exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages database connections with error handling and recovery."""

    def __init__(self, config):
        """
        Initialize connection manager with configuration.

        Args:
            config: DatabaseConfig carrying database_url and connection_timeout
        """
        self.config = config
        self.connection: Optional[psycopg.Connection] = None
        self._lock = threading.RLock()
        self._connect()

    def _connect(self) -> None:
        """Establish database connection."""
        if not self.config.database_url:
            raise DatabaseConnectionError(ValueError("DATABASE_URL is not set"))
        try:
            self.connection = psycopg.connect(
                self.config.database_url,
                row_factory=dict_row,
                autocommit=True,
                connect_timeout=self.config.connection_timeout
            )
            logger.debug("Database connection established")

        except psycopg.Error as e:
            raise DatabaseConnectionError(e) from e

    def ensure_connection(self) -> None:
        """Ensure database connection is active, reconnect if needed."""
        try:
            if not self.connection or self.connection.closed:
                self._connect()
            else:
                with self.connection.cursor() as cursor:
                    cursor.execute("SELECT 1")
        except psycopg.Error:
            logger.warning("Connection test failed, reconnecting...")
            self._connect()

    def get_connection(self) -> psycopg.Connection:
        """
        Get active database connection.

        Raises:
            DatabaseConnectionError: If connection cannot be established
        """
        self.ensure_connection()
        return self.connection

    @contextmanager
    def get_cursor(self):
        """
        Get an autocommit cursor as context manager.

        Yields:
            Database cursor returning dict rows
        """
        with self._lock:
            self.ensure_connection()
            with self.connection.cursor() as cursor:
                yield cursor

    @contextmanager
    def transaction(self):
        """
        Execute operations in a database transaction.

        Yields:
            Database cursor within transaction
        """
        with self._lock:
            connection = self.get_connection()
            connection.autocommit = False

            try:
                with connection.cursor() as cursor:
                    yield cursor
                connection.commit()
            except Exception:
                connection.rollback()
                raise
            finally:
                connection.autocommit = True

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.connection and not self.connection.closed:
                self.connection.close()
                logger.debug("Database connection closed")

    def health_check(self) -> Dict[str, Any]:
        """
        Perform health check on database connection.

        Returns:
            Health status information
        """
        try:
            with self.get_cursor() as cursor:
                cursor.execute("SELECT 1 as test")
                result = cursor.fetchone()

                cursor.execute("SELECT version() as version")
                version_info = cursor.fetchone()

                return {
                    'connected': True,
                    'test_query': result['test'] == 1,
                    'version': version_info['version']
                }

        except (psycopg.Error, DatabaseConnectionError) as e:
            logger.error(f"Database health check failed: {e}")
            return {
                'connected': False,
                'error': str(e)
            }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
