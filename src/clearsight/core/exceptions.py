#!/usr/bin/env python3
"""
Standardized exception hierarchy for the ClearSight enrichment pipeline.

Provides specific exception types for the different failure classes
(input, upstream source, storage, analysis, configuration) with error
context attached for logging.
"""

from typing import Optional, Dict, Any


class ClearsightError(Exception):
    """Base exception for all ClearSight errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Input errors
class EmptyQueryError(ClearsightError):
    """Search query was empty or whitespace only."""

    def __init__(self):
        super().__init__("Query cannot be empty")


# Source-related exceptions
class SourceError(ClearsightError):
    """Base exception for news source errors."""
    pass


class SourceConnectionError(SourceError):
    """Failed to reach the news source."""

    def __init__(self, source_name: str, url: str, original_error: Exception):
        message = f"Request to {source_name} failed: {original_error}"
        context = {
            'source_name': source_name,
            'url': url,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class SourceHTTPError(SourceError):
    """News source answered with an error status."""

    def __init__(self, source_name: str, status: Any, detail: Optional[str] = None):
        if detail:
            message = f"{source_name} error {status}: {detail}"
        else:
            message = f"{source_name} returned HTTP {status}"
        context = {
            'source_name': source_name,
            'status': status,
            'detail': detail
        }
        super().__init__(message, context=context)


class SourceParseError(SourceError):
    """Failed to parse the news source response."""

    def __init__(self, source_name: str, parse_stage: str, original_error: Exception):
        message = f"Failed to parse {parse_stage} from {source_name}"
        context = {
            'source_name': source_name,
            'parse_stage': parse_stage,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Storage-related exceptions
class StorageError(ClearsightError):
    """Base exception for storage errors."""
    pass


class DatabaseConnectionError(StorageError):
    """Failed to connect to database."""

    def __init__(self, original_error: Exception):
        message = f"Failed to connect to database: {original_error}"
        context = {'original_error': str(original_error)}
        super().__init__(message, context=context)


class DatabaseOperationError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, table: str, original_error: Exception):
        message = f"Database {operation} failed on table {table}: {original_error}"
        context = {
            'operation': operation,
            'table': table,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class InvalidTransitionError(StorageError):
    """An enrichment row was patched out of its pending state."""

    def __init__(self, result_id: int, current: str, requested: str):
        message = f"Enrichment result {result_id} cannot move from {current} to {requested}"
        context = {
            'result_id': result_id,
            'current': current,
            'requested': requested
        }
        super().__init__(message, context=context)


# Analysis-related exceptions
class AnalysisError(ClearsightError):
    """Base exception for analysis errors."""
    pass


class AnalysisHTTPError(AnalysisError):
    """Scoring service answered non-200 with a well-formed error body."""

    def __init__(self, status_code: int, detail: Any):
        message = f"Scoring service returned HTTP {status_code}: {detail}"
        context = {
            'status_code': status_code,
            'detail': detail
        }
        super().__init__(message, context=context)


class AnalysisFormatError(AnalysisError):
    """Scoring service output did not parse into the expected schema."""

    def __init__(self, message: str, raw_output: Optional[str] = None, attempts: Optional[int] = None):
        context = {'attempts': attempts}
        if raw_output is not None:
            context['raw_output'] = raw_output[:300]
        super().__init__(message, context=context)
        self.attempts = attempts


class AnalysisTransportError(AnalysisError):
    """Scoring service could not be reached."""

    def __init__(self, model: str, original_error: Exception):
        message = f"Request to scoring service ({model}) failed: {original_error}"
        context = {
            'model': model,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class AnalysisTimeoutError(AnalysisError):
    """Analysis unit exceeded its deadline."""

    def __init__(self, analysis_type: str, timeout_seconds: float):
        message = f"{analysis_type} analysis timed out after {timeout_seconds:g}s"
        context = {
            'analysis_type': analysis_type,
            'timeout_seconds': timeout_seconds
        }
        super().__init__(message, context=context)


# Configuration-related exceptions
class ConfigurationError(ClearsightError):
    """Configuration is invalid or missing."""

    def __init__(self, config_key: str, issue: str):
        message = f"Configuration error for {config_key}: {issue}"
        context = {
            'config_key': config_key,
            'issue': issue
        }
        super().__init__(message, context=context)


# Recovery utilities
class ErrorRecovery:
    """Utilities for error recovery and retry logic."""

    @staticmethod
    def is_retryable_error(error: Exception) -> bool:
        """Check if an analysis failure should consume another attempt."""
        retryable_types = [
            AnalysisFormatError,
        ]
        return any(isinstance(error, error_type) for error_type in retryable_types)

    @staticmethod
    def get_retry_delay(base_delay: float, attempt: int) -> float:
        """Get retry delay in seconds (linear in the attempt number, capped at 5s)."""
        return min(base_delay * attempt, 5.0)
