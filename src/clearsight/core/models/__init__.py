#!/usr/bin/env python3
"""
Core data models for the enrichment pipeline.

Contains all data structures used throughout the application.
"""

from .article import Article, ArticleInput, normalize_url
from .analysis import (
    SentimentAnalysis, Emotions, RhetoricStyle, Certainty,
    RhetoricResult, RhetoricalDevice, ComparisonResult, TONES
)
from .enrichment import (
    AnalysisKind, EnrichmentStatus, EnrichmentResult, ResultPatch,
    ArticleWithStatus, EnrichmentUpdate
)

__all__ = [
    'Article', 'ArticleInput', 'normalize_url',
    'SentimentAnalysis', 'Emotions', 'RhetoricStyle', 'Certainty',
    'RhetoricResult', 'RhetoricalDevice', 'ComparisonResult', 'TONES',
    'AnalysisKind', 'EnrichmentStatus', 'EnrichmentResult', 'ResultPatch',
    'ArticleWithStatus', 'EnrichmentUpdate'
]
