#!/usr/bin/env python3
"""
Analysis package: deterministic scoring, dispatch policies and the
enrichment pipeline.
"""

from .scoring import (
    Sentiment, compute_score, classify, label, score_terms,
    dominant_emotion, loaded_language_high
)
from .dispatch import WorkerPool, DispatchPolicy, FanOutPolicy, TricklePolicy, policy_from_config
from .pipeline import EnrichmentPipeline, EnrichmentBatch, run_sync

__all__ = [
    'Sentiment', 'compute_score', 'classify', 'label', 'score_terms',
    'dominant_emotion', 'loaded_language_high',
    'WorkerPool', 'DispatchPolicy', 'FanOutPolicy', 'TricklePolicy', 'policy_from_config',
    'EnrichmentPipeline', 'EnrichmentBatch', 'run_sync'
]
