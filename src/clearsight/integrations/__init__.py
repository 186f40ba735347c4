#!/usr/bin/env python3
"""
External service integrations.
"""

from .groq_client import ScoringClient, AnalysisReply, RequestStrategy

__all__ = ['ScoringClient', 'AnalysisReply', 'RequestStrategy']
