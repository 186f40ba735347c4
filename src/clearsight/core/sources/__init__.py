#!/usr/bin/env python3
"""
News sources feeding the enrichment pipeline.
"""

from .newsapi import NewsApiClient, parse_published_at

__all__ = ['NewsApiClient', 'parse_published_at']
