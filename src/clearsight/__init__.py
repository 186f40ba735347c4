#!/usr/bin/env python3
"""
ClearSight: news article ingestion and sentiment enrichment.
"""

__version__ = "1.0.0"
