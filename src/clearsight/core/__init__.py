#!/usr/bin/env python3
"""
Core package: models, storage, analysis, sources and configuration.
"""
