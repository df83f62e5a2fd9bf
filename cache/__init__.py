"""
Analytics Read Cache Module

This module provides the short-lived in-memory cache in front of the
analytics store. Reads are served from the cache while fresh, reloaded
when expired, and fall back to the last good value when a reload fails.
"""

from .core import Cache, CacheEntry, cache_key
from .monitoring import CacheMonitor

__all__ = [
    'Cache',
    'CacheEntry',
    'cache_key',
    'CacheMonitor'
]
