"""
Monitoring module for the read cache.

This module exports prometheus metrics for cache hits, misses, stale
fallbacks and loader failures.
"""
from prometheus_client import Counter, Gauge

# Define Prometheus metrics
CACHE_HITS = Counter('analytics_cache_hits_total', 'Total number of cache hits', ['cache_type'])
CACHE_MISSES = Counter('analytics_cache_misses_total', 'Total number of cache misses', ['cache_type'])
CACHE_STALE = Counter('analytics_cache_stale_served_total',
                      'Total number of stale values served after a loader failure', ['cache_type'])
CACHE_LOAD_FAILURES = Counter('analytics_cache_load_failures_total',
                              'Total number of failed cache loads', ['cache_type'])
CACHE_SIZE = Gauge('analytics_cache_size', 'Current number of items in cache', ['cache_type'])

READ_CACHE = 'read'


class CacheMonitor:
    """Records cache events for one cache type."""

    def __init__(self, cache_type: str = READ_CACHE):
        self.cache_type = cache_type

    def record_hit(self) -> None:
        CACHE_HITS.labels(cache_type=self.cache_type).inc()

    def record_miss(self) -> None:
        CACHE_MISSES.labels(cache_type=self.cache_type).inc()

    def record_stale(self) -> None:
        CACHE_STALE.labels(cache_type=self.cache_type).inc()

    def record_load_failure(self) -> None:
        CACHE_LOAD_FAILURES.labels(cache_type=self.cache_type).inc()

    def update_size(self, size: int) -> None:
        CACHE_SIZE.labels(cache_type=self.cache_type).set(size)
