"""
Cache hit/miss bookkeeping and the insights served by /cache-monitor.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List

from .store import CacheStore

logger = logging.getLogger(__name__)

EXCELLENT_HIT_RATE = 80
GOOD_HIT_RATE = 60
SLOW_RESPONSE_MS = 100
LARGE_CACHE_KEYS = 1000


@dataclass
class CacheMonitor:
    hits: int = 0
    misses: int = 0
    total_response_ms: float = 0.0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    def record_hit(self, response_time_ms: float) -> None:
        self.hits += 1
        self.total_response_ms += response_time_ms

    def record_miss(self, response_time_ms: float) -> None:
        self.misses += 1
        self.total_response_ms += response_time_ms

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.total_response_ms = 0.0

    @asynccontextmanager
    async def timed(self):
        """
        Time a lookup. The body sets `probe["hit"] = True` on a cache hit; a
        body that raises is recorded as a miss.
        """
        probe = {"hit": False}
        start = time.perf_counter()
        try:
            yield probe
        except Exception:
            self.record_miss(_elapsed_ms(start))
            raise
        if probe["hit"]:
            self.record_hit(_elapsed_ms(start))
        else:
            self.record_miss(_elapsed_ms(start))

    async def get_metrics(self, cache: CacheStore) -> Dict[str, Any]:
        stats = await cache.get_stats() or {}
        total = self.total_requests
        hit_rate = (self.hits / total) * 100 if total else 0
        miss_rate = (self.misses / total) * 100 if total else 0
        average = self.total_response_ms / total if total else 0

        return {
            "hitRate": round(hit_rate, 2),
            "missRate": round(miss_rate, 2),
            "totalRequests": total,
            "averageResponseTime": round(average, 2),
            "cacheSize": stats.get("totalKeys", 0),
            "memoryUsage": stats.get("memoryUsage", "unknown"),
            "evictedKeys": stats.get("evictedKeys", 0),
            "maxMemoryPolicy": stats.get("maxMemoryPolicy", "unknown"),
            "statsAvailable": bool(stats),
        }


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _performance(hit_rate: float) -> str:
    if hit_rate > EXCELLENT_HIT_RATE:
        return "Excellent"
    if hit_rate > GOOD_HIT_RATE:
        return "Good"
    return "Needs Improvement"


async def get_cache_insights(monitor: CacheMonitor, cache: CacheStore) -> Dict[str, Any]:
    """
    Current metrics plus a performance grade, recommendations and detected issues.

    Returns {performance, recommendations[], issues[], metrics}.
    """
    metrics = await monitor.get_metrics(cache)
    recommendations: List[str] = []
    issues: List[str] = []

    if metrics["hitRate"] < GOOD_HIT_RATE:
        recommendations.append("Consider increasing cache TTL for frequently accessed data")
        recommendations.append("Review cache invalidation strategy")

    if metrics["averageResponseTime"] > SLOW_RESPONSE_MS:
        recommendations.append("Consider optimizing database queries")
        recommendations.append("Review cache key structure")

    if metrics["cacheSize"] > LARGE_CACHE_KEYS:
        recommendations.append("Consider implementing cache eviction policies")

    if not metrics["statsAvailable"]:
        issues.append("Cache server statistics are unavailable")
    if metrics["evictedKeys"] > 0:
        issues.append(f"{metrics['evictedKeys']} keys were evicted because the memory limit was reached")
    if metrics["maxMemoryPolicy"] == "noeviction":
        issues.append("maxmemory-policy is noeviction; writes will fail once memory is full")
    if metrics["totalRequests"] and metrics["missRate"] > 50:
        issues.append("More than half of cache lookups are misses")

    return {
        "performance": _performance(metrics["hitRate"]),
        "recommendations": recommendations,
        "issues": issues,
        "metrics": metrics,
    }
