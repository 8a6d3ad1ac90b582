"""Tests for cache statistics."""

from mediacache.cache.atomic import PopulationOutcome
from mediacache.cache.stats import CacheStats, DirectoryUsage


class TestCacheStats:
    def test_hit_rate_empty(self):
        assert CacheStats().hit_rate == 0.0

    def test_hit_rate(self):
        assert CacheStats(hits=3, misses=1).hit_rate == 0.75

    def test_record_outcomes(self):
        stats = CacheStats()
        stats.record(PopulationOutcome.PROMOTED)
        stats.record(PopulationOutcome.PROMOTED)
        stats.record(PopulationOutcome.COLLISION)
        stats.record(PopulationOutcome.ABORTED)
        assert (stats.promotions, stats.collisions, stats.aborted) == (2, 1, 1)


def test_directory_usage_size_mb():
    assert DirectoryUsage(name="pic-sm", size_bytes=2 * 1024 * 1024).size_mb == 2.0
