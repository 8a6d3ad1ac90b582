"""Cache statistics models."""

from __future__ import annotations

from pydantic import BaseModel

from mediacache.cache.atomic import PopulationOutcome


class CacheStats(BaseModel):
    """Per-process counters for hits, misses and population outcomes."""

    hits: int = 0
    misses: int = 0
    promotions: int = 0
    collisions: int = 0
    aborted: int = 0
    write_failures: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def record(self, outcome: PopulationOutcome) -> None:
        if outcome is PopulationOutcome.PROMOTED:
            self.promotions += 1
        elif outcome is PopulationOutcome.COLLISION:
            self.collisions += 1
        else:
            self.aborted += 1


class DirectoryUsage(BaseModel):
    """What is on disk in one cache directory."""

    name: str
    entries: int = 0
    in_flight: int = 0
    size_bytes: int = 0

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)
