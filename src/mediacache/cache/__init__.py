"""Cache subsystem — streaming and buffered read-through caches on disk."""

from mediacache.cache.buffered import ThumbnailCache
from mediacache.cache.directories import initialize_cache, scan_cache
from mediacache.cache.keys import cache_path, temp_path
from mediacache.cache.stats import CacheStats, DirectoryUsage
from mediacache.cache.streaming import CacheStream, StreamingCache

__all__ = [
    "CacheStats",
    "CacheStream",
    "DirectoryUsage",
    "StreamingCache",
    "ThumbnailCache",
    "cache_path",
    "initialize_cache",
    "scan_cache",
    "temp_path",
]
