"""Error handling — exception taxonomy and remote error normalization."""

from mediacache.errors.exceptions import (
    CacheReadError,
    CacheWriteError,
    InitializationError,
    InvalidArgumentError,
    MediaCacheError,
    UpstreamError,
)

__all__ = [
    "MediaCacheError",
    "UpstreamError",
    "CacheReadError",
    "CacheWriteError",
    "InvalidArgumentError",
    "InitializationError",
]
