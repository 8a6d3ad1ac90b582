"""mediacache — read-through disk cache for remote media and thumbnails."""

from mediacache.cache.directories import initialize_cache
from mediacache.core import MediaCache
from mediacache.registry import Registry, default_registry
from mediacache.types import MediaObject, ObjectIdentity

__all__ = [
    "MediaCache",
    "MediaObject",
    "ObjectIdentity",
    "Registry",
    "default_registry",
    "initialize_cache",
]
