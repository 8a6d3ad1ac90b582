"""Top-level entry point: MediaCache, the facade the server side talks to."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from mediacache.cache.buffered import ThumbnailCache
from mediacache.cache.directories import initialize_cache, scan_cache
from mediacache.cache.stats import CacheStats, DirectoryUsage
from mediacache.cache.streaming import CacheStream, StreamingCache
from mediacache.concurrency.background import BackgroundTasks
from mediacache.config.defaults import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DRAIN_TIMEOUT,
    DEFAULT_WRITE_QUEUE_DEPTH,
)
from mediacache.errors.exceptions import InitializationError
from mediacache.registry import Registry, default_registry
from mediacache.remote.base import RemoteClient
from mediacache.types import MediaObject

logger = logging.getLogger(__name__)


class MediaCache:
    """Disk cache in front of a remote store, for media objects and thumbnails.

    Build it with :meth:`create`, which lays out the cache directories
    first. Both caches share one set of background population tasks, so
    ``close()`` can wait for pending writes before releasing the remote
    client.
    """

    def __init__(
        self,
        registry: Registry,
        remote: RemoteClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        write_queue_depth: int = DEFAULT_WRITE_QUEUE_DEPTH,
        drain_timeout: float | None = DEFAULT_DRAIN_TIMEOUT,
    ) -> None:
        if not registry.initialized:
            raise InitializationError("Registry has no cache directories; call initialize_cache")
        self._registry = registry
        self._remote = remote
        self._drain_timeout = drain_timeout
        self._background = BackgroundTasks()
        self._stats = CacheStats()
        self._objects = StreamingCache(
            registry,
            remote,
            background=self._background,
            stats=self._stats,
            chunk_size=chunk_size,
            write_queue_depth=write_queue_depth,
        )
        self._thumbnails = ThumbnailCache(
            registry, remote, background=self._background, stats=self._stats
        )

    @classmethod
    def create(
        cls,
        cache_root: str | Path,
        remote: RemoteClient,
        registry: Registry | None = None,
        **kwargs: Any,
    ) -> MediaCache:
        resolved = initialize_cache(cache_root, registry or default_registry())
        return cls(resolved, remote, **kwargs)

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def remote(self) -> RemoteClient:
        return self._remote

    @property
    def pending_writes(self) -> int:
        return self._background.pending

    async def open_object_stream(self, media: MediaObject) -> CacheStream:
        """Stream the original object, from cache or from the remote."""
        return await self._objects.open(media.identity, media.kind, media.remote_id)

    async def fetch_thumbnail(self, media: MediaObject, size: str) -> bytes:
        """Return the thumbnail at ``size`` (a registered label such as ``md``)."""
        return await self._thumbnails.fetch(media.identity, size, media.remote_id)

    def stats(self) -> CacheStats:
        return self._stats.model_copy()

    def disk_usage(self) -> list[DirectoryUsage]:
        return scan_cache(self._registry)

    async def drain(self) -> None:
        """Wait for every pending cache population to finish."""
        await self._background.drain()

    async def close(self) -> None:
        """Drain pending writes, then release the remote client.

        Writes still pending after ``drain_timeout`` seconds are cancelled;
        a cancelled writer removes its temp file.
        """
        try:
            await asyncio.wait_for(asyncio.shield(self.drain()), self._drain_timeout)
        except TimeoutError:
            logger.warning(
                "%d cache writes still pending after %ss, cancelling",
                self._background.pending,
                self._drain_timeout,
            )
            await self._background.cancel_all()
        await self._remote.close()

    async def __aenter__(self) -> MediaCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
