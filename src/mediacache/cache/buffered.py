"""Buffered read-through cache for thumbnails."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from mediacache.cache.atomic import PopulationOutcome, touch, write_file_with_rename
from mediacache.cache.keys import cache_path
from mediacache.cache.stats import CacheStats
from mediacache.concurrency.background import BackgroundTasks
from mediacache.errors.exceptions import CacheReadError, CacheWriteError, InitializationError
from mediacache.registry import Registry
from mediacache.remote.base import RemoteClient
from mediacache.types import ObjectIdentity

logger = logging.getLogger(__name__)


def _read_hit(path: Path) -> bytes | None:
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return None
    touch(path)
    return data


class ThumbnailCache:
    """Whole-buffer variant of the read-through cache.

    Thumbnails are small, so a miss fetches the complete buffer, returns it
    right away and leaves writing it to disk to a background task.
    """

    def __init__(
        self,
        registry: Registry,
        remote: RemoteClient,
        background: BackgroundTasks | None = None,
        stats: CacheStats | None = None,
    ) -> None:
        self._registry = registry
        self._remote = remote
        self._background = background or BackgroundTasks()
        self._stats = stats or CacheStats()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    async def fetch(self, identity: ObjectIdentity, size: str, remote_id: str) -> bytes:
        # Raises InvalidArgumentError for an unknown label before any I/O
        szinfo = self._registry.size_for(size)
        if szinfo.cache_dir is None:
            raise InitializationError(f"Cache directory for size {size} is not initialized")
        path = cache_path(szinfo.cache_dir, identity)

        try:
            data = await asyncio.to_thread(_read_hit, path)
        except OSError as exc:
            raise CacheReadError(f"Read failed for {path}: {exc}", path=path) from exc
        if data is not None:
            self._stats.hits += 1
            logger.debug("Thumbnail hit for %s", path)
            return data

        self._stats.misses += 1
        data = await self._remote.get_thumbnail(remote_id, szinfo.remote_size_spec)
        self._background.spawn(self._populate(path, data), name=f"thumbnail:{path.name}")
        return data

    async def drain(self) -> None:
        await self._background.drain()

    async def _populate(self, path: Path, data: bytes) -> PopulationOutcome:
        try:
            outcome = await asyncio.to_thread(write_file_with_rename, path, data)
        except CacheWriteError:
            self._stats.write_failures += 1
            raise
        self._stats.record(outcome)
        return outcome
