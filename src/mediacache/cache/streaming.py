"""Streaming read-through cache for full-resolution media objects.

A hit streams the cache file. A miss relays the remote download to the
caller while a population writer tees the same chunks into
``<id>_<rev>_tmp`` and, once the relay completes cleanly, renames it to
``<id>_<rev>``. Each miss downloads on its own; only the cache write is
deduplicated, by exclusive creation of the temp file.
"""

from __future__ import annotations

import asyncio
import logging
import os
import weakref
from collections.abc import AsyncIterator
from pathlib import Path
from typing import BinaryIO

import httpx

from mediacache.cache.atomic import (
    PopulationOutcome,
    close_quietly,
    discard,
    open_exclusive,
    promote,
    touch,
)
from mediacache.cache.keys import cache_path, temp_path
from mediacache.cache.stats import CacheStats
from mediacache.concurrency.background import BackgroundTasks
from mediacache.config.defaults import DEFAULT_CHUNK_SIZE, DEFAULT_WRITE_QUEUE_DEPTH
from mediacache.errors.classify import classify_http_error
from mediacache.errors.exceptions import CacheReadError, CacheWriteError, InitializationError
from mediacache.registry import Registry
from mediacache.remote.base import RemoteClient, RemoteDownload
from mediacache.types import ObjectIdentity

logger = logging.getLogger(__name__)


class PopulationWriter:
    """Second consumer of a download: copies its chunks into the temp file.

    Chunks go through a bounded queue, so memory stays at a few chunks no
    matter how large the object is. Once the writer stops accepting
    (collision, write failure, abort) the relay carries on without it.
    """

    def __init__(self, path: Path, queue_depth: int = DEFAULT_WRITE_QUEUE_DEPTH) -> None:
        self.path = path
        self.temp = temp_path(path)
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=queue_depth)
        self._accepting = True
        self._aborted = False

    @property
    def accepting(self) -> bool:
        return self._accepting

    async def feed(self, chunk: bytes) -> None:
        if self._accepting:
            await self._queue.put(chunk)

    async def finish(self) -> None:
        """Signal a complete, error-free relay; the writer may promote."""
        if self._accepting:
            await self._queue.put(None)

    def abort(self) -> None:
        """Stop populating and drop the temp file. Never blocks."""
        if self._aborted:
            return
        self._aborted = True
        self._stop()
        self._queue.put_nowait(None)

    def _stop(self) -> None:
        # Free the queue so a relay blocked in feed() can move on
        self._accepting = False
        while not self._queue.empty():
            self._queue.get_nowait()

    async def run(self) -> PopulationOutcome:
        opening = asyncio.ensure_future(asyncio.to_thread(open_exclusive, self.temp))
        try:
            handle = await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The open completes in its thread anyway; drop the file if we got it
            self._stop()
            opening.add_done_callback(self._discard_late_open)
            raise
        except FileExistsError:
            logger.info("Ignoring collision on %s, another writer owns it", self.temp)
            self._stop()
            return PopulationOutcome.COLLISION
        except OSError as exc:
            self._stop()
            raise CacheWriteError(f"Cannot create {self.temp}: {exc}", path=self.temp) from exc

        try:
            while True:
                chunk = await self._queue.get()
                if self._aborted:
                    return self._discard(handle, "aborted")
                if chunk is None:
                    break
                await asyncio.to_thread(handle.write, chunk)
            await asyncio.to_thread(handle.close)
            await asyncio.to_thread(promote, self.temp, self.path)
        except OSError as exc:
            self._stop()
            self._discard(handle, "write failed")
            raise CacheWriteError(f"Write failed for {self.temp}: {exc}", path=self.temp) from exc
        except asyncio.CancelledError:
            self._stop()
            self._discard(handle, "cancelled")
            raise

        logger.debug("Promoted %s", self.path)
        return PopulationOutcome.PROMOTED

    def _discard_late_open(self, opening: asyncio.Future[BinaryIO]) -> None:
        if opening.cancelled() or opening.exception() is not None:
            return
        self._discard(opening.result(), "cancelled")

    def _discard(self, handle: BinaryIO, reason: str) -> PopulationOutcome:
        logger.info("Population of %s %s, removing temp file", self.path.name, reason)
        close_quietly(handle)
        discard(self.temp)
        return PopulationOutcome.ABORTED


class CacheStream:
    """Async byte stream handed to the caller by :meth:`StreamingCache.open`.

    Iterate it with ``async for``; call ``aclose()`` (or use ``async with``)
    to abandon it early and release its file handle or connection.
    """

    def __init__(
        self,
        identity: ObjectIdentity,
        path: Path,
        hit: bool,
        content_length: int | None = None,
        etag: str | None = None,
    ) -> None:
        self.identity = identity
        self.path = path
        self.hit = hit
        self.content_length = content_length
        self.etag = etag
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        raise NotImplementedError

    async def read(self) -> bytes:
        """Collect the remaining stream into one buffer."""
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        self._closed = True

    async def __aenter__(self) -> CacheStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class FileStream(CacheStream):
    """Hit path: chunks read from the canonical cache file."""

    def __init__(
        self,
        identity: ObjectIdentity,
        path: Path,
        handle: BinaryIO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        size = os.fstat(handle.fileno()).st_size
        super().__init__(identity, path, hit=True, content_length=size)
        self._handle = handle
        self._chunk_size = chunk_size

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        try:
            chunk = await asyncio.to_thread(self._handle.read, self._chunk_size)
        except OSError as exc:
            logger.warning("Read failed for %s: %s", self.path, exc)
            await self.aclose()
            raise CacheReadError(f"Read failed for {self.path}: {exc}", path=self.path) from exc
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration
        return chunk

    async def aclose(self) -> None:
        if not self._closed:
            close_quietly(self._handle)
        await super().aclose()


def _release_dropped(
    identity: ObjectIdentity,
    writer: PopulationWriter,
    download: RemoteDownload,
    background: BackgroundTasks,
) -> None:
    """Clean up after a relay stream collected before it was finished or closed."""
    logger.info("Download of %s dropped by caller", identity)
    writer.abort()
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("Event loop gone, download of %s left open", identity)
        return
    background.spawn(download.aclose(), name=f"release:{identity}")


class RelayStream(CacheStream):
    """Miss path: chunks relayed from the live download, teed to a writer.

    A stream dropped without reaching its end or ``aclose()`` (its consumer
    was cancelled between reads, say) is released when it is collected:
    the writer aborts and the download is closed in the background.
    """

    def __init__(
        self,
        identity: ObjectIdentity,
        path: Path,
        download: RemoteDownload,
        writer: PopulationWriter,
        background: BackgroundTasks,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        super().__init__(
            identity,
            path,
            hit=False,
            content_length=download.content_length,
            etag=download.etag,
        )
        self._download = download
        self._writer = writer
        self._source = download.aiter_bytes(chunk_size)
        # Must not reference self, or the stream is never collected
        self._finalizer = weakref.finalize(
            self, _release_dropped, identity, writer, download, background
        )

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        try:
            chunk = await anext(self._source)
        except StopAsyncIteration:
            self._closed = True
            self._finalizer.detach()
            await self._download.aclose()
            await self._writer.finish()
            raise
        except httpx.HTTPError as exc:
            error = classify_http_error(exc)
            logger.warning("Download of %s failed: %s", self.identity, error.message)
            await self._abort()
            raise error from exc
        except BaseException:
            await self._abort()
            raise
        await self._writer.feed(chunk)
        return chunk

    async def aclose(self) -> None:
        """Abandon the stream before the end: nothing gets promoted."""
        if not self._closed:
            logger.info("Download of %s stopped by caller", self.identity)
            await self._abort()

    async def _abort(self) -> None:
        self._closed = True
        self._finalizer.detach()
        self._writer.abort()
        await self._download.aclose()


class StreamingCache:
    """Read-through cache for original-resolution objects."""

    def __init__(
        self,
        registry: Registry,
        remote: RemoteClient,
        background: BackgroundTasks | None = None,
        stats: CacheStats | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        write_queue_depth: int = DEFAULT_WRITE_QUEUE_DEPTH,
    ) -> None:
        self._registry = registry
        self._remote = remote
        self._background = background or BackgroundTasks()
        self._stats = stats or CacheStats()
        self._chunk_size = chunk_size
        self._write_queue_depth = write_queue_depth

    @property
    def stats(self) -> CacheStats:
        return self._stats

    async def open(self, identity: ObjectIdentity, kind: str, remote_id: str) -> CacheStream:
        """Return a stream of the object's bytes, from disk or from the remote.

        On a miss this returns as soon as the remote responds; populating
        the cache happens alongside the caller's reads.
        """
        tinfo = self._registry.type_for_kind(kind)
        if tinfo.cache_dir is None:
            raise InitializationError(f"Cache directory for {kind} is not initialized")
        path = cache_path(tinfo.cache_dir, identity)

        try:
            handle = await asyncio.to_thread(open, path, "rb")
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise CacheReadError(f"Cannot open {path}: {exc}", path=path) from exc
        else:
            self._stats.hits += 1
            await asyncio.to_thread(touch, path)
            logger.debug("Cache hit for %s", path)
            return FileStream(identity, path, handle, chunk_size=self._chunk_size)

        self._stats.misses += 1
        logger.debug("Cache miss for %s, downloading %s", path, remote_id)
        download = await self._remote.download(remote_id)
        writer = PopulationWriter(path, queue_depth=self._write_queue_depth)
        self._background.spawn(self._populate(writer), name=f"populate:{path.name}")
        return RelayStream(
            identity, path, download, writer, self._background, chunk_size=self._chunk_size
        )

    async def drain(self) -> None:
        await self._background.drain()

    async def _populate(self, writer: PopulationWriter) -> PopulationOutcome:
        try:
            outcome = await writer.run()
        except CacheWriteError:
            self._stats.write_failures += 1
            raise
        self._stats.record(outcome)
        return outcome
