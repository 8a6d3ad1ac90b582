"""Interface the cache needs from a remote content store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from mediacache.types import RemoteMetadata


class RemoteDownload(Protocol):
    """A live, streamed download.

    Must tolerate the caller stopping early: ``aclose()`` releases the
    connection whether or not the body was fully read.
    """

    content_length: int | None
    etag: str | None

    def aiter_bytes(self, chunk_size: int | None = None) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


class RemoteClient(Protocol):
    async def get_metadata(self, path: str) -> RemoteMetadata: ...

    async def download(self, remote_id: str) -> RemoteDownload:
        """Start a download and return once response headers have arrived."""
        ...

    async def get_thumbnail(self, remote_id: str, size_spec: str) -> bytes: ...

    async def close(self) -> None: ...
