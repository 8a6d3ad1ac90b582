import asyncio

import pytest

from mediacache.cache.directories import initialize_cache
from mediacache.errors.exceptions import UpstreamError
from mediacache.registry import default_registry
from mediacache.types import RemoteMetadata

PICTURE_BYTES = b"\x89PNG fixture picture content " * 8
THUMBNAIL_BYTES = b"\xff\xd8\xff thumbnail"


class FakeDownload:
    """Streamed download over an in-memory payload."""

    def __init__(self, content, chunk_delay=0.0, fail_after=None):
        self._content = content
        self._chunk_delay = chunk_delay
        self._fail_after = fail_after
        self.content_length = len(content)
        self.etag = '"rev-etag"'
        self.closed = False

    async def _chunks(self, chunk_size):
        size = chunk_size or 16
        for offset in range(0, len(self._content), size):
            if self._fail_after is not None and offset >= self._fail_after:
                raise UpstreamError("connection reset by peer", transient=True)
            await asyncio.sleep(self._chunk_delay)
            yield self._content[offset:offset + size]

    def aiter_bytes(self, chunk_size=None):
        return self._chunks(chunk_size)

    async def aclose(self):
        self.closed = True


class FakeRemote:
    """In-memory remote store that records every call."""

    def __init__(self, objects=None, thumbnails=None, chunk_delay=0.0, fail_after=None):
        self.objects = dict(objects or {})
        self.thumbnails = dict(thumbnails or {})
        self.chunk_delay = chunk_delay
        self.fail_after = fail_after
        self.metadata = {}
        self.download_calls = []
        self.thumbnail_calls = []
        self.downloads = []
        self.closed = False

    async def get_metadata(self, path):
        if path not in self.metadata:
            raise UpstreamError("path/not_found/", http_status=409)
        return self.metadata[path]

    async def download(self, remote_id):
        self.download_calls.append(remote_id)
        if remote_id not in self.objects:
            raise UpstreamError("path/not_found/", http_status=409)
        download = FakeDownload(
            self.objects[remote_id],
            chunk_delay=self.chunk_delay,
            fail_after=self.fail_after,
        )
        self.downloads.append(download)
        return download

    async def get_thumbnail(self, remote_id, size_spec):
        self.thumbnail_calls.append((remote_id, size_spec))
        key = (remote_id, size_spec)
        if key not in self.thumbnails:
            raise UpstreamError("unsupported_image", http_status=409)
        return self.thumbnails[key]

    async def close(self):
        self.closed = True


@pytest.fixture
def registry(tmp_path):
    """Default registry with cache directories under tmp_path/cache."""
    return initialize_cache(tmp_path / "cache", default_registry())


@pytest.fixture
def picture_dir(registry):
    return registry.type_for_kind("picture").cache_dir


@pytest.fixture
def remote():
    return FakeRemote(
        objects={"id:abc123": PICTURE_BYTES},
        thumbnails={("id:abc123", "w640h480"): THUMBNAIL_BYTES},
        chunk_delay=0.001,
    )


@pytest.fixture
def picture_metadata():
    return RemoteMetadata(id="id:abc123", name="ABC12-0003 - beach.jpg", rev="5")
