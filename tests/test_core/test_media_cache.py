"""Tests for the MediaCache facade."""

import asyncio

import pytest

from conftest import PICTURE_BYTES, THUMBNAIL_BYTES
from mediacache.core import MediaCache
from mediacache.errors.exceptions import InitializationError, InvalidArgumentError
from mediacache.registry import default_registry
from mediacache.types import MediaObject


@pytest.fixture
def media(registry, picture_metadata):
    return MediaObject.from_metadata(picture_metadata, registry)


class TestCreate:
    def test_lays_out_directories(self, tmp_path, remote):
        cache = MediaCache.create(tmp_path / "root", remote)
        assert cache.registry.initialized
        for name in ("pictures", "videos", "pic-sm", "pic-md", "pic-lg"):
            assert (tmp_path / "root" / name).is_dir()

    def test_uninitialized_registry_rejected(self, remote):
        with pytest.raises(InitializationError):
            MediaCache(default_registry(), remote)


class TestMediaCache:
    async def test_object_stream_miss_then_hit(self, registry, remote, media):
        async with MediaCache(registry, remote, chunk_size=32) as cache:
            async with await cache.open_object_stream(media) as stream:
                assert not stream.hit
                assert await stream.read() == PICTURE_BYTES
            await cache.drain()

            assert media.cache_path(cache.registry.type_for_kind("picture").cache_dir).exists()

            async with await cache.open_object_stream(media) as stream:
                assert stream.hit
                assert await stream.read() == PICTURE_BYTES

            stats = cache.stats()
            assert stats.hits == 1
            assert stats.misses == 1
            assert stats.promotions == 1
        assert len(remote.download_calls) == 1

    async def test_thumbnail(self, registry, remote, media):
        async with MediaCache(registry, remote) as cache:
            assert await cache.fetch_thumbnail(media, "md") == THUMBNAIL_BYTES
            await cache.drain()
            assert await cache.fetch_thumbnail(media, "md") == THUMBNAIL_BYTES
        assert remote.thumbnail_calls == [("id:abc123", "w640h480")]

    async def test_unknown_thumbnail_size(self, registry, remote, media):
        async with MediaCache(registry, remote) as cache:
            with pytest.raises(InvalidArgumentError):
                await cache.fetch_thumbnail(media, "xxl")
        assert remote.thumbnail_calls == []

    async def test_close_drains_and_closes_remote(self, registry, remote, media):
        cache = MediaCache(registry, remote)
        await cache.fetch_thumbnail(media, "md")
        await cache.close()

        assert cache.pending_writes == 0
        assert remote.closed
        md_dir = registry.size_for("md").cache_dir
        assert (md_dir / "ABC12-3_5").read_bytes() == THUMBNAIL_BYTES

    async def test_stats_is_a_snapshot(self, registry, remote, media):
        async with MediaCache(registry, remote) as cache:
            snapshot = cache.stats()
            await cache.fetch_thumbnail(media, "md")
            assert snapshot.misses == 0
            assert cache.stats().misses == 1

    async def test_disk_usage(self, registry, remote, media):
        async with MediaCache(registry, remote) as cache:
            await cache.fetch_thumbnail(media, "md")
            await cache.drain()
            usage = {u.name: u for u in cache.disk_usage()}
        assert usage["pic-md"].entries == 1
        assert usage["pic-md"].size_bytes == len(THUMBNAIL_BYTES)
        assert usage["pictures"].entries == 0

    async def test_close_cancels_writes_after_timeout(self, registry, remote, media):
        cache = MediaCache(registry, remote, drain_timeout=0.05)
        # Opened but never read, so its writer waits for chunks forever
        stream = await cache.open_object_stream(media)
        await asyncio.sleep(0.01)
        await cache.close()

        assert cache.pending_writes == 0
        assert remote.closed
        picture_dir = registry.type_for_kind("picture").cache_dir
        assert list(picture_dir.iterdir()) == []
        await stream.aclose()
