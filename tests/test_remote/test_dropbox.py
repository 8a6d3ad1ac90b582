"""Tests for the Dropbox client over a mocked transport."""

import json

import httpx
import pytest
from tenacity import wait_none

from mediacache.errors.exceptions import UpstreamError
from mediacache.remote.dropbox import DropboxClient, header_safe_json


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(DropboxClient.get_metadata.retry, "wait", wait_none())
    monkeypatch.setattr(DropboxClient.get_thumbnail.retry, "wait", wait_none())


def _client(handler):
    return DropboxClient("sl.token", transport=httpx.MockTransport(handler))


class TestHeaderSafeJson:
    def test_ascii(self):
        assert header_safe_json({"path": "id:abc"}) == '{"path":"id:abc"}'

    def test_escapes_non_ascii(self):
        encoded = header_safe_json({"path": "/Fotos/Café\x7f"})
        assert encoded.isascii()
        assert "\\u00e9" in encoded
        assert "\\u007f" in encoded
        assert json.loads(encoded) == {"path": "/Fotos/Café\x7f"}


class TestGetMetadata:
    async def test_parses_metadata(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["authorization"]
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                ".tag": "file", "id": "id:abc", "name": "AB1-3.jpg", "rev": "015f",
            })

        client = _client(handler)
        try:
            meta = await client.get_metadata("/Pictures/AB1-3.jpg")
        finally:
            await client.close()

        assert meta.id == "id:abc"
        assert meta.rev == "015f"
        assert seen["auth"] == "Bearer sl.token"
        assert seen["url"] == "https://api.dropboxapi.com/2/files/get_metadata"
        assert seen["body"] == {"path": "/Pictures/AB1-3.jpg"}

    async def test_retries_transient_errors(self):
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            if calls < 3:
                return httpx.Response(503, text="Service Unavailable")
            return httpx.Response(200, json={"id": "id:abc", "name": "AB1", ".tag": "folder"})

        client = _client(handler)
        try:
            meta = await client.get_metadata("/Pictures/AB1")
        finally:
            await client.close()
        assert calls == 3
        assert meta.is_folder

    async def test_not_found_is_not_retried(self):
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            return httpx.Response(409, json={"error_summary": "path/not_found/.."})

        client = _client(handler)
        try:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_metadata("/missing")
        finally:
            await client.close()
        assert calls == 1
        assert exc_info.value.http_status == 409
        assert exc_info.value.message == "path/not_found/.."


class TestDownload:
    async def test_streams_body(self):
        body = b"0123456789" * 100

        def handler(request):
            assert str(request.url) == "https://content.dropboxapi.com/2/files/download"
            assert json.loads(request.headers["dropbox-api-arg"]) == {"path": "id:abc"}
            return httpx.Response(
                200,
                content=body,
                headers={
                    "etag": "W/\"015f\"",
                    "dropbox-api-result": '{"name": "AB1-3.jpg"}',
                    "content-length": str(len(body)),
                },
            )

        client = _client(handler)
        try:
            download = await client.download("id:abc")
            chunks = [chunk async for chunk in download.aiter_bytes(128)]
            await download.aclose()
        finally:
            await client.close()

        assert b"".join(chunks) == body
        assert download.content_length == len(body)
        assert download.etag == 'W/"015f"'
        assert set(download.headers) == {"content-length", "etag"}

    async def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(409, json={"error_summary": "path/not_file/"})

        client = _client(handler)
        try:
            with pytest.raises(UpstreamError) as exc_info:
                await client.download("id:folder")
        finally:
            await client.close()
        assert exc_info.value.message == "path/not_file/"

    async def test_connection_error_is_normalized(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        try:
            with pytest.raises(UpstreamError) as exc_info:
                await client.download("id:abc")
        finally:
            await client.close()
        assert exc_info.value.transient is True


class TestGetThumbnail:
    async def test_requests_size(self):
        seen = {}

        def handler(request):
            seen["arg"] = json.loads(request.headers["dropbox-api-arg"])
            return httpx.Response(200, content=b"\xff\xd8jpeg")

        client = _client(handler)
        try:
            data = await client.get_thumbnail("id:abc", "w640h480")
        finally:
            await client.close()

        assert data == b"\xff\xd8jpeg"
        assert seen["arg"] == {"path": "id:abc", "size": "w640h480", "format": "jpeg"}

    async def test_gives_up_after_three_attempts(self):
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            return httpx.Response(429, json={"error": {".tag": "too_many_requests"}})

        client = _client(handler)
        try:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_thumbnail("id:abc", "w128h128")
        finally:
            await client.close()
        assert calls == 3
        assert exc_info.value.http_status == 429
