"""Async Dropbox client with streamed downloads.

Downloads are sent with ``stream=True`` so the body reaches the cache
chunk by chunk instead of being buffered whole in memory.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from mediacache.config.defaults import (
    DEFAULT_API_URL,
    DEFAULT_CONTENT_URL,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_TIMEOUT,
)
from mediacache.errors.classify import classify_http_error, is_transient
from mediacache.types import RemoteMetadata

logger = logging.getLogger(__name__)

_API_ARG_HEADER = "Dropbox-API-Arg"
# Only these response headers are meaningful to pass along to a client
_KEPT_HEADERS = ("content-length", "etag")


def header_safe_json(args: dict[str, Any]) -> str:
    """Serialize ``args`` as JSON that is safe inside an HTTP header.

    Everything outside printable ASCII is written as a ``\\uXXXX`` escape.
    """
    return json.dumps(args, separators=(",", ":")).replace("\x7f", "\\u007f")


class HttpDownload:
    """A streamed download response."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        length = response.headers.get("content-length")
        self.content_length = int(length) if length and length.isdigit() else None
        self.etag = response.headers.get("etag")

    @property
    def headers(self) -> dict[str, str]:
        return {
            name: self._response.headers[name]
            for name in _KEPT_HEADERS
            if name in self._response.headers
        }

    def aiter_bytes(self, chunk_size: int | None = None):
        return self._response.aiter_bytes(chunk_size)

    async def aclose(self) -> None:
        await self._response.aclose()


class DropboxClient:
    """Dropbox API v2 client covering metadata, download and thumbnails."""

    def __init__(
        self,
        access_token: str,
        api_url: str = DEFAULT_API_URL,
        content_url: str = DEFAULT_CONTENT_URL,
        timeout: float = DEFAULT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._content_url = content_url.rstrip("/")
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=httpx.Timeout(timeout, read=read_timeout),
            transport=transport,
        )

    @retry(
        retry=retry_if_exception(is_transient),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def get_metadata(self, path: str) -> RemoteMetadata:
        try:
            response = await self._client.post(
                f"{self._api_url}/2/files/get_metadata", json={"path": path}
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise classify_http_error(exc) from exc
        return RemoteMetadata.model_validate(response.json())

    async def download(self, remote_id: str) -> HttpDownload:
        """Start a streamed download. Not retried: the body is consumed live."""
        request = self._client.build_request(
            "POST",
            f"{self._content_url}/2/files/download",
            headers={_API_ARG_HEADER: header_safe_json({"path": remote_id})},
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise classify_http_error(exc) from exc

        if response.is_error:
            try:
                await response.aread()
                response.raise_for_status()
            except httpx.HTTPError as exc:
                error = classify_http_error(exc)
                logger.warning("Download of %s failed: %s", remote_id, error.message)
                raise error from exc
            finally:
                await response.aclose()

        return HttpDownload(response)

    @retry(
        retry=retry_if_exception(is_transient),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def get_thumbnail(self, remote_id: str, size_spec: str) -> bytes:
        try:
            response = await self._client.post(
                f"{self._content_url}/2/files/get_thumbnail",
                headers={
                    _API_ARG_HEADER: header_safe_json(
                        {"path": remote_id, "size": size_spec, "format": "jpeg"}
                    )
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise classify_http_error(exc) from exc
        return response.content

    async def close(self) -> None:
        await self._client.aclose()
