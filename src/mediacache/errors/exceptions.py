"""Custom exception hierarchy for mediacache."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class MediaCacheError(Exception):
    """Base exception for all mediacache errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class UpstreamError(MediaCacheError):
    """The remote store failed to deliver an object, thumbnail or metadata.

    Surfaced only to the caller that initiated the remote request; other
    callers of the same object are unaffected.
    """

    def __init__(
        self,
        message: str = "",
        http_status: int | None = None,
        transient: bool = False,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.transient = transient
        self.original = original


class CacheReadError(MediaCacheError):
    """Reading an existing cache file failed (disk fault, permissions)."""

    def __init__(self, message: str = "", path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class CacheWriteError(MediaCacheError):
    """Populating a cache file failed.

    Never reaches a caller: the population writer logs it and removes its
    temp file.
    """

    def __init__(self, message: str = "", path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class InvalidArgumentError(MediaCacheError):
    """Unknown thumbnail size or media kind. Raised before any I/O."""


class InitializationError(MediaCacheError):
    """Cache directories could not be created. Fatal at startup."""

    def __init__(self, message: str = "", path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path
