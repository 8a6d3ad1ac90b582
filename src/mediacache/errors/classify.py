"""Normalize remote-store failures into the mediacache error taxonomy."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from mediacache.errors.exceptions import UpstreamError

logger = logging.getLogger(__name__)

_TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})
_FALLBACK_MESSAGE = "An error happened!"


def error_message(error: Any) -> str:
    """Pull a human-readable message out of whatever the remote sent back.

    Dropbox answers with a JSON object carrying ``error_summary`` (and a
    structured ``error``), but proxies and outages produce plain text.
    """
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, (bytes, bytearray)):
        error = error.decode("utf-8", errors="replace")
    if isinstance(error, str):
        try:
            error = json.loads(error)
        except ValueError:
            return error.strip() or _FALLBACK_MESSAGE
    if isinstance(error, dict):
        for key in ("error_summary", "message", "error"):
            value = error.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value:
                return value.get(".tag") or json.dumps(value, sort_keys=True)
    logger.debug("Unrecognized remote error payload: %r", error)
    return _FALLBACK_MESSAGE


def classify_http_error(exc: Exception) -> UpstreamError:
    """Convert an httpx exception to an UpstreamError."""
    if isinstance(exc, UpstreamError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        try:
            body = exc.response.content
        except httpx.ResponseNotRead:
            body = b""
        message = error_message(body) if body else f"HTTP {status}"
        return UpstreamError(
            message,
            http_status=status,
            transient=status in _TRANSIENT_STATUSES,
            original=exc,
        )
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return UpstreamError(error_message(exc), transient=True, original=exc)
    return UpstreamError(error_message(exc), original=exc)


def is_transient(exc: BaseException) -> bool:
    """Retry predicate: only transient upstream failures are worth another try."""
    return isinstance(exc, UpstreamError) and exc.transient
