"""Package-level default configuration values."""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Default cache settings
DEFAULT_CACHE_ROOT = str(Path.home() / ".mediacache" / "cache")
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_WRITE_QUEUE_DEPTH = 16
DEFAULT_DRAIN_TIMEOUT = 30.0

# Default remote settings
DEFAULT_API_URL = "https://api.dropboxapi.com"
DEFAULT_CONTENT_URL = "https://content.dropboxapi.com"
DEFAULT_TIMEOUT = 60.0
DEFAULT_READ_TIMEOUT = 300.0

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "cache_root": DEFAULT_CACHE_ROOT,
        "chunk_size": DEFAULT_CHUNK_SIZE,
        "write_queue_depth": DEFAULT_WRITE_QUEUE_DEPTH,
        "drain_timeout": DEFAULT_DRAIN_TIMEOUT,
        "api_url": DEFAULT_API_URL,
        "content_url": DEFAULT_CONTENT_URL,
        "timeout": DEFAULT_TIMEOUT,
        "read_timeout": DEFAULT_READ_TIMEOUT,
        "log_level": DEFAULT_LOG_LEVEL,
    }
