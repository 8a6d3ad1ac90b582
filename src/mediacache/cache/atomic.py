"""Filesystem primitives for collision-safe cache population.

Exclusive create and atomic rename are the only coordination between
concurrent writers, in this process or in any other process sharing the
cache root. All functions here block; callers run them via
``asyncio.to_thread``.
"""

from __future__ import annotations

import contextlib
import logging
import os
from enum import StrEnum
from pathlib import Path
from typing import BinaryIO

from mediacache.cache.keys import temp_path
from mediacache.errors.exceptions import CacheWriteError

logger = logging.getLogger(__name__)


class PopulationOutcome(StrEnum):
    PROMOTED = "promoted"
    COLLISION = "collision"
    ABORTED = "aborted"


def touch(path: Path) -> None:
    """Set atime/mtime to now as a freshness signal for eviction.

    Best effort: a racing janitor or a read-only mount must not turn a hit
    into a failure.
    """
    try:
        os.utime(path, None)
    except OSError as exc:
        logger.debug("Could not touch %s: %s", path, exc)


def open_exclusive(path: Path) -> BinaryIO:
    """Create ``path`` for writing, raising FileExistsError if it exists."""
    return open(path, "xb")  # noqa: SIM115


def promote(temp: Path, path: Path) -> None:
    """Atomically move a finished temp file to its canonical name."""
    os.replace(temp, path)


def discard(temp: Path) -> None:
    """Remove a temp file this writer owns."""
    try:
        temp.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove temp file %s: %s", temp, exc)


def close_quietly(handle: BinaryIO) -> None:
    with contextlib.suppress(OSError):
        handle.close()


def write_file_with_rename(path: Path, data: bytes) -> PopulationOutcome:
    """Write ``data`` to ``path`` through an exclusive temp file.

    Returns COLLISION without touching anything if another writer already
    owns the temp file. Any other failure removes the temp file and raises
    CacheWriteError.
    """
    temp = temp_path(path)
    try:
        handle = open_exclusive(temp)
    except FileExistsError:
        logger.info("Ignoring collision on %s, another writer owns it", temp)
        return PopulationOutcome.COLLISION
    except OSError as exc:
        raise CacheWriteError(f"Cannot create {temp}: {exc}", path=temp) from exc

    try:
        with handle:
            handle.write(data)
        promote(temp, path)
    except OSError as exc:
        discard(temp)
        raise CacheWriteError(f"Write failed for {temp}: {exc}", path=temp) from exc

    logger.debug("Cached %d bytes at %s", len(data), path)
    return PopulationOutcome.PROMOTED
