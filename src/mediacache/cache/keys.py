"""Cache path resolution — one file per object id and revision."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mediacache.types import ObjectIdentity

TEMP_SUFFIX = "_tmp"


def cache_path(base_dir: Path, identity: ObjectIdentity) -> Path:
    """Canonical cache file for ``identity`` under ``base_dir``.

    Includes the revision, so a new revision never collides with the
    file of an older one and paths stay valid across restarts.
    """
    return Path(base_dir) / f"{identity.id}_{identity.revision}"


def temp_path(path: Path) -> Path:
    """In-flight population file for a canonical cache path."""
    return path.with_name(path.name + TEMP_SUFFIX)


def is_temp_path(path: Path) -> bool:
    return path.name.endswith(TEMP_SUFFIX)
