"""Cache directory manager — one subdirectory per media kind and thumbnail size."""

from __future__ import annotations

import logging
from pathlib import Path

from mediacache.cache.keys import is_temp_path
from mediacache.cache.stats import DirectoryUsage
from mediacache.errors.exceptions import InitializationError
from mediacache.registry import Registry

logger = logging.getLogger(__name__)


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise InitializationError(
            f"Cannot create cache directory {path}: {exc}", path=path
        ) from exc


def initialize_cache(
    cache_root: str | Path, registry: Registry, create: bool = True
) -> Registry:
    """Create every cache directory and return the registry with paths resolved.

    Layout: ``<root>/<cache_dir_name>`` per media kind and
    ``<root>/pic-<label>`` per thumbnail size. Safe to call again on an
    existing root. Must finish before any cache operation runs. With
    ``create=False`` only the paths are resolved, for read-only reporting.
    """
    root = Path(cache_root).expanduser().resolve()
    types = [t.model_copy(update={"cache_dir": root / t.cache_dir_name}) for t in registry.types]
    sizes = [s.model_copy(update={"cache_dir": root / s.cache_dir_name}) for s in registry.sizes]
    if not create:
        return Registry(types=tuple(types), sizes=tuple(sizes))

    _ensure_dir(root)
    for info in (*types, *sizes):
        _ensure_dir(info.cache_dir)

    logger.info(
        "Cache initialized at %s (%d kinds, %d thumbnail sizes)", root, len(types), len(sizes)
    )
    return Registry(types=tuple(types), sizes=tuple(sizes))


def scan_cache(registry: Registry) -> list[DirectoryUsage]:
    """Count entries, in-flight temp files and bytes per cache directory."""
    dirs: list[tuple[str, Path | None]] = [(t.cache_dir_name, t.cache_dir) for t in registry.types]
    dirs += [(s.cache_dir_name, s.cache_dir) for s in registry.sizes]

    usage: list[DirectoryUsage] = []
    for name, cache_dir in dirs:
        entry = DirectoryUsage(name=name)
        if cache_dir is not None and cache_dir.is_dir():
            for path in cache_dir.iterdir():
                try:
                    size = path.stat().st_size
                except FileNotFoundError:
                    # promoted or removed while scanning
                    continue
                if is_temp_path(path):
                    entry.in_flight += 1
                else:
                    entry.entries += 1
                entry.size_bytes += size
        usage.append(entry)
    return usage
