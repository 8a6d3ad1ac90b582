"""Click CLI for mediacache — prime and inspect the media cache."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from mediacache.config.hierarchy import load_config_hierarchy
from mediacache.errors.exceptions import MediaCacheError
from mediacache.registry import Registry, default_registry

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
    """Configure logging from -v flags, falling back to the configured level."""
    level = logging.getLevelName(str(default_level).upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _load_registry(config: dict) -> Registry:
    registry_path = config.get("registry_path")
    if registry_path:
        from mediacache.config.loader import load_registry_yaml

        return load_registry_yaml(registry_path)
    return default_registry()


@click.group()
@click.version_option(package_name="mediacache")
def cli() -> None:
    """mediacache — read-through disk cache for Dropbox media."""


@cli.command()
@click.option("--cache-root", type=click.Path(), default=None, help="Cache root directory.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def init(cache_root: str | None, verbose: int) -> None:
    """Create the cache directory layout."""
    config = load_config_hierarchy(cache_root=cache_root)
    _setup_logging(verbose, config["log_level"])
    from mediacache.cache.directories import initialize_cache

    try:
        registry = initialize_cache(config["cache_root"], _load_registry(config))
    except (MediaCacheError, ValueError, FileNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title="Cache Directories", show_header=True)
    table.add_column("Kind / size", style="cyan")
    table.add_column("Directory")
    for tinfo in registry.types:
        table.add_row(tinfo.kind_name, str(tinfo.cache_dir))
    for szinfo in registry.sizes:
        table.add_row(f"thumbnail {szinfo.label}", str(szinfo.cache_dir))
    console.print(table)


@cli.command()
@click.argument("remote_path")
@click.option("-o", "--output", type=click.Path(), help="Output file path.")
@click.option("--size", type=str, default=None, help="Fetch the thumbnail at this size label.")
@click.option("--cache-root", type=click.Path(), default=None, help="Cache root directory.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def get(
    remote_path: str,
    output: str | None,
    size: str | None,
    cache_root: str | None,
    verbose: int,
) -> None:
    """Fetch a remote media file (or its thumbnail) through the cache."""
    config = load_config_hierarchy(cache_root=cache_root)
    _setup_logging(verbose, config["log_level"])
    if not config.get("access_token"):
        error_console.print("[red]Error:[/red] DROPBOX_ACCESS_TOKEN is not set")
        sys.exit(1)

    try:
        data, cached = asyncio.run(_get(remote_path, size, config))
    except MediaCacheError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    out_path = Path(output) if output else Path(Path(remote_path).name)
    out_path.write_bytes(data)
    source = "cache" if cached else "remote"
    console.print(f"[green]Written {len(data):,} bytes to {out_path} (from {source})[/green]")


async def _get(remote_path: str, size: str | None, config: dict) -> tuple[bytes, bool]:
    from mediacache.core import MediaCache
    from mediacache.errors.exceptions import InvalidArgumentError
    from mediacache.remote.dropbox import DropboxClient
    from mediacache.types import MediaObject

    remote = DropboxClient(
        config["access_token"],
        api_url=config["api_url"],
        content_url=config["content_url"],
        timeout=config["timeout"],
        read_timeout=config["read_timeout"],
    )
    cache = MediaCache.create(
        config["cache_root"],
        remote,
        registry=_load_registry(config),
        chunk_size=config["chunk_size"],
        write_queue_depth=config["write_queue_depth"],
        drain_timeout=config["drain_timeout"],
    )
    async with cache:
        meta = await remote.get_metadata(remote_path)
        media = MediaObject.from_metadata(meta, cache.registry)
        if media is None:
            raise InvalidArgumentError(f"Not a recognized media file: {meta.name}")
        if size:
            before = cache.stats().hits
            data = await cache.fetch_thumbnail(media, size)
            return data, cache.stats().hits > before
        async with await cache.open_object_stream(media) as stream:
            return await stream.read(), stream.hit


@cli.command()
@click.argument("name")
def identify(name: str) -> None:
    """Show how a file or folder name is parsed into a stable id."""
    from mediacache.naming import parse_name

    parts = parse_name(name)
    if parts is None:
        error_console.print(f"[yellow]Name does not follow the convention:[/yellow] {name}")
        sys.exit(1)

    table = Table(title=f"Parsed: {name}", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in parts.model_dump().items():
        table.add_row(field, "-" if value in (None, "") else str(value))
    console.print(table)


@cli.group()
def cache() -> None:
    """Cache management commands."""


@cache.command("stats")
@click.option("--cache-root", type=click.Path(), default=None, help="Cache root directory.")
def cache_stats(cache_root: str | None) -> None:
    """Show what is stored in each cache directory."""
    from mediacache.cache.directories import initialize_cache, scan_cache

    config = load_config_hierarchy(cache_root=cache_root)
    try:
        registry = initialize_cache(config["cache_root"], _load_registry(config), create=False)
        usages = scan_cache(registry)
    except (MediaCacheError, ValueError, OSError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Directory", style="cyan")
    table.add_column("Entries")
    table.add_column("In flight")
    table.add_column("Size (MB)")

    for usage in usages:
        table.add_row(
            usage.name, str(usage.entries), str(usage.in_flight), f"{usage.size_mb:.1f}"
        )

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()
