"""Cache management commands for netimport.

Provides commands to inspect and clean the module cache. Cached modules are
never revalidated, so cleaning the cache is how a changed remote module gets
picked up again.
"""

from __future__ import annotations

import contextlib
import shutil
from pathlib import Path

import click
from rich.table import Table

from ..console import console
from ..errors import NetImportError
from ..module_resolution.identity import host_dirname
from ..module_resolution.metadata import MetadataCache
from ..paths import get_cache_dir
from ..settings import load_settings
from ..ui import display_error
from ..utils.error_format import escape_markup


def _get_dir_size(path: Path) -> int:
    """Get total size of a directory in bytes."""
    total = 0
    with contextlib.suppress(OSError):
        for entry in path.rglob("*"):
            if entry.is_file():
                with contextlib.suppress(OSError):
                    total += entry.stat().st_size
    return total


def _format_size(size_bytes: int) -> str:
    """Format bytes as human-readable size."""
    size_float = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size_float < 1024:
            return f"{size_float:.1f} {unit}"
        size_float /= 1024
    return f"{size_float:.1f} TB"


def _host_dir_option(host: str) -> str:
    """Map a --host value (``example.test`` or ``localhost:8080``) to its cache directory name."""
    try:
        name = host_dirname(host)
        if name.strip(".") == "" or "/" in name:
            raise ValueError("not a host name")
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid host {escape_markup(host)}: {escape_markup(e)}")
        raise SystemExit(1) from e
    return name


def _cache_dir() -> Path:
    try:
        return get_cache_dir(load_settings())
    except NetImportError as e:
        display_error(e)
        raise SystemExit(1) from e


@click.group(invoke_without_command=True)
@click.pass_context
def cache(ctx: click.Context):
    """Manage the netimport module cache.

    The cache stores downloaded modules at ~/.netimport/cache/ unless
    configured otherwise.
    """
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@cache.command(name="path")
def cache_path():
    """Show the cache directory path."""
    cache_dir = _cache_dir()
    console.print(f"[cyan]{escape_markup(cache_dir)}[/cyan]")

    if cache_dir.exists():
        console.print("[dim]Status: exists[/dim]")
    else:
        console.print("[dim]Status: not created yet[/dim]")


@cache.command(name="size")
def cache_size():
    """Show total cache disk usage."""
    cache_dir = _cache_dir()

    if not cache_dir.exists():
        console.print("[dim]Cache directory does not exist yet.[/dim]")
        console.print(f"[dim]Path: {escape_markup(cache_dir)}[/dim]")
        return

    total_size = _get_dir_size(cache_dir)
    console.print(f"[bold]Cache Size:[/bold] {_format_size(total_size)}")
    console.print(f"[dim]Path: {escape_markup(cache_dir)}[/dim]")


@cache.command(name="list")
@click.option("--host", default=None, help="Only show modules fetched from this host")
def cache_list(host: str | None):
    """List cached modules."""
    cache_dir = _cache_dir()
    records = MetadataCache(cache_dir).records()
    if host:
        host_dir = _host_dir_option(host)
        records = [(h, r) for h, r in records if h == host_dir]

    if not records:
        console.print("[dim]No cached modules found.[/dim]")
        return

    table = Table(title="Cached Modules")
    table.add_column("Host", style="cyan")
    table.add_column("Hash", style="dim")
    table.add_column("File", style="green")
    table.add_column("Size", justify="right")

    total_size = 0
    for record_host, record in records:
        size = record.path.stat().st_size
        total_size += size
        table.add_row(record_host, record.hash, record.path.name, _format_size(size))

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(records)} modules, {_format_size(total_size)}")


@cache.command(name="clean")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
@click.option("--host", default=None, help="Only clean modules fetched from this host")
def cache_clean(force: bool, host: str | None):
    """Clean the module cache.

    By default, removes the whole cache directory. Use --host to drop only
    the modules fetched from one host.
    """
    cache_dir = _cache_dir()
    target = cache_dir / _host_dir_option(host) if host else cache_dir

    if not target.exists():
        console.print("[dim]Nothing cached - nothing to clean.[/dim]")
        return

    total_size = _get_dir_size(target)
    console.print(f"\n[bold]Will clean:[/bold] {escape_markup(target)}")
    console.print(f"  Size: {_format_size(total_size)}")

    if not force and not click.confirm("\nProceed with cleaning cache?"):
        console.print("[yellow]Aborted.[/yellow]")
        return

    try:
        shutil.rmtree(target)
    except OSError as e:
        console.print(f"[red]Error cleaning cache:[/red] {escape_markup(e)}")
        raise SystemExit(1) from e

    console.print(f"\n[green]Cleaned {_format_size(total_size)}[/green]")
