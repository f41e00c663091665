"""Alias commands - map bare specifiers to module URLs.

An alias lets a script write ``import pad from "left-pad"`` and have it
resolve like the URL it points at. Vendoring records the alias under its own
name, so the vendored manifest keeps working without the settings file.
"""

from __future__ import annotations

import click
from rich.table import Table

from ..console import console
from ..settings import SettingsManager
from ..utils.error_format import escape_markup

SCOPE_CHOICE = click.Choice(["local", "project", "user"])


@click.group(invoke_without_command=True)
@click.pass_context
def alias(ctx: click.Context):
    """Manage specifier aliases."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@alias.command(name="add")
@click.argument("specifier")
@click.argument("url")
@click.option("--scope", type=SCOPE_CHOICE, default="project", help="Settings scope to write to")
def alias_add(specifier: str, url: str, scope: str):
    """Alias SPECIFIER to URL."""
    if not url.startswith(("http://", "https://")):
        console.print(f"[red]Error:[/red] Alias target must be an http(s) URL, got {escape_markup(url)}")
        raise SystemExit(1)

    SettingsManager().add_alias(specifier, url, scope=scope)
    console.print(f"[green]✓[/green] {escape_markup(specifier)} → {escape_markup(url)} [dim]({scope})[/dim]")


@alias.command(name="remove")
@click.argument("specifier")
@click.option("--scope", type=SCOPE_CHOICE, default="project", help="Settings scope to remove from")
def alias_remove(specifier: str, scope: str):
    """Remove the alias for SPECIFIER."""
    if SettingsManager().remove_alias(specifier, scope=scope):
        console.print(f"[green]✓[/green] Removed {escape_markup(specifier)} [dim]({scope})[/dim]")
    else:
        console.print(f"[yellow]No {scope} alias for {escape_markup(specifier)}[/yellow]")


@alias.command(name="list")
def alias_list():
    """List aliases merged from all scopes."""
    aliases = SettingsManager().get_aliases()
    if not aliases:
        console.print("[dim]No aliases configured.[/dim]")
        return

    table = Table(title="Aliases")
    table.add_column("Specifier", style="cyan")
    table.add_column("URL", style="green")
    for specifier, url in sorted(aliases.items()):
        table.add_row(specifier, url)
    console.print(table)
