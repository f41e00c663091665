"""Vendor command - materialize a script's remote dependencies for offline use."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import click

from ..console import console
from ..errors import NetImportError
from ..runtime import RunConfig
from ..runtime import create_runtime
from ..runtime import vendor_script
from ..settings import load_settings
from ..ui import display_error
from ..utils.error_format import escape_markup

logger = logging.getLogger(__name__)


@click.command(name="vendor")
@click.argument("script")
def vendor_cmd(script: str):
    """Fetch every module SCRIPT depends on into the vendor directory.

    Writes <vendor>/import_map.json; pass it to `netimport run --import-map`
    to run SCRIPT offline.
    """
    try:
        settings = load_settings()
        runtime = create_runtime(RunConfig(script=script, mode="vendor", settings=settings))
        manifest_path, error = asyncio.run(vendor_script(runtime))
    except NetImportError as e:
        logger.error(f"Vendoring {script} failed: {e}")
        display_error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.exception(f"Vendoring {script} failed")
        display_error(e)
        sys.exit(1)

    imports = runtime.context.vendor.imports if runtime.context.vendor is not None else {}
    console.print(f"[green]✓[/green] Vendored {len(imports)} imports into {escape_markup(runtime.vendor_dir)}")
    for specifier, relative in sorted(imports.items()):
        console.print(f"  [cyan]{escape_markup(specifier)}[/cyan] [dim]→ {escape_markup(relative)}[/dim]")

    try:
        shown = os.path.relpath(manifest_path)
    except ValueError:
        shown = str(manifest_path)
    console.print(
        f"\nTo use vendored modules, specify the [bold]--import-map[/bold] flag: "
        f"[cyan]netimport run --import-map={escape_markup(shown)} {escape_markup(script)}[/cyan]"
    )

    if error is not None:
        display_error(error)
        sys.exit(1)
