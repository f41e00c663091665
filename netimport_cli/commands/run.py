"""Primary run command - execute a script whose imports may be URLs."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from ..errors import NetImportError
from ..runtime import RunConfig
from ..runtime import create_runtime
from ..runtime import execute_script
from ..settings import load_settings
from ..ui import display_error

logger = logging.getLogger(__name__)


@click.command(name="run", context_settings={"ignore_unknown_options": True})
@click.argument("script")
@click.argument("script_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--import-map",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Vendor manifest to resolve imports from (e.g. vendor/import_map.json)",
)
def run_cmd(script: str, script_args: tuple[str, ...], import_map: Path | None):
    """Run SCRIPT, fetching and caching any URL imports.

    With --import-map, specifiers listed in the manifest resolve to their
    vendored copies and are never fetched.
    """
    try:
        settings = load_settings()
        runtime = create_runtime(
            RunConfig(script=script, mode="run", settings=settings, import_map=import_map, script_args=script_args)
        )
        asyncio.run(execute_script(runtime))
    except NetImportError as e:
        logger.error(f"Run of {script} failed: {e}")
        display_error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.exception(f"Run of {script} failed")
        display_error(e)
        sys.exit(1)
