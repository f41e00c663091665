"""netimport CLI - run scripts that import modules by URL."""

import click

from . import __version__
from .commands.alias import alias as alias_group
from .commands.cache import cache as cache_group
from .commands.run import run_cmd
from .commands.vendor import vendor_cmd
from .logging_setup import init_json_logging


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="netimport")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the JSONL log (default: NETIMPORT_LOG_LEVEL or INFO)",
)
@click.option("--verbose", "-v", is_flag=True, help="Also print log records to stderr")
def cli(log_level: str | None, verbose: bool):
    """Run scripts that import modules by URL, and vendor them for offline use."""
    init_json_logging(level="DEBUG" if verbose and log_level is None else log_level, verbose=verbose)


cli.add_command(run_cmd)
cli.add_command(vendor_cmd)
cli.add_command(cache_group)
cli.add_command(alias_group)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
