"""CLI entry point for solsys."""

import click

from .ephemeris import constants, info, state
from . import common as common
from ..logging import get_logger


logger = get_logger(__name__)


@click.group()
@click.option("-v", "--verbose", count=True, help="Log more: -v for info, -vv for debug.")
@click.option("--debug", is_flag=True, help="Log everything, same as -vv.")
@click.option("--quiet", is_flag=True, help="Log errors only.")
def cli(verbose: int, debug: bool, quiet: bool) -> None:
    """Inspect JPL binary ephemeris files."""
    common.configure_logging({"quiet": quiet, "debug": debug, "verbose": verbose})
    logger.debug("Command line logging configured")


cli.add_command(info)
cli.add_command(constants)
cli.add_command(state)

if __name__ == "__main__":
    cli()
