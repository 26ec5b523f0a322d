"""SpotCell CLI — top-level Click group."""

from __future__ import annotations

import click


@click.group()
@click.version_option(package_name="spotcell")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs and full tracebacks on errors.")
def cli(verbose: bool) -> None:
    """SpotCell — Spots to cells to cell types."""
    from spotcell.cli import utils

    utils.verbose = verbose
    utils.configure_logging(verbose)


def _register_commands() -> None:
    """Register all subcommands — imports deferred to avoid loading heavy deps at startup."""
    from spotcell.cli.map_cmd import map_cmd
    from spotcell.cli.segment import segment

    cli.add_command(map_cmd)
    cli.add_command(segment)


_register_commands()


def main() -> None:
    cli()
