"""specparity CLI - specparity command."""

import click

from specparity.cli.check import check_command
from specparity.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="specparity")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """specparity - checks that Rails code and its RSpec suite stay in step."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(check_command, name="check")


if __name__ == "__main__":
    cli()
