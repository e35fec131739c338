"""
Flow Ledger CLI - command-line client for the Flow Ledger backend.

Examples:
    flowledger login alice
    flowledger import receipt receipt.jpg
    flowledger import deposit balances.xlsx --timeout 300
    flowledger tasks wait 7f0c...
    flowledger convert 100 USD CNY
"""

import logging

import click

from flowledger import __version__
from flowledger.cli.colors import print_error
from flowledger.cli.context import CliContext
from flowledger.config import load_config
from flowledger.core.errors import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="flowledger")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """
    Flow Ledger - personal finance from the terminal.
    """
    try:
        config = load_config()
    except ConfigurationError as e:
        print_error(e.message)
        ctx.exit(1)
    level = "DEBUG" if verbose or config.debug else config.log_level
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    ctx.obj = CliContext(config)


# Import command groups
from flowledger.cli.commands import auth, currency, imports, tasks  # noqa: E402

cli.add_command(auth.login)
cli.add_command(auth.logout)
cli.add_command(auth.whoami)
cli.add_command(imports.import_group)
cli.add_command(tasks.tasks)
cli.add_command(currency.convert)
cli.add_command(currency.currencies)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
