"""File import commands (receipt OCR, deposits, exchange rates)."""

from pathlib import Path

import click

from flowledger.api import imports as imports_api
from flowledger.cli.colors import print_receipt_items, print_success, print_warning
from flowledger.cli.context import CliContext, pass_context, positive_float

_file_argument = click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
_timeout_option = click.option("--timeout", type=positive_float, default=None, help="Polling budget in seconds")
_interval_option = click.option("--interval", type=positive_float, default=None, help="Seconds between status checks")


@click.group(name="import")
def import_group():
    """Upload a file and wait for the backend to process it."""
    pass


@import_group.command()
@_file_argument
@_timeout_option
@_interval_option
@pass_context
def receipt(ctx: CliContext, file: Path, timeout, interval):
    """Recognize a receipt image.

    Examples:
        flowledger import receipt ~/Pictures/receipt.jpg
    """
    poller = ctx.poller(interval=interval, timeout=timeout)
    result = ctx.run(lambda client: imports_api.import_receipt(client, file, poller=poller))

    print_success(f"Recognized {imports_api.summarize(result)}")
    if result.occurred_at:
        click.echo(f"Date: {result.occurred_at}")
    print_receipt_items([item.model_dump() for item in result.items])


@import_group.command()
@_file_argument
@_timeout_option
@_interval_option
@pass_context
def deposit(ctx: CliContext, file: Path, timeout, interval):
    """Bulk import institutions, products and balances (.xlsx/.xls/.csv)."""
    poller = ctx.poller(interval=interval, timeout=timeout)
    result = ctx.run(lambda client: imports_api.import_deposit(client, file, poller=poller))

    failed = result.institutions.failed + result.products.failed + result.product_balances.failed
    message = f"Import finished: {imports_api.summarize(result)}"
    if failed:
        print_warning(message)
    else:
        print_success(message)


@import_group.command()
@_file_argument
@_timeout_option
@_interval_option
@pass_context
def rates(ctx: CliContext, file: Path, timeout, interval):
    """Import exchange rates (.xlsx)."""
    poller = ctx.poller(interval=interval, timeout=timeout)
    result = ctx.run(lambda client: imports_api.import_exchange_rates(client, file, poller=poller))

    message = f"Import finished: {imports_api.summarize(result)}"
    if result.failed > 0:
        print_warning(message)
        for item in result.items:
            if item.error:
                click.echo(f"  {item.base}/{item.quote} {item.rate_date}: {item.error}")
    else:
        print_success(message)
